"""
Linear and binary-response regression.

Public API:
    OLSSolver(y, X)    -> staged OLS solver
    LogitSolver(y, X)  -> staged logit solver
    fit(X, y, ...)     -> solved OLSResults / LogitResults

Example:
    >>> from amita.regression import OLSSolver
    >>> res = OLSSolver(y, X).with_robust_se().solve().results()
    >>> print(res.summary())
"""

from amita.regression.design import Design
from amita.regression.families import sigmoid, LogitLink, Binomial
from amita.regression.solution import OLSResults, LogitResults
from amita.regression.solvers import (
    OLSSolver,
    LogitSolver,
    SolverStage,
    fit,
    DEFAULT_MAX_ITER,
    DEFAULT_TOLERANCE,
)

__all__ = [
    "fit",
    "OLSSolver",
    "LogitSolver",
    "SolverStage",
    "Design",
    "OLSResults",
    "LogitResults",
    "sigmoid",
    "LogitLink",
    "Binomial",
    "DEFAULT_MAX_ITER",
    "DEFAULT_TOLERANCE",
]
