"""
Staged solvers for OLS and logit, and the fit() convenience entry point.

A solver validates its inputs when it is constructed, may be configured
through chainable setters, and is solved exactly once:

    solver = OLSSolver(y, X).with_robust_se().solve()
    solver.results().coef()

The pipeline computes into local state and publishes the finished Results
in a single assignment. A failed solve() leaves the solver unsolved and
its results untouched.
"""

from enum import Enum
from typing import Any, Literal, TypeVar

import pandas as pd
from numpy.typing import ArrayLike

from amita.core.exceptions import SolverStateError
from amita.core.validation import check_binary
from amita.core.compute.optimization import (
    OPTIMIZER_METHODS,
    DEFAULT_LBFGS_MEMORY,
    OptimizerMethod,
)
from amita.inference.se import SERequest, SolverSEType, resolve_se_type
from amita.regression.design import Design
from amita.regression.solution import OLSResults, LogitResults
from amita.regression.backends.cpu import CPUQRBackend
from amita.regression.backends.cpu_logit import CPUQuasiNewtonBackend

# Logit optimizer defaults
DEFAULT_MAX_ITER = 1000
DEFAULT_TOLERANCE = 1e-4

ModelChoice = Literal['ols', 'logit']

S = TypeVar('S', bound='_StagedSolver')


class SolverStage(Enum):
    """Lifecycle of a solver. SOLVED is terminal."""
    VALIDATED = 'validated'
    SOLVING = 'solving'
    SOLVED = 'solved'


class _StagedSolver:
    """Stage bookkeeping shared by OLSSolver and LogitSolver."""

    _stage: SolverStage

    @property
    def stage(self) -> SolverStage:
        return self._stage

    @property
    def is_solved(self) -> bool:
        return self._stage is SolverStage.SOLVED

    @property
    def design(self) -> Design:
        return self._design

    def _check_configurable(self, setter: str) -> None:
        if self._stage is not SolverStage.VALIDATED:
            raise SolverStateError(
                f"{type(self).__name__}.{setter}() cannot be called once the "
                f"solver is {self._stage.value}",
                stage=self._stage.value,
            )

    def solve(self: S) -> S:
        """
        Run the full estimation pipeline once.

        Raises:
            SolverStateError: If the solver is already solved or solving
        """
        if self._stage is not SolverStage.VALIDATED:
            raise SolverStateError(
                f"{type(self).__name__} is already {self._stage.value}; "
                f"solve() may only be called once",
                stage=self._stage.value,
            )
        self._stage = SolverStage.SOLVING
        try:
            results = self._run()
        except BaseException:
            self._stage = SolverStage.VALIDATED
            raise
        self._results = results
        self._stage = SolverStage.SOLVED
        return self

    def _run(self) -> Any:
        raise NotImplementedError


class OLSSolver(_StagedSolver):
    """
    Ordinary least squares via QR decomposition.

    X is factorized at construction, so a rank-deficient design fails here
    rather than at solve().

    Args:
        y: Response vector (n,)
        X: Design matrix (n x p)
        names: Optional regressor names

    Raises:
        ValidationError: If inputs are not finite numeric arrays
        ObservationMismatchError: If X and y have different row counts
        NotDecomposableError: If X has fewer rows than columns or is
                              column rank-deficient

    Example:
        >>> solver = OLSSolver(y, X).with_se_type('HC1').solve()
        >>> solver.results().se()
    """

    def __init__(
        self,
        y: ArrayLike,
        X: ArrayLike,
        *,
        names: list[str] | tuple[str, ...] | None = None,
    ):
        design = Design.from_arrays(X, y, names=names)
        self._init_from_design(design)

    @classmethod
    def from_design(cls, design: Design) -> 'OLSSolver':
        solver = cls.__new__(cls)
        solver._init_from_design(design)
        return solver

    def _init_from_design(self, design: Design) -> None:
        self._backend = CPUQRBackend()
        self._design = design
        self._qr = self._backend.decompose(design)
        self._se_type = SolverSEType.homoscedastic()
        self._r_squared = True
        self._results = OLSResults(
            n_obs=design.n, n_regressors=design.p, names=design.names,
        )
        self._stage = SolverStage.VALIDATED

    # === Configuration ===

    def with_se_type(
        self,
        se_type: SERequest,
        data: pd.DataFrame | None = None,
    ) -> 'OLSSolver':
        """
        Choose the covariance estimator.

        Accepts a SolverSEType, an SEType, an alias ('robust', 'nonrobust',
        'HC1', ...), or a clustered request naming a column of `data`.
        """
        self._check_configurable('with_se_type')
        self._se_type = resolve_se_type(se_type, data)
        return self

    def with_robust_se(self) -> 'OLSSolver':
        """HC3 standard errors."""
        self._check_configurable('with_robust_se')
        self._se_type = SolverSEType.robust()
        return self

    def with_nonrobust_se(self) -> 'OLSSolver':
        """Homoscedastic standard errors (the default)."""
        self._check_configurable('with_nonrobust_se')
        self._se_type = SolverSEType.nonrobust()
        return self

    def with_r_squared(self, enabled: bool = True) -> 'OLSSolver':
        self._check_configurable('with_r_squared')
        self._r_squared = bool(enabled)
        return self

    @property
    def se_type(self) -> SolverSEType:
        return self._se_type

    # === Results ===

    def results(self) -> OLSResults:
        return self._results

    def _run(self) -> OLSResults:
        return self._backend.solve(
            self._design, self._qr, self._se_type, r_squared=self._r_squared,
        )

    def __repr__(self) -> str:
        return (
            f"OLSSolver(n={self._design.n}, p={self._design.p}, "
            f"se_type={self._se_type!r}, stage={self._stage.value})"
        )


class LogitSolver(_StagedSolver):
    """
    Binary logit by maximum likelihood.

    Args:
        y: Response vector (n,) with values exactly {0, 1}, both present
        X: Design matrix (n x p)
        names: Optional regressor names

    Raises:
        ValidationError: If inputs are not finite numeric arrays
        ObservationMismatchError: If X and y have different row counts
        NonBinaryResponseError: If y is not a two-class 0/1 response

    Example:
        >>> solver = LogitSolver(y, X).with_method('newton').solve()
        >>> solver.results().p_vals()
    """

    def __init__(
        self,
        y: ArrayLike,
        X: ArrayLike,
        *,
        names: list[str] | tuple[str, ...] | None = None,
    ):
        design = Design.from_arrays(X, y, names=names)
        self._init_from_design(design)

    @classmethod
    def from_design(cls, design: Design) -> 'LogitSolver':
        solver = cls.__new__(cls)
        solver._init_from_design(design)
        return solver

    def _init_from_design(self, design: Design) -> None:
        check_binary(design.y, 'y')
        self._design = design
        self._method: OptimizerMethod = 'lbfgs'
        self._max_iter = DEFAULT_MAX_ITER
        self._tol = DEFAULT_TOLERANCE
        self._raise_on_nonconvergence = True
        self._memory = DEFAULT_LBFGS_MEMORY
        self._results = LogitResults(
            n_obs=design.n, n_regressors=design.p, names=design.names,
        )
        self._stage = SolverStage.VALIDATED

    # === Configuration ===

    def with_method(self, method: OptimizerMethod) -> 'LogitSolver':
        """Optimization strategy: 'lbfgs' (default), 'bfgs' or 'newton'."""
        self._check_configurable('with_method')
        if method not in OPTIMIZER_METHODS:
            raise ValueError(
                f"Unknown optimizer method: {method!r}. "
                f"Valid methods: {', '.join(OPTIMIZER_METHODS)}"
            )
        self._method = method
        return self

    def with_max_iter(self, max_iter: int) -> 'LogitSolver':
        self._check_configurable('with_max_iter')
        if isinstance(max_iter, bool) or int(max_iter) != max_iter or max_iter < 1:
            raise ValueError(f"max_iter must be a positive integer, got {max_iter!r}")
        self._max_iter = int(max_iter)
        return self

    def with_tolerance(self, tol: float) -> 'LogitSolver':
        """Gradient-norm tolerance for convergence."""
        self._check_configurable('with_tolerance')
        if not tol > 0:
            raise ValueError(f"tol must be positive, got {tol!r}")
        self._tol = float(tol)
        return self

    with_max_tolerance = with_tolerance

    def with_raise_on_nonconvergence(self, enabled: bool = True) -> 'LogitSolver':
        """
        Raise ConvergenceError on non-convergence (default), or only warn
        and report converged=False.
        """
        self._check_configurable('with_raise_on_nonconvergence')
        self._raise_on_nonconvergence = bool(enabled)
        return self

    @property
    def method(self) -> str:
        return self._method

    @property
    def max_iter(self) -> int:
        return self._max_iter

    @property
    def tolerance(self) -> float:
        return self._tol

    # === Results ===

    def results(self) -> LogitResults:
        return self._results

    def _run(self) -> LogitResults:
        backend = CPUQuasiNewtonBackend(
            method=self._method,
            max_iter=self._max_iter,
            tol=self._tol,
            raise_on_nonconvergence=self._raise_on_nonconvergence,
            memory=self._memory,
        )
        return backend.solve(self._design)

    def __repr__(self) -> str:
        return (
            f"LogitSolver(n={self._design.n}, p={self._design.p}, "
            f"method={self._method!r}, stage={self._stage.value})"
        )


_OLS_OPTIONS = frozenset({'r_squared', 'names'})
_LOGIT_OPTIONS = frozenset({'method', 'max_iter', 'tol', 'raise_on_nonconvergence', 'names'})


def fit(
    X: ArrayLike,
    y: ArrayLike,
    *,
    model: ModelChoice = 'ols',
    se_type: SERequest | None = None,
    data: pd.DataFrame | None = None,
    **options: Any,
) -> OLSResults | LogitResults:
    """
    Fit an OLS or logit model in one call.

    Args:
        X: Design matrix (n x p)
        y: Response vector (n,)
        model: 'ols' or 'logit'
        se_type: OLS covariance estimator (see OLSSolver.with_se_type).
                 Not accepted for logit.
        data: Host dataset, needed only for a clustered request by column
        **options:
            ols:   r_squared, names
            logit: method, max_iter, tol, raise_on_nonconvergence, names

    Returns:
        Solved OLSResults or LogitResults

    Example:
        >>> res = fit(X, y, se_type='robust')
        >>> print(res.summary())
    """
    if model == 'ols':
        _check_options(options, _OLS_OPTIONS, model)
        ols = OLSSolver(y, X, names=options.get('names'))
        if se_type is not None:
            ols.with_se_type(se_type, data)
        if 'r_squared' in options:
            ols.with_r_squared(options['r_squared'])
        return ols.solve().results()

    if model == 'logit':
        _check_options(options, _LOGIT_OPTIONS, model)
        if se_type is not None:
            raise ValueError(
                "se_type is not supported for logit: standard errors come "
                "from the inverse information matrix"
            )
        logit = LogitSolver(y, X, names=options.get('names'))
        if 'method' in options:
            logit.with_method(options['method'])
        if 'max_iter' in options:
            logit.with_max_iter(options['max_iter'])
        if 'tol' in options:
            logit.with_tolerance(options['tol'])
        if 'raise_on_nonconvergence' in options:
            logit.with_raise_on_nonconvergence(options['raise_on_nonconvergence'])
        return logit.solve().results()

    raise ValueError(f"Unknown model: {model!r}. Valid models: 'ols', 'logit'")


def _check_options(options: dict[str, Any], allowed: frozenset[str], model: str) -> None:
    unknown = sorted(set(options) - allowed)
    if unknown:
        raise TypeError(
            f"Unknown option(s) for model={model!r}: {', '.join(unknown)}. "
            f"Valid options: {', '.join(sorted(allowed))}"
        )
