"""
amita: OLS and logit estimation for econometric models.

Submodules:
    core: Results/Solver protocols, result envelope, exceptions, numerics
    regression: OLSSolver, LogitSolver, fit()
    inference: Standard-error types, sandwich estimators, cluster tags
    models: Estimators built on the regression engines (TWFE)
"""

__version__ = "0.1.0"

from amita import core
from amita import inference
from amita import regression
from amita import models
from amita.regression import OLSSolver, LogitSolver, fit
from amita.inference import SEType, SolverSEType, ModelSEType, resolve_se_type
from amita.models import TWFE

__all__ = [
    "__version__",
    "core",
    "inference",
    "regression",
    "models",
    "OLSSolver",
    "LogitSolver",
    "fit",
    "SEType",
    "SolverSEType",
    "ModelSEType",
    "resolve_se_type",
    "TWFE",
]
