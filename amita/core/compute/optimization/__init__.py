"""
Optimization utilities for amita.

Wraps SciPy's line-search minimizers behind a single strategy selection and
applies one convergence criterion to all of them: the Euclidean norm of the
gradient at the returned point must not exceed the tolerance.
"""

from amita.core.compute.optimization.quasi_newton import (
    OptimizationOutcome,
    OptimizerMethod,
    OPTIMIZER_METHODS,
    DEFAULT_LBFGS_MEMORY,
    minimize_smooth,
)

__all__ = [
    "OptimizationOutcome",
    "OptimizerMethod",
    "OPTIMIZER_METHODS",
    "DEFAULT_LBFGS_MEMORY",
    "minimize_smooth",
]
