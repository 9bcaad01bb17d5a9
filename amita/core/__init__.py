"""
Core infrastructure for amita.

This module provides shared abstractions and utilities used by the
estimation engines (regression), the standard-error layer (inference) and
the composite models (models).

Key components:
    protocols: Results, Solver protocols
    result: Result envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing, linear algebra kernels, optimization
"""

from amita.core.protocols import Results, Solver
from amita.core.result import Result
from amita.core.exceptions import (
    AmitaError,
    ValidationError,
    DimensionError,
    ObservationMismatchError,
    NonBinaryResponseError,
    ColumnNotFoundError,
    ColumnDataTypeError,
    SingletonClusterError,
    NumericalError,
    NotDecomposableError,
    SingularMatrixError,
    ConvergenceError,
    SolverStateError,
    NotSolvedError,
)

__all__ = [
    # Protocols
    "Results",
    "Solver",
    # Result
    "Result",
    # Exceptions
    "AmitaError",
    "ValidationError",
    "DimensionError",
    "ObservationMismatchError",
    "NonBinaryResponseError",
    "ColumnNotFoundError",
    "ColumnDataTypeError",
    "SingletonClusterError",
    "NumericalError",
    "NotDecomposableError",
    "SingularMatrixError",
    "ConvergenceError",
    "SolverStateError",
    "NotSolvedError",
]
