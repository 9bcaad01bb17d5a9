"""
Exception hierarchy for amita.

All exceptions inherit from AmitaError to allow catching any
library-specific error. Every failure is a deterministic function of the
input, so none of these are retried internally.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class AmitaError(Exception):
    """Base exception for all amita errors."""
    pass


# ═══════════════════════════════════════════════════════════════════════
# Input-shape errors
# ═══════════════════════════════════════════════════════════════════════


class ValidationError(AmitaError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when array shapes don't match expected dimensions.
    """
    pass


class ObservationMismatchError(DimensionError):
    """
    Response and design matrix have a different number of observations.

    Attributes:
        n_response: Length of the response vector
        n_design: Number of rows of the design matrix
    """

    def __init__(
        self,
        message: str,
        n_response: int | None = None,
        n_design: int | None = None,
    ):
        super().__init__(message)
        self.n_response = n_response
        self.n_design = n_design


class NonBinaryResponseError(ValidationError):
    """
    Response of a binary model is not exactly {0, 1}.

    Raised for values outside {0, 1} and for a single-class response.

    Attributes:
        matrix_name: Name of the offending array
        found: Sorted distinct values that were found
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        found: tuple[float, ...] | None = None,
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.found = found


class ColumnNotFoundError(ValidationError, KeyError):
    """
    A named column is not present in the host dataset.

    Attributes:
        column: The requested column name
        available: Column names that do exist
    """

    def __init__(
        self,
        message: str,
        column: str | None = None,
        available: tuple[str, ...] | None = None,
    ):
        super().__init__(message)
        self.column = column
        self.available = available

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0]) if self.args else ''


class ColumnDataTypeError(ValidationError):
    """
    A column has a datatype that cannot be used for the requested purpose.

    Attributes:
        column: Column name
        expected: Human-readable description of accepted datatypes
        found: The datatype that was found
    """

    def __init__(
        self,
        message: str,
        column: str | None = None,
        expected: str | None = None,
        found: str | None = None,
    ):
        super().__init__(message)
        self.column = column
        self.expected = expected
        self.found = found


class SingletonClusterError(ValidationError):
    """
    A cluster contains a single observation.

    Cluster-robust variance is undefined when a group has only one member.

    Attributes:
        column: The clustering column
        clusters: Labels of the offending single-observation clusters
    """

    def __init__(
        self,
        message: str,
        column: str | None = None,
        clusters: tuple | None = None,
    ):
        super().__init__(message)
        self.column = column
        self.clusters = clusters


# ═══════════════════════════════════════════════════════════════════════
# Numerical errors
# ═══════════════════════════════════════════════════════════════════════


class NumericalError(AmitaError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class NotDecomposableError(NumericalError):
    """
    Matrix could not be QR-decomposed to full column rank.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        rank: Numerical rank, if computed
        expected_rank: Expected rank (number of columns)
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        rank: int | None = None,
        expected_rank: int | None = None,
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.rank = rank
        self.expected_rank = expected_rank


class SingularMatrixError(NumericalError):
    """
    Matrix is singular or nearly singular.

    Raised when a matrix operation requires invertibility but the matrix
    is singular or numerically rank-deficient.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        condition_number: Estimated condition number, if available
        rank: Numerical rank, if computed
        expected_rank: Expected rank
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        condition_number: float | None = None,
        rank: int | None = None,
        expected_rank: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.condition_number = condition_number
        self.rank = rank
        self.expected_rank = expected_rank


# ═══════════════════════════════════════════════════════════════════════
# Iterative estimation
# ═══════════════════════════════════════════════════════════════════════


class ConvergenceError(AmitaError):
    """
    Iterative algorithm failed to converge.

    Raised when the maximum-likelihood optimizer stops without meeting the
    gradient-norm criterion, either at the iteration cap or because the
    line search could not make further progress.

    Attributes:
        iterations: Number of iterations completed
        final_change: Final gradient norm
        reason: Why convergence failed (e.g., 'max_iterations', 'line_search')
        threshold: The convergence threshold that was not met
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        final_change: float | None = None,
        reason: str | None = None,
        threshold: float | None = None
    ):
        super().__init__(message)
        self.iterations = iterations
        self.final_change = final_change
        self.reason = reason
        self.threshold = threshold


# ═══════════════════════════════════════════════════════════════════════
# State errors
# ═══════════════════════════════════════════════════════════════════════


class SolverStateError(AmitaError):
    """
    Operation is not allowed in the solver's current stage.

    Raised when a solver is solved twice, re-entered while solving, or
    reconfigured after solving.

    Attributes:
        stage: Name of the stage the solver was in
    """

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        self.stage = stage


class NotSolvedError(SolverStateError):
    """
    A result field was queried before the stage that populates it ran.

    Attributes:
        field: Name of the unset result field
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field
