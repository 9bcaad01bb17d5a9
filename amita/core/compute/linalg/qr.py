"""
QR decomposition and the triangular/inverse kernels built on it.

Used by the OLS engine (coefficients, bread of the sandwich, leverage) and
by the logit engine (inverting the information matrix).
"""

from dataclasses import dataclass
from typing import Literal, Any

import numpy as np
from numpy.typing import NDArray
from scipy.linalg import solve_triangular

from amita.core.exceptions import NotDecomposableError, SingularMatrixError
from amita.core.compute.tolerances import RANK_TOLERANCE_FACTOR


@dataclass(frozen=True)
class QRResult:
    """
    Result of QR decomposition.

    Attributes:
        Q: Orthonormal columns (n x k where k = min(n, p) for reduced mode)
        R: Upper triangular matrix (k x p)
        rank: Numerical rank determined from R diagonal
    """
    Q: NDArray[np.floating[Any]]
    R: NDArray[np.floating[Any]]
    rank: int

    @property
    def is_full_rank(self) -> bool:
        return self.rank == self.R.shape[1]


def qr_decompose(
    X: NDArray[np.floating[Any]],
    mode: Literal['reduced', 'complete'] = 'reduced',
    *,
    matrix_name: str = 'X',
    check_rank: bool = True,
) -> QRResult:
    """
    QR decomposition using LAPACK (via NumPy).

    Computes X = QR where Q has orthonormal columns and R is upper triangular.

    Args:
        X: Matrix to decompose (n x p)
        mode: 'reduced' for economy QR (Q is n x k, R is k x p where k = min(n,p))
              'complete' for full QR (Q is n x n, R is n x p)
        matrix_name: Name used in error messages
        check_rank: If True, raise NotDecomposableError unless X has full
                    column rank

    Returns:
        QRResult with Q, R, and numerical rank

    Raises:
        NotDecomposableError: If LAPACK fails or X is column rank-deficient
    """
    n, p = X.shape
    try:
        Q, R = np.linalg.qr(X, mode=mode)
    except np.linalg.LinAlgError as e:
        raise NotDecomposableError(
            f"{matrix_name} is not QR-decomposable: {e}",
            matrix_name=matrix_name,
            expected_rank=p,
        ) from e

    # Determine numerical rank from R diagonal
    diag_R = np.abs(np.diag(R))
    if len(diag_R) > 0 and diag_R.max() > 0:
        tol = RANK_TOLERANCE_FACTOR * max(X.shape) * np.finfo(X.dtype).eps * diag_R.max()
        rank = int(np.sum(diag_R > tol))
    else:
        rank = 0

    if check_rank and rank < p:
        raise NotDecomposableError(
            f"{matrix_name} is not QR-decomposable to full column rank: "
            f"rank={rank}, expected={p}. "
            f"This indicates perfect multicollinearity or too few observations.",
            matrix_name=matrix_name,
            rank=rank,
            expected_rank=p,
        )

    return QRResult(Q=Q, R=R, rank=rank)


def invert_upper_triangular(
    R: NDArray[np.floating[Any]],
    matrix_name: str = 'R',
) -> NDArray[np.floating[Any]]:
    """
    Invert a square upper triangular matrix by back substitution.

    Raises:
        SingularMatrixError: If R has a zero (or non-finite) diagonal
    """
    p = R.shape[0]
    diag_R = np.abs(np.diag(R))
    if p == 0 or not np.all(np.isfinite(R)) or np.any(diag_R == 0):
        raise SingularMatrixError(
            f"{matrix_name} is not invertible: zero on the diagonal",
            matrix_name=matrix_name,
            rank=int(np.sum(diag_R > 0)),
            expected_rank=p,
        )

    R_inv = solve_triangular(R, np.eye(p), lower=False)
    if not np.all(np.isfinite(R_inv)):
        raise SingularMatrixError(
            f"{matrix_name} is not invertible: inverse has non-finite entries",
            matrix_name=matrix_name,
            condition_number=float(diag_R.max() / diag_R.min()),
            expected_rank=p,
        )
    return R_inv


def qr_solve(
    qr: QRResult,
    y: NDArray[np.floating[Any]],
    R_inv: NDArray[np.floating[Any]] | None = None,
) -> NDArray[np.floating[Any]]:
    """
    Least squares solution β = R⁻¹ Q'y from an existing decomposition.

    Args:
        qr: Full-rank reduced decomposition of X
        y: Response vector (n,)
        R_inv: Precomputed R⁻¹, if available

    Returns:
        Coefficient vector β (p,)
    """
    p = qr.R.shape[1]
    if R_inv is None:
        R_inv = invert_upper_triangular(qr.R[:p, :p], matrix_name="R factor of X")
    return R_inv @ (qr.Q[:, :p].T @ y)


def gram_inverse(R_inv: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
    """
    (X'X)⁻¹ = (R'R)⁻¹ = R⁻¹ R⁻ᵀ, without forming X'X.

    Raises:
        SingularMatrixError: If the product is not finite
    """
    bread = R_inv @ R_inv.T
    if not np.all(np.isfinite(bread)):
        raise SingularMatrixError(
            "R'R matrix from QR-decomposed X is not invertible",
            matrix_name="R'R",
        )
    return bread


def leverage(Q: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
    """
    Diagonal of the hat matrix, h_ii = Σ_j Q_ij², from the reduced Q factor.
    """
    return np.einsum('ij,ij->i', Q, Q)


def invert_symmetric(
    A: NDArray[np.floating[Any]],
    matrix_name: str,
) -> NDArray[np.floating[Any]]:
    """
    Invert a symmetric positive definite matrix.

    Raises:
        SingularMatrixError: If A is singular or numerically so
    """
    p = A.shape[0]
    if p == 0 or not np.all(np.isfinite(A)):
        raise SingularMatrixError(
            f"{matrix_name} is not invertible: empty or non-finite entries",
            matrix_name=matrix_name,
            expected_rank=p,
        )
    cond = np.linalg.cond(A)
    if not np.isfinite(cond) or cond > 1.0 / np.finfo(np.float64).eps:
        raise SingularMatrixError(
            f"{matrix_name} is not invertible (condition number {cond:.3g})",
            matrix_name=matrix_name,
            condition_number=float(cond),
            rank=int(np.linalg.matrix_rank(A)),
            expected_rank=p,
        )
    try:
        A_inv = np.linalg.inv(A)
    except np.linalg.LinAlgError as e:
        raise SingularMatrixError(
            f"{matrix_name} is not invertible: {e}",
            matrix_name=matrix_name,
            condition_number=float(cond),
            expected_rank=p,
        ) from e
    # Symmetrize to remove round-off asymmetry
    return 0.5 * (A_inv + A_inv.T)
