"""
Tests for the QR kernels in core/compute/linalg/qr.py.

Validates:
    - qr_decompose: reconstruction, rank detection, rank-deficiency errors
    - invert_upper_triangular / gram_inverse against direct inverses
    - qr_solve against the normal equations
    - leverage against the explicit hat matrix
    - invert_symmetric on well- and ill-posed inputs
"""

import numpy as np
import pytest

from amita.core.compute.linalg.qr import (
    gram_inverse,
    invert_symmetric,
    invert_upper_triangular,
    leverage,
    qr_decompose,
    qr_solve,
)
from amita.core.compute.tolerances import CLOSED_FORM, select_tolerance
from amita.core.exceptions import NotDecomposableError, SingularMatrixError


# ═══════════════════════════════════════════════════════════════════════
# qr_decompose
# ═══════════════════════════════════════════════════════════════════════


class TestQRDecompose:

    def test_reconstruction(self, rng):
        X = rng.standard_normal((20, 4))
        qr = qr_decompose(X)
        np.testing.assert_allclose(qr.Q @ qr.R, X, atol=1e-12)
        assert qr.rank == 4
        assert qr.is_full_rank

    def test_q_orthonormal(self, rng):
        qr = qr_decompose(rng.standard_normal((30, 3)))
        np.testing.assert_allclose(qr.Q.T @ qr.Q, np.eye(3), atol=1e-12)

    def test_collinear_raises(self, collinear_data):
        X, _ = collinear_data
        with pytest.raises(NotDecomposableError) as exc_info:
            qr_decompose(X)
        assert exc_info.value.rank == 2
        assert exc_info.value.expected_rank == 3
        assert exc_info.value.matrix_name == 'X'

    def test_collinear_without_rank_check(self, collinear_data):
        X, _ = collinear_data
        qr = qr_decompose(X, check_rank=False)
        assert qr.rank == 2
        assert not qr.is_full_rank

    def test_more_columns_than_rows_raises(self, rng):
        with pytest.raises(NotDecomposableError, match="rank=2, expected=3"):
            qr_decompose(rng.standard_normal((2, 3)))

    def test_zero_matrix_has_rank_zero(self):
        qr = qr_decompose(np.zeros((4, 2)), check_rank=False)
        assert qr.rank == 0


# ═══════════════════════════════════════════════════════════════════════
# Inverses and solve
# ═══════════════════════════════════════════════════════════════════════


class TestInverses:

    def test_triangular_inverse(self, rng):
        R = np.triu(rng.standard_normal((4, 4))) + 4 * np.eye(4)
        np.testing.assert_allclose(invert_upper_triangular(R) @ R, np.eye(4), atol=1e-12)

    def test_zero_diagonal_raises(self):
        R = np.array([[1.0, 2.0], [0.0, 0.0]])
        with pytest.raises(SingularMatrixError, match="zero on the diagonal"):
            invert_upper_triangular(R, matrix_name='R')

    def test_gram_inverse_matches_xtx_inverse(self, rng):
        X = rng.standard_normal((50, 3))
        qr = qr_decompose(X)
        bread = gram_inverse(invert_upper_triangular(qr.R))
        tol = select_tolerance('qr')
        np.testing.assert_allclose(bread, np.linalg.inv(X.T @ X), rtol=tol.rtol * 1e3, atol=tol.atol)

    def test_qr_solve_matches_normal_equations(self, simple_regression_data):
        X, y, _ = simple_regression_data
        beta = qr_solve(qr_decompose(X), y)
        expected = np.linalg.solve(X.T @ X, X.T @ y)
        np.testing.assert_allclose(beta, expected, rtol=CLOSED_FORM.rtol * 1e2, atol=CLOSED_FORM.atol)

    def test_invert_symmetric(self, rng):
        A = rng.standard_normal((5, 3))
        S = A.T @ A
        S_inv = invert_symmetric(S, 'S')
        np.testing.assert_allclose(S_inv @ S, np.eye(3), atol=1e-10)
        np.testing.assert_array_equal(S_inv, S_inv.T)

    def test_invert_symmetric_singular(self):
        S = np.array([[1.0, 1.0], [1.0, 1.0]])
        with pytest.raises(SingularMatrixError) as exc_info:
            invert_symmetric(S, 'information matrix')
        assert exc_info.value.matrix_name == 'information matrix'
        assert exc_info.value.expected_rank == 2

    def test_invert_symmetric_non_finite(self):
        with pytest.raises(SingularMatrixError, match="non-finite"):
            invert_symmetric(np.array([[np.nan]]), 'A')


# ═══════════════════════════════════════════════════════════════════════
# Leverage
# ═══════════════════════════════════════════════════════════════════════


class TestLeverage:

    def test_matches_hat_matrix(self, rng):
        X = rng.standard_normal((25, 3))
        H = X @ np.linalg.inv(X.T @ X) @ X.T
        h = leverage(qr_decompose(X).Q)
        np.testing.assert_allclose(h, np.diag(H), atol=1e-12)

    def test_sums_to_rank(self, rng):
        h = leverage(qr_decompose(rng.standard_normal((40, 4))).Q)
        assert h.sum() == pytest.approx(4.0)
        assert np.all((h >= 0) & (h <= 1 + 1e-12))
