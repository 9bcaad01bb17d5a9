"""
Tests for the coefficient covariance estimators.

Validates:
    - Homoscedastic covariance against σ²(X'X)⁻¹
    - HC0-HC3 against explicit hat-matrix formulas and their ordering
    - CR1 against a loop over clusters
    - Leverage-1 and cluster-count failure modes
"""

import numpy as np
import pytest

from amita.core.exceptions import SingularMatrixError, ValidationError
from amita.inference.sandwich import (
    cluster_vcov,
    compute_vcov,
    hc_vcov,
    homoscedastic_vcov,
    standard_errors,
)
from amita.inference.se import SEType, SolverSEType


@pytest.fixture
def ols_pieces(heteroscedastic_data):
    X, y = heteroscedastic_data
    bread = np.linalg.inv(X.T @ X)
    beta = bread @ X.T @ y
    resid = y - X @ beta
    hat = np.diag(X @ bread @ X.T)
    return X, resid, bread, hat


def _explicit_sandwich(X, bread, omega):
    return bread @ X.T @ np.diag(omega) @ X @ bread


# ═══════════════════════════════════════════════════════════════════════
# Homoscedastic
# ═══════════════════════════════════════════════════════════════════════


class TestHomoscedastic:

    def test_matches_closed_form(self, ols_pieces):
        X, resid, bread, _ = ols_pieces
        n, p = X.shape
        vcov, sigma_sq = homoscedastic_vcov(resid, bread, n - p)
        assert sigma_sq == pytest.approx(resid @ resid / (n - p))
        np.testing.assert_allclose(vcov, sigma_sq * bread)

    def test_no_degrees_of_freedom(self):
        vcov, sigma_sq = homoscedastic_vcov(np.zeros(2), np.eye(2), 0)
        assert np.isnan(sigma_sq)
        assert np.all(np.isnan(vcov))


# ═══════════════════════════════════════════════════════════════════════
# Heteroscedasticity-consistent
# ═══════════════════════════════════════════════════════════════════════


class TestHC:

    def test_hc0(self, ols_pieces):
        X, resid, bread, _ = ols_pieces
        expected = _explicit_sandwich(X, bread, resid ** 2)
        np.testing.assert_allclose(hc_vcov(X, resid, bread, SEType.HC0), expected, rtol=1e-10)

    def test_hc1_scales_hc0(self, ols_pieces):
        X, resid, bread, _ = ols_pieces
        n, p = X.shape
        hc0 = hc_vcov(X, resid, bread, SEType.HC0)
        hc1 = hc_vcov(X, resid, bread, SEType.HC1)
        np.testing.assert_allclose(hc1, hc0 * n / (n - p), rtol=1e-12)

    def test_hc2(self, ols_pieces):
        X, resid, bread, hat = ols_pieces
        expected = _explicit_sandwich(X, bread, resid ** 2 / (1 - hat))
        np.testing.assert_allclose(
            hc_vcov(X, resid, bread, SEType.HC2, hat_diag=hat), expected, rtol=1e-10,
        )

    def test_hc3(self, ols_pieces):
        X, resid, bread, hat = ols_pieces
        expected = _explicit_sandwich(X, bread, resid ** 2 / (1 - hat) ** 2)
        np.testing.assert_allclose(
            hc_vcov(X, resid, bread, SEType.HC3, hat_diag=hat), expected, rtol=1e-10,
        )

    def test_ordering(self, ols_pieces):
        X, resid, bread, hat = ols_pieces
        se = {
            kind: standard_errors(hc_vcov(X, resid, bread, kind, hat_diag=hat))
            for kind in (SEType.HC0, SEType.HC1, SEType.HC2, SEType.HC3)
        }
        assert np.all(se[SEType.HC0] <= se[SEType.HC1])
        assert np.all(se[SEType.HC0] <= se[SEType.HC2])
        assert np.all(se[SEType.HC2] <= se[SEType.HC3])

    def test_leverage_one_raises(self):
        X = np.column_stack([np.ones(5), [1.0, 0, 0, 0, 0]])
        y = np.array([3.0, 1.0, 2.0, 0.5, 1.5])
        bread = np.linalg.inv(X.T @ X)
        resid = y - X @ (bread @ X.T @ y)
        hat = np.diag(X @ bread @ X.T)
        for kind in (SEType.HC2, SEType.HC3):
            with pytest.raises(SingularMatrixError, match="leverage 1") as exc_info:
                hc_vcov(X, resid, bread, kind, hat_diag=hat)
            assert exc_info.value.matrix_name == 'I - H'
        # HC0 has no leverage term
        assert np.all(np.isfinite(hc_vcov(X, resid, bread, SEType.HC0)))

    def test_hc3_requires_hat(self, ols_pieces):
        X, resid, bread, _ = ols_pieces
        with pytest.raises(ValueError, match="hat matrix"):
            hc_vcov(X, resid, bread, SEType.HC3)

    def test_rejects_non_hc_kind(self, ols_pieces):
        X, resid, bread, _ = ols_pieces
        with pytest.raises(ValueError):
            hc_vcov(X, resid, bread, SEType.CLUSTERED)


# ═══════════════════════════════════════════════════════════════════════
# Clustered
# ═══════════════════════════════════════════════════════════════════════


class TestClustered:

    def test_matches_loop_over_clusters(self, ols_pieces, rng):
        X, resid, bread, _ = ols_pieces
        n, p = X.shape
        clusters = rng.integers(0, 15, size=n)

        meat = np.zeros((p, p))
        groups = np.unique(clusters)
        for g in groups:
            s = X[clusters == g].T @ resid[clusters == g]
            meat += np.outer(s, s)
        G = len(groups)
        expected = (G / (G - 1)) * ((n - 1) / (n - p)) * (bread @ meat @ bread)

        np.testing.assert_allclose(cluster_vcov(X, resid, bread, clusters), expected, rtol=1e-10)

    def test_pair_clusters(self, ols_pieces):
        X, resid, bread, _ = ols_pieces
        n, p = X.shape
        clusters = np.arange(n) // 2
        scores = X * resid[:, None]
        pair_sums = scores[0::2] + scores[1::2]
        G = n // 2
        expected = (G / (G - 1)) * ((n - 1) / (n - p)) * (bread @ pair_sums.T @ pair_sums @ bread)
        np.testing.assert_allclose(cluster_vcov(X, resid, bread, clusters), expected, rtol=1e-10)

    def test_single_cluster_rejected(self, ols_pieces):
        X, resid, bread, _ = ols_pieces
        with pytest.raises(ValidationError, match="at least 2 clusters"):
            cluster_vcov(X, resid, bread, np.zeros(X.shape[0], dtype=np.int64))

    def test_misaligned_tags_rejected(self, ols_pieces):
        X, resid, bread, _ = ols_pieces
        with pytest.raises(ValidationError, match="aligned"):
            cluster_vcov(X, resid, bread, np.array([0, 0, 1, 1]))


# ═══════════════════════════════════════════════════════════════════════
# Dispatch
# ═══════════════════════════════════════════════════════════════════════


class TestComputeVcov:

    def test_homoscedastic_info(self, ols_pieces):
        X, resid, bread, _ = ols_pieces
        _, info = compute_vcov(SolverSEType.homoscedastic(), X, resid, bread)
        assert info['se_type'] == 'homoscedastic'
        assert info['sigma_sq'] > 0

    def test_clustered_info(self, ols_pieces):
        X, resid, bread, _ = ols_pieces
        se_type = SolverSEType.clustered(np.arange(X.shape[0]) % 10)
        _, info = compute_vcov(se_type, X, resid, bread)
        assert info == {'se_type': 'clustered', 'n_clusters': 10}

    def test_robust_dispatches_to_hc3(self, ols_pieces):
        X, resid, bread, hat = ols_pieces
        vcov, info = compute_vcov(SolverSEType.robust(), X, resid, bread, hat_diag=hat)
        assert info['se_type'] == 'HC3'
        np.testing.assert_allclose(vcov, hc_vcov(X, resid, bread, SEType.HC3, hat_diag=hat))


class TestStandardErrors:

    def test_sqrt_diagonal(self):
        np.testing.assert_allclose(standard_errors(np.diag([4.0, 9.0])), [2.0, 3.0])

    def test_round_off_clipped(self):
        se = standard_errors(np.diag([1.0, -1e-20]))
        assert se[1] == 0.0
