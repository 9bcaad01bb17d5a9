"""
Coefficient covariance estimators for OLS.

All estimators share the bread B = (X'X)⁻¹ = (R'R)⁻¹, taken from the QR
factor so the Gram matrix is never formed. With n observations, p
regressors and residuals e:

    homoscedastic  V = σ² B,               σ² = e'e / (n - p)
    HC0            V = B X' diag(e²) X B
    HC1            V = HC0 · n / (n - p)
    HC2            V = B X' diag(e² / (1 - h)) X B
    HC3            V = B X' diag(e² / (1 - h)²) X B
    clustered      V = B (Σ_g X_g' e_g e_g' X_g) B · G/(G-1) · (n-1)/(n-p)

where h is the diagonal of the hat matrix and G the number of clusters.

References:
    White, H. (1980). A heteroskedasticity-consistent covariance matrix
    estimator and a direct test for heteroskedasticity.
    MacKinnon, J. G., & White, H. (1985). Some heteroskedasticity-consistent
    covariance matrix estimators with improved finite sample properties.
"""

from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from amita.core.exceptions import SingularMatrixError, ValidationError
from amita.inference.se import SEType, SolverSEType

# Leverage this close to 1 makes HC2/HC3 weights blow up
_LEVERAGE_LIMIT = 1.0 - 1e-10


def homoscedastic_vcov(
    residuals: NDArray[np.floating[Any]],
    bread: NDArray[np.floating[Any]],
    df_resid: int,
) -> tuple[NDArray[np.floating[Any]], float]:
    """
    Classical covariance σ²(X'X)⁻¹.

    Returns:
        (vcov, sigma_sq). sigma_sq is NaN when df_resid <= 0.
    """
    if df_resid <= 0:
        sigma_sq = float('nan')
    else:
        sigma_sq = float(residuals @ residuals) / df_resid
    return sigma_sq * bread, sigma_sq


def hc_vcov(
    X: NDArray[np.floating[Any]],
    residuals: NDArray[np.floating[Any]],
    bread: NDArray[np.floating[Any]],
    kind: SEType,
    hat_diag: NDArray[np.floating[Any]] | None = None,
) -> NDArray[np.floating[Any]]:
    """
    Heteroscedasticity-consistent sandwich covariance (HC0-HC3).

    Args:
        X: Design matrix (n x p)
        residuals: OLS residuals (n,)
        bread: (X'X)⁻¹ (p x p)
        kind: One of SEType.HC0 .. SEType.HC3
        hat_diag: Leverage h_ii (n,); required for HC2 and HC3

    Raises:
        SingularMatrixError: If some observation has leverage 1 (HC2/HC3)
    """
    n, p = X.shape
    u_squared = residuals ** 2

    if kind in (SEType.HC2, SEType.HC3):
        if hat_diag is None:
            raise ValueError(f"{kind.value} requires the hat matrix diagonal")
        if np.any(hat_diag >= _LEVERAGE_LIMIT):
            bad = np.flatnonzero(hat_diag >= _LEVERAGE_LIMIT)
            raise SingularMatrixError(
                f"{kind.value} is undefined: observations {bad[:10].tolist()} "
                f"have leverage 1, so 1 - h is not invertible",
                matrix_name='I - H',
            )
        one_minus_h = 1.0 - hat_diag
        omega = u_squared / one_minus_h if kind == SEType.HC2 else u_squared / one_minus_h ** 2
        scale = 1.0
    elif kind == SEType.HC0:
        omega = u_squared
        scale = 1.0
    elif kind == SEType.HC1:
        omega = u_squared
        scale = n / (n - p) if n > p else float('nan')
    else:
        raise ValueError(f"Not a heteroscedasticity-consistent type: {kind!r}")

    # X' diag(ω) X = (X * ω)' X
    meat = X.T @ (X * omega[:, np.newaxis])
    return scale * (bread @ meat @ bread)


def cluster_vcov(
    X: NDArray[np.floating[Any]],
    residuals: NDArray[np.floating[Any]],
    bread: NDArray[np.floating[Any]],
    clusters: NDArray[np.integer[Any]],
) -> NDArray[np.floating[Any]]:
    """
    Cluster-robust (CR1) covariance.

    Scores X_i e_i are summed within each cluster (pandas group-by) and the
    meat is the outer product of the cluster sums.

    Raises:
        ValidationError: If clusters is misaligned with X or has < 2 groups
    """
    n, p = X.shape
    clusters = np.asarray(clusters)
    if clusters.shape != (n,):
        raise ValidationError(
            f"clusters: expected {n} tags aligned to X, got shape {clusters.shape}"
        )

    n_clusters = int(len(np.unique(clusters)))
    if n_clusters < 2:
        raise ValidationError(
            f"Need at least 2 clusters for cluster-robust SEs, got {n_clusters}"
        )

    scores = X * residuals[:, np.newaxis]
    cluster_scores = pd.DataFrame(scores).groupby(clusters, sort=True).sum().to_numpy()
    meat = cluster_scores.T @ cluster_scores

    if n > p:
        adjustment = (n_clusters / (n_clusters - 1)) * ((n - 1) / (n - p))
    else:
        adjustment = float('nan')
    return adjustment * (bread @ meat @ bread)


def compute_vcov(
    se_type: SolverSEType,
    X: NDArray[np.floating[Any]],
    residuals: NDArray[np.floating[Any]],
    bread: NDArray[np.floating[Any]],
    hat_diag: NDArray[np.floating[Any]] | None = None,
) -> tuple[NDArray[np.floating[Any]], dict[str, Any]]:
    """
    Dispatch on the SE type.

    Returns:
        (vcov, info) where info holds estimator details for Result.info
    """
    n, p = X.shape
    kind = se_type.kind

    if kind == SEType.HOMOSCEDASTIC:
        vcov, sigma_sq = homoscedastic_vcov(residuals, bread, n - p)
        return vcov, {'se_type': kind.value, 'sigma_sq': sigma_sq}

    if kind == SEType.CLUSTERED:
        clusters = se_type.clusters
        vcov = cluster_vcov(X, residuals, bread, clusters)
        return vcov, {
            'se_type': kind.value,
            'n_clusters': int(len(np.unique(clusters))),
        }

    vcov = hc_vcov(X, residuals, bread, kind, hat_diag=hat_diag)
    return vcov, {'se_type': kind.value}


def standard_errors(vcov: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
    """√diag(V), with tiny negative round-off clipped to zero."""
    d = np.diag(vcov).copy()
    d[(d < 0) & (d > -1e-14 * max(1.0, float(np.max(np.abs(d)))))] = 0.0
    with np.errstate(invalid='ignore'):
        return np.sqrt(d)
