"""
CPU reference backend for linear regression.

Uses QR decomposition via LAPACK (through NumPy/SciPy). The factorization
happens once, when the solver is constructed; solve() then runs the
coefficient, variance, inference and goodness-of-fit stages on it.
"""

import warnings
from typing import Any

import numpy as np
from scipy import stats

from amita.core.compute.timing import Timer
from amita.core.compute.linalg.qr import (
    QRResult,
    qr_decompose,
    qr_solve,
    invert_upper_triangular,
    gram_inverse,
    leverage,
)
from amita.inference.se import SEType, SolverSEType
from amita.inference.sandwich import compute_vcov, standard_errors
from amita.regression.design import Design
from amita.regression.solution import OLSResults


class CPUQRBackend:
    """
    CPU backend using QR decomposition.

    Produces OLSResults from a Design and a SolverSEType.
    """

    @property
    def name(self) -> str:
        return 'cpu_qr'

    def decompose(self, design: Design) -> QRResult:
        """
        Factorize X = QR (reduced).

        Raises:
            NotDecomposableError: If X does not have full column rank
        """
        qr = qr_decompose(design.X, mode='reduced', matrix_name='X')
        qr.Q.flags.writeable = False
        qr.R.flags.writeable = False
        return qr

    def solve(
        self,
        design: Design,
        qr: QRResult,
        se_type: SolverSEType,
        *,
        r_squared: bool = True,
    ) -> OLSResults:
        """
        Solve OLS from an existing decomposition.

        Algorithm:
            1. β = R⁻¹ Q'y; fitted values and residuals
            2. Covariance under se_type, bread (R'R)⁻¹ = R⁻¹R⁻ᵀ
            3. t = β / se, p-values from Student's t with n - p - 1 df
            4. R² and adjusted R² (optional)

        Raises:
            SingularMatrixError: If R or R'R cannot be inverted, or HC2/HC3
                                 meet an observation with leverage 1
            ValidationError: If cluster tags do not fit the design
        """
        timer = Timer()
        timer.start()

        X = design.X
        y = design.y
        n, p = design.n, design.p
        result_warnings: list[str] = []

        # === Coefficients ===
        with timer.section('coefficients'):
            R_inv = invert_upper_triangular(qr.R[:p, :p], matrix_name="R factor of X")
            coef = qr_solve(qr, y, R_inv=R_inv)
            fitted = X @ coef
            resid = y - fitted
            rss = float(resid @ resid)
            tss = float(np.sum((y - np.mean(y)) ** 2))

        # === Variance ===
        with timer.section('variance'):
            bread = gram_inverse(R_inv)
            hat_diag = leverage(qr.Q[:, :p]) if se_type.kind in (SEType.HC2, SEType.HC3) else None
            vcov, vcov_info = compute_vcov(se_type, X, resid, bread, hat_diag=hat_diag)
            se = standard_errors(vcov)

        # === Inference ===
        with timer.section('inference'):
            df_resid = n - p - 1
            with np.errstate(divide='ignore', invalid='ignore'):
                t_stats = coef / se
            if df_resid > 0:
                p_vals = 2.0 * stats.t.sf(np.abs(t_stats), df_resid)
            else:
                p_vals = np.full(p, np.nan)
                msg = (
                    f"Residual degrees of freedom n - p - 1 = {df_resid} <= 0: "
                    f"p-values are undefined"
                )
                warnings.warn(msg, RuntimeWarning, stacklevel=4)
                result_warnings.append(msg)

        # === Goodness of fit ===
        r_sq = r_sq_adj = None
        if r_squared:
            with timer.section('r_squared'):
                r_sq, r_sq_adj = _r_squared(rss, tss, n, p)

        timer.stop()

        info: dict[str, Any] = {
            'method': 'qr',
            'rank': qr.rank,
            **vcov_info,
        }

        results = OLSResults(
            n_obs=n,
            n_regressors=p,
            names=design.names,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(result_warnings),
        )
        results = results.evolve(
            _coef=coef, _fitted=fitted, _resid=resid, _rss=rss, _tss=tss,
        )
        results = results.evolve(
            _vcov=vcov, _se=se, _se_type=se_type.kind,
            _sigma_sq=vcov_info.get('sigma_sq'),
        )
        results = results.evolve(_t=t_stats, _p_vals=p_vals, _df_resid=df_resid)
        if r_squared:
            results = results.evolve(_r_sq=r_sq, _r_sq_adj=r_sq_adj)
        return results


def _r_squared(rss: float, tss: float, n: int, p: int) -> tuple[float, float]:
    """R² = 1 - RSS/TSS; adjusted with n - p - 1 and n - 1 degrees of freedom."""
    if tss == 0:
        return float('nan'), float('nan')
    r_sq = 1.0 - rss / tss
    df_resid = n - p - 1
    if df_resid <= 0 or n <= 1:
        return r_sq, float('nan')
    r_sq_adj = 1.0 - (rss / df_resid) / (tss / (n - 1))
    return r_sq, r_sq_adj
