"""
Regression result types.

OLSResults and LogitResults are immutable snapshots. Every payload field
starts out unset; the solver pipeline fills them stage by stage and
publishes the finished snapshot once. Accessors raise NotSolvedError for
fields that are still unset.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from amita.core.result import Result
from amita.inference.se import SEType

_Array = NDArray[np.floating[Any]]


@dataclass(frozen=True)
class OLSResults(Result):
    """
    Ordinary least squares results.

    Stages and the fields they populate:
        coefficients:    coef, fitted, resid, rss, tss
        variance:        vcov, se, se_type, sigma_sq
        inference:       t, p_vals, df_resid
        goodness of fit: r_sq, r_sq_adj
    """
    n_obs: int = 0
    n_regressors: int = 0
    names: tuple[str, ...] = ()

    _coef: _Array | None = None
    _fitted: _Array | None = None
    _resid: _Array | None = None
    _rss: float | None = None
    _tss: float | None = None

    _vcov: _Array | None = None
    _se: _Array | None = None
    _se_type: SEType | None = None
    _sigma_sq: float | None = None

    _t: _Array | None = None
    _p_vals: _Array | None = None
    _df_resid: int | None = None

    _r_sq: float | None = None
    _r_sq_adj: float | None = None

    # === Results protocol ===

    def coef(self) -> _Array:
        """Coefficient vector β (p,)."""
        return self._require('coef')

    def se(self) -> _Array:
        """Standard errors √diag(V) under the configured SE type."""
        return self._require('se')

    def t(self) -> _Array:
        """t-statistics β / se."""
        return self._require('t')

    def p_vals(self) -> _Array:
        """Two-sided p-values from Student's t with df_resid() degrees of freedom."""
        return self._require('p_vals')

    # === Further accessors ===

    def fitted(self) -> _Array:
        return self._require('fitted')

    def resid(self) -> _Array:
        return self._require('resid')

    def rss(self) -> float:
        return self._require('rss')

    def tss(self) -> float:
        return self._require('tss')

    def vcov(self) -> _Array:
        """Coefficient covariance matrix (p x p)."""
        return self._require('vcov')

    def se_type(self) -> SEType:
        return self._require('se_type')

    def sigma_sq(self) -> float:
        """Residual variance e'e / (n - p); present for homoscedastic SEs."""
        return self._require('sigma_sq')

    def df_resid(self) -> int:
        """Degrees of freedom of the t reference distribution, n - p - 1."""
        return self._require('df_resid')

    def r_sq(self) -> float:
        return self._require('r_sq')

    def r_sq_adj(self) -> float:
        return self._require('r_sq_adj')

    def summary(self) -> str:
        """Coefficient table with goodness of fit."""
        coef, se, t, p = self.coef(), self.se(), self.t(), self.p_vals()

        lines = [
            "OLS Regression Results",
            "=" * 72,
            f"Observations: {self.n_obs}",
            f"Regressors: {self.n_regressors}",
            f"SE type: {self.se_type().value}",
        ]
        if self.is_set('r_sq'):
            lines.append(f"R-squared: {self.r_sq():.6f}")
            lines.append(f"Adj. R-squared: {self.r_sq_adj():.6f}")
        lines.append(f"Residual DF: {self.df_resid()}")
        lines.extend(_coefficient_table(self.names, coef, se, t, p, 't value', 'Pr(>|t|)'))
        lines.append(f"Backend: {self.backend_name}")
        if self.timing:
            lines.append(f"Time: {self.timing.get('total_seconds', 0):.4f}s")
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        state = f"r_sq={self._r_sq:.4f}" if self._r_sq is not None else (
            "solved" if self._coef is not None else "unsolved"
        )
        return f"OLSResults(n={self.n_obs}, p={self.n_regressors}, {state})"


@dataclass(frozen=True)
class LogitResults(Result):
    """
    Binary logit maximum-likelihood results.

    Stages and the fields they populate:
        optimization: coef, fitted, linear_predictor, n_iter, grad_norm,
                      converged, method
        variance:     vcov, se
        inference:    t (Wald z), p_vals
        fit:          log_likelihood, null_log_likelihood, deviance,
                      null_deviance, aic, pseudo_r_sq
    """
    n_obs: int = 0
    n_regressors: int = 0
    names: tuple[str, ...] = ()

    _coef: _Array | None = None
    _fitted: _Array | None = None
    _linear_predictor: _Array | None = None
    _n_iter: int | None = None
    _grad_norm: float | None = None
    _converged: bool | None = None
    _method: str | None = None

    _vcov: _Array | None = None
    _se: _Array | None = None

    _t: _Array | None = None
    _p_vals: _Array | None = None

    _log_likelihood: float | None = None
    _null_log_likelihood: float | None = None
    _deviance: float | None = None
    _null_deviance: float | None = None
    _aic: float | None = None
    _pseudo_r_sq: float | None = None

    # === Results protocol ===

    def coef(self) -> _Array:
        return self._require('coef')

    def se(self) -> _Array:
        return self._require('se')

    def t(self) -> _Array:
        """Wald statistics β / se."""
        return self._require('t')

    def p_vals(self) -> _Array:
        """Two-sided p-values from the standard normal."""
        return self._require('p_vals')

    # === Further accessors ===

    def fitted(self) -> _Array:
        """Fitted probabilities sigmoid(Xβ)."""
        return self._require('fitted')

    def linear_predictor(self) -> _Array:
        return self._require('linear_predictor')

    def vcov(self) -> _Array:
        """Inverse observed information (n·H)⁻¹."""
        return self._require('vcov')

    def n_iter(self) -> int:
        return self._require('n_iter')

    def grad_norm(self) -> float:
        """Euclidean norm of the mean-loss gradient at β̂."""
        return self._require('grad_norm')

    def converged(self) -> bool:
        return self._require('converged')

    def method(self) -> str:
        return self._require('method')

    def log_likelihood(self) -> float:
        return self._require('log_likelihood')

    def null_log_likelihood(self) -> float:
        """Log-likelihood at β = 0."""
        return self._require('null_log_likelihood')

    def deviance(self) -> float:
        return self._require('deviance')

    def null_deviance(self) -> float:
        return self._require('null_deviance')

    def aic(self) -> float:
        return self._require('aic')

    def pseudo_r_sq(self) -> float:
        """McFadden's 1 - log L / log L(β=0)."""
        return self._require('pseudo_r_sq')

    def summary(self) -> str:
        coef, se, z, p = self.coef(), self.se(), self.t(), self.p_vals()

        lines = [
            "Logit Regression Results",
            "=" * 72,
            f"Observations: {self.n_obs}",
            f"Regressors: {self.n_regressors}",
            f"Method: {self.method()} ({self.n_iter()} iterations, "
            f"converged={self.converged()}, |grad|={self.grad_norm():.3e})",
        ]
        if self.is_set('log_likelihood'):
            lines.append(f"Log-likelihood: {self.log_likelihood():.6f}")
            lines.append(f"Deviance: {self.deviance():.6f} (null {self.null_deviance():.6f})")
            lines.append(f"AIC: {self.aic():.6f}")
            lines.append(f"Pseudo R-squared: {self.pseudo_r_sq():.6f}")
        lines.extend(_coefficient_table(self.names, coef, se, z, p, 'z value', 'Pr(>|z|)'))
        lines.append(f"Backend: {self.backend_name}")
        if self.timing:
            lines.append(f"Time: {self.timing.get('total_seconds', 0):.4f}s")
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        state = "solved" if self._coef is not None else "unsolved"
        return f"LogitResults(n={self.n_obs}, p={self.n_regressors}, {state})"


def _coefficient_table(
    names: tuple[str, ...],
    coef: _Array,
    se: _Array,
    stat: _Array,
    p_vals: _Array,
    stat_label: str,
    p_label: str,
) -> list[str]:
    if len(names) != len(coef):
        names = tuple(f'x{i}' for i in range(len(coef)))
    width = max([8] + [len(n) for n in names])
    lines = [
        "",
        "Coefficients:",
        "-" * 72,
        f"{'':<{width}} {'Estimate':>14} {'Std.Error':>12} {stat_label:>10} {p_label:>12}",
        "-" * 72,
    ]
    for name, b, s, t, p in zip(names, coef, se, stat, p_vals):
        se_str = f"{s:12.6f}" if np.isfinite(s) else f"{'NA':>12}"
        t_str = f"{t:10.3f}" if np.isfinite(t) else f"{'NA':>10}"
        p_str = f"{p:12.4g}" if np.isfinite(p) else f"{'NA':>12}"
        lines.append(f"{name:<{width}} {b:14.6f} {se_str} {t_str} {p_str}")
    lines.append("-" * 72)
    return lines
