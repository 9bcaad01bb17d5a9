"""
Logistic link and binomial likelihood.

The logit model is P(y=1 | x) = sigmoid(x'β). Everything the MLE engine
needs about that model lives here:

- LogitLink: g(μ) = log(μ/(1-μ)), its inverse (the sigmoid) and dμ/dη
- Binomial: variance, log-likelihood, deviance and AIC for binary data

All evaluations go through log-sigmoid forms so that extreme linear
predictors never produce log(0) or overflow in exp.

References:
    McCullagh, P., & Nelder, J. A. (1989). Generalized Linear Models (2nd ed.)
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.special import expit, log_expit


def sigmoid(z: ArrayLike) -> NDArray | float:
    """
    Logistic function 1 / (1 + e⁻ᶻ).

    Stable for any finite or infinite input: sigmoid(±inf) is exactly 1/0.
    Scalars in, scalar out.
    """
    out = expit(np.asarray(z, dtype=np.float64))
    return float(out) if np.ndim(out) == 0 else out


class LogitLink:
    """Logit link: g(μ) = log(μ/(1-μ)). Canonical for the binomial family."""

    @property
    def name(self) -> str:
        return 'logit'

    def link(self, mu: NDArray) -> NDArray:
        """g(μ) → η."""
        mu = np.clip(mu, 1e-10, 1 - 1e-10)
        return np.log(mu / (1 - mu))

    def linkinv(self, eta: NDArray) -> NDArray:
        """g⁻¹(η) → μ, the sigmoid."""
        return expit(eta)

    def mu_eta(self, eta: NDArray) -> NDArray:
        """dμ/dη = μ(1-μ)."""
        p = expit(eta)
        return p * (1.0 - p)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class Binomial:
    """Binomial family for 0/1 responses. Link: logit.

    V(μ) = μ(1-μ)
    log L = Σ [y log μ + (1-y) log(1-μ)]
    Deviance = -2 log L  (the saturated model has log L = 0 for binary y)
    """

    def __init__(self) -> None:
        self._link = LogitLink()

    @property
    def name(self) -> str:
        return 'binomial'

    @property
    def link(self) -> LogitLink:
        return self._link

    def variance(self, mu: NDArray) -> NDArray:
        """Variance function V(μ)."""
        return mu * (1.0 - mu)

    def log_likelihood_eta(self, y: NDArray, eta: NDArray) -> float:
        """
        Log-likelihood evaluated from the linear predictor.

        Uses log σ(η) and log σ(-η) = log(1-σ(η)) directly.
        """
        return float(np.sum(y * log_expit(eta) + (1.0 - y) * log_expit(-eta)))

    def deviance_eta(self, y: NDArray, eta: NDArray) -> float:
        """Deviance -2 log L for binary data."""
        return -2.0 * self.log_likelihood_eta(y, eta)

    def aic(self, y: NDArray, eta: NDArray, rank: int) -> float:
        """AIC = -2 log L + 2 rank."""
        return self.deviance_eta(y, eta) + 2.0 * rank

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(link={self._link.name!r})"
