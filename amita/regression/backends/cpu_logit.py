"""
CPU backend for binary logit via quasi-Newton maximum likelihood.

Minimizes the mean negative log-likelihood

    f(β) = -(1/n) Σ [y_i log p_i + (1 - y_i) log(1 - p_i)],  p = sigmoid(Xβ)

with analytic derivatives

    ∇f(β)  = (1/n) X'(p - y)
    ∇²f(β) = (1/n) X' diag(p(1-p)) X

starting from β = 0. The covariance of β̂ is the inverse of the observed
information n·∇²f(β̂).
"""

import warnings
from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy import stats
from scipy.special import log_expit

from amita.core.exceptions import ConvergenceError
from amita.core.compute.timing import Timer
from amita.core.compute.linalg.qr import invert_symmetric
from amita.core.compute.optimization import (
    DEFAULT_LBFGS_MEMORY,
    OptimizerMethod,
    minimize_smooth,
)
from amita.inference.sandwich import standard_errors
from amita.regression.design import Design
from amita.regression.families import Binomial
from amita.regression.solution import LogitResults


class LogitObjective:
    """Mean negative log-likelihood of the logit model and its derivatives."""

    def __init__(self, X: NDArray, y: NDArray):
        self._X = X
        self._y = y
        self._n = X.shape[0]
        self._link = Binomial().link

    def cost(self, beta: NDArray) -> float:
        eta = self._X @ beta
        ll = np.sum(self._y * log_expit(eta) + (1.0 - self._y) * log_expit(-eta))
        return float(-ll / self._n)

    def gradient(self, beta: NDArray) -> NDArray:
        p = self._link.linkinv(self._X @ beta)
        return self._X.T @ (p - self._y) / self._n

    def hessian(self, beta: NDArray) -> NDArray:
        w = self._link.mu_eta(self._X @ beta)
        return self._X.T @ (self._X * w[:, np.newaxis]) / self._n


class CPUQuasiNewtonBackend:
    """
    CPU backend for logit maximum likelihood.

    Args:
        method: 'lbfgs', 'bfgs' or 'newton'
        max_iter: Iteration cap for the optimizer
        tol: Gradient-norm convergence tolerance
        raise_on_nonconvergence: Raise ConvergenceError (True) or warn
    """

    def __init__(
        self,
        method: OptimizerMethod = 'lbfgs',
        max_iter: int = 1000,
        tol: float = 1e-4,
        raise_on_nonconvergence: bool = True,
        memory: int = DEFAULT_LBFGS_MEMORY,
    ):
        self._method = method
        self._max_iter = max_iter
        self._tol = tol
        self._raise = raise_on_nonconvergence
        self._memory = memory

    @property
    def name(self) -> str:
        return f'cpu_{self._method}'

    def solve(self, design: Design) -> LogitResults:
        """
        Fit the logit model.

        Raises:
            ConvergenceError: If the gradient criterion is not met and
                              raise_on_nonconvergence is set
            SingularMatrixError: If the information matrix is singular
        """
        timer = Timer()
        timer.start()

        X = design.X
        y = design.y
        n, p = design.n, design.p
        family = Binomial()
        objective = LogitObjective(X, y)
        result_warnings: list[str] = []

        # === Optimization ===
        with timer.section('optimization'):
            outcome = minimize_smooth(
                objective.cost,
                objective.gradient,
                np.zeros(p),
                hess=objective.hessian,
                method=self._method,
                max_iter=self._max_iter,
                tol=self._tol,
                memory=self._memory,
            )

        if not outcome.converged:
            msg = (
                f"Logit optimizer ({outcome.method}) did not converge after "
                f"{outcome.iterations} iterations: gradient norm "
                f"{outcome.grad_norm:.3e} > tolerance {self._tol:.3e} "
                f"({outcome.reason}). Message: {outcome.message}"
            )
            if self._raise:
                raise ConvergenceError(
                    msg,
                    iterations=outcome.iterations,
                    final_change=outcome.grad_norm,
                    reason=outcome.reason,
                    threshold=self._tol,
                )
            warnings.warn(msg, RuntimeWarning, stacklevel=4)
            result_warnings.append(msg)

        coef = outcome.x
        eta = X @ coef
        fitted = family.link.linkinv(eta)

        # === Variance ===
        with timer.section('variance'):
            information = n * objective.hessian(coef)
            vcov = invert_symmetric(information, "information matrix")
            se = standard_errors(vcov)

        # === Inference ===
        with timer.section('inference'):
            with np.errstate(divide='ignore', invalid='ignore'):
                z = coef / se
            p_vals = 2.0 * stats.norm.sf(np.abs(z))

        # === Fit statistics ===
        with timer.section('fit_statistics'):
            loglik = family.log_likelihood_eta(y, eta)
            null_loglik = family.log_likelihood_eta(y, np.zeros(n))
            deviance = -2.0 * loglik
            null_deviance = -2.0 * null_loglik
            aic = family.aic(y, eta, p)
            pseudo_r_sq = 1.0 - loglik / null_loglik

        timer.stop()

        info: dict[str, Any] = {
            'method': outcome.method,
            'converged': outcome.converged,
            'iterations': outcome.iterations,
            'grad_norm': outcome.grad_norm,
            'reason': outcome.reason,
            'tolerance': self._tol,
            'optimizer_message': outcome.message,
        }

        results = LogitResults(
            n_obs=n,
            n_regressors=p,
            names=design.names,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(result_warnings),
        )
        return results.evolve(
            _coef=coef,
            _fitted=fitted,
            _linear_predictor=eta,
            _n_iter=outcome.iterations,
            _grad_norm=outcome.grad_norm,
            _converged=outcome.converged,
            _method=outcome.method,
            _vcov=vcov,
            _se=se,
            _t=z,
            _p_vals=p_vals,
            _log_likelihood=loglik,
            _null_log_likelihood=null_loglik,
            _deviance=deviance,
            _null_deviance=null_deviance,
            _aic=aic,
            _pseudo_r_sq=pseudo_r_sq,
        )
