"""
Quasi-Newton minimization with a gradient-norm convergence test.

Strategies (all with a step-length line search):
    lbfgs:  limited-memory BFGS (SciPy L-BFGS-B, no bounds)
    bfgs:   full-memory BFGS
    newton: Newton-CG driven by an analytic Hessian

SciPy's own stopping rules differ per method (projected-gradient infinity
norm, relative function change, relative step size). The outcome returned
here ignores them and re-evaluates the gradient at the final point, so
"converged" means the same thing whichever strategy ran.
"""

from dataclasses import dataclass
from typing import Any, Callable, Literal

import numpy as np
from numpy.typing import NDArray
from scipy.optimize import minimize

OptimizerMethod = Literal['lbfgs', 'bfgs', 'newton']

OPTIMIZER_METHODS: tuple[str, ...] = ('lbfgs', 'bfgs', 'newton')

# Number of correction pairs kept by L-BFGS
DEFAULT_LBFGS_MEMORY = 10

_SCIPY_METHOD = {
    'lbfgs': 'L-BFGS-B',
    'bfgs': 'BFGS',
    'newton': 'Newton-CG',
}


@dataclass(frozen=True)
class OptimizationOutcome:
    """
    Final state of a minimization run.

    Attributes:
        x: Final parameter vector
        fun: Objective value at x
        grad_norm: Euclidean norm of the gradient at x
        iterations: Iterations performed by the optimizer
        converged: Whether grad_norm <= tolerance
        reason: 'gradient_tolerance', 'max_iterations', or 'line_search'
        message: The optimizer's own termination message
        method: Strategy that produced this outcome
    """
    x: NDArray[np.floating[Any]]
    fun: float
    grad_norm: float
    iterations: int
    converged: bool
    reason: str
    message: str
    method: str


def minimize_smooth(
    fun: Callable[[NDArray], float],
    jac: Callable[[NDArray], NDArray],
    x0: NDArray[np.floating[Any]],
    *,
    hess: Callable[[NDArray], NDArray] | None = None,
    method: OptimizerMethod = 'lbfgs',
    max_iter: int = 1000,
    tol: float = 1e-4,
    memory: int = DEFAULT_LBFGS_MEMORY,
) -> OptimizationOutcome:
    """
    Minimize a smooth objective with analytic derivatives.

    Args:
        fun: Objective f(x)
        jac: Gradient ∇f(x)
        x0: Starting point
        hess: Hessian ∇²f(x); required for method='newton'
        method: Strategy name, one of OPTIMIZER_METHODS
        max_iter: Iteration cap
        tol: Gradient-norm tolerance
        memory: Correction pairs for L-BFGS

    Returns:
        OptimizationOutcome. Non-convergence is reported, not raised;
        the caller decides how to surface it.

    Raises:
        ValueError: If method is unknown, hess is missing for 'newton',
                    or max_iter/tol are not positive
    """
    if method not in _SCIPY_METHOD:
        raise ValueError(
            f"Unknown optimizer method: {method!r}. "
            f"Valid methods: {', '.join(OPTIMIZER_METHODS)}"
        )
    if max_iter < 1:
        raise ValueError(f"max_iter must be a positive integer, got {max_iter}")
    if not tol > 0:
        raise ValueError(f"tol must be positive, got {tol}")

    x0 = np.asarray(x0, dtype=np.float64)
    p = x0.shape[0]

    if method == 'lbfgs':
        # L-BFGS-B tests the infinity norm; scale so that ||g||_inf <= gtol
        # implies ||g||_2 <= tol.
        options = {
            'maxiter': max_iter,
            'maxcor': memory,
            'gtol': tol / np.sqrt(max(p, 1)),
            'ftol': np.finfo(np.float64).eps,
        }
        res = minimize(fun, x0, jac=jac, method='L-BFGS-B', options=options)
    elif method == 'bfgs':
        options = {'maxiter': max_iter, 'gtol': tol, 'norm': 2}
        res = minimize(fun, x0, jac=jac, method='BFGS', options=options)
    else:
        if hess is None:
            raise ValueError("method='newton' requires an analytic Hessian")
        options = {'maxiter': max_iter, 'xtol': 1e-10}
        res = minimize(fun, x0, jac=jac, hess=hess, method='Newton-CG', options=options)

    x = np.asarray(res.x, dtype=np.float64)
    grad_norm = float(np.linalg.norm(jac(x)))
    iterations = int(getattr(res, 'nit', 0))
    converged = bool(np.isfinite(grad_norm) and grad_norm <= tol)

    if converged:
        reason = 'gradient_tolerance'
    elif iterations >= max_iter:
        reason = 'max_iterations'
    else:
        reason = 'line_search'

    return OptimizationOutcome(
        x=x,
        fun=float(fun(x)),
        grad_norm=grad_norm,
        iterations=iterations,
        converged=converged,
        reason=reason,
        message=str(res.message),
        method=method,
    )
