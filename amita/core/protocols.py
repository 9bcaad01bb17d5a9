"""
Core protocols for amita.

These define the structural interfaces that every estimation engine must
satisfy. We use Protocol (structural typing) rather than ABC (nominal typing)
so that downstream models depend only on capabilities, never on solver
internals.

Design Principles:
    - Minimal contracts: prescribe only what's truly universal
    - Type-safe: Solver is generic over its Results type
    - Fail loudly: every accessor raises NotSolvedError when unset
"""

from typing import Protocol, TypeVar, runtime_checkable

import numpy as np
from numpy.typing import NDArray

R_co = TypeVar('R_co', covariant=True)  # Results type
S = TypeVar('S', bound='Solver')


@runtime_checkable
class Results(Protocol):
    """
    Read-only view of an estimation.

    Every accessor raises NotSolvedError if the pipeline stage that
    populates the field has not run yet. No accessor returns a placeholder.
    """

    def coef(self) -> NDArray[np.floating]:
        """Estimated coefficient vector (p,)."""
        ...

    def se(self) -> NDArray[np.floating]:
        """Standard errors of the coefficients (p,)."""
        ...

    def t(self) -> NDArray[np.floating]:
        """Test statistics β / se (p,)."""
        ...

    def p_vals(self) -> NDArray[np.floating]:
        """Two-sided p-values of H0: β = 0 (p,)."""
        ...

    def summary(self) -> str:
        """Human-readable coefficient table."""
        ...


@runtime_checkable
class Solver(Protocol[R_co]):
    """
    Protocol for estimation engines.

    A solver is constructed from validated (y, X), optionally configured
    through chainable setters, and then solved exactly once.

    Type Parameters:
        R_co: The Results type this solver produces
    """

    def results(self) -> R_co:
        """
        Current (possibly incomplete) results snapshot.

        Before solve() every payload accessor of the snapshot raises
        NotSolvedError.
        """
        ...

    def solve(self: S) -> S:
        """
        Run the full estimation pipeline.

        Returns:
            The solved solver (terminal and read-only)

        Raises:
            SolverStateError: If the solver was already solved
            NumericalError: If a required matrix is not invertible
            ConvergenceError: If an iterative method fails to converge
        """
        ...
