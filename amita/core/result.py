"""
Generic result envelope for amita solvers.

The Result class provides the metadata every solver result carries (method
info, timing, backend, warnings). Model-specific results (OLSResults,
LogitResults) extend it with their own payload fields.

Design decisions:
    - Payload fields default to None, meaning "stage has not run"
    - Reading an unset field raises NotSolvedError, never a default value
    - info dict for flexible metadata (converged, iterations, diagnostics)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True); a new snapshot is built for each stage
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, TypeVar

import numpy as np

from amita.core.exceptions import NotSolvedError

R = TypeVar('R', bound='Result')


@dataclass(frozen=True)
class Result:
    """
    Immutable result envelope for statistical computations.

    Attributes:
        info: Structured metadata (method, convergence, diagnostics)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the backend that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> # Direct method (no convergence notion)
        >>> OLSResults(n_obs=100, n_regressors=3, info={'method': 'qr'})

        >>> # Iterative method
        >>> LogitResults(
        ...     n_obs=100, n_regressors=3,
        ...     info={'method': 'lbfgs', 'converged': True, 'iterations': 23},
        ... )
    """
    info: dict[str, Any] = field(default_factory=dict)
    timing: dict[str, float] | None = None
    backend_name: str = ''
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)

    def is_set(self, name: str) -> bool:
        """Whether the payload field `name` (e.g. 'coef') has been populated."""
        return getattr(self, _field_name(name)) is not None

    def _require(self, name: str) -> Any:
        value = getattr(self, _field_name(name))
        if value is None:
            public = name.lstrip('_')
            raise NotSolvedError(
                f"{type(self).__name__}.{public}() is not available: "
                f"the solver has not been solved",
                field=public,
            )
        return value

    def evolve(self: R, **changes: Any) -> R:
        """
        Return a copy with the given fields populated.

        Array payloads are made read-only. Fields that are already set
        cannot be overwritten.
        """
        for name, value in changes.items():
            if name in _ENVELOPE_FIELDS:
                continue
            if getattr(self, name) is not None:
                raise ValueError(f"{type(self).__name__}.{name} is already set")
            if isinstance(value, np.ndarray):
                value.flags.writeable = False
        return replace(self, **changes)

    def payload_fields(self) -> tuple[str, ...]:
        """Names of all model-specific fields."""
        return tuple(f.name for f in fields(self) if f.name not in _ENVELOPE_FIELDS)


_ENVELOPE_FIELDS = frozenset({'info', 'timing', 'backend_name', 'warnings'})


def _field_name(name: str) -> str:
    # Payload fields are stored with a leading underscore behind accessors
    return name if name.startswith('_') else f'_{name}'
