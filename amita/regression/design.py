"""
Regression Design.

Design holds a validated response vector y and design matrix X. It is the
boundary where user input is checked; everything downstream trusts it.

The tabular side (named columns, group-by, joins) belongs to pandas:
Design.from_dataframe only pulls homogeneous numeric arrays out of named
columns.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING
import numpy as np
from numpy.typing import ArrayLike, NDArray

from amita.core.exceptions import ColumnNotFoundError, ValidationError
from amita.core.validation import (
    check_array,
    check_finite,
    check_2d,
    check_1d,
    check_consistent_length,
    check_min_samples,
)

if TYPE_CHECKING:
    import pandas as pd


@dataclass(frozen=True)
class Design:
    """
    Regression design matrix specification.

    Immutable after construction: X and y are private float64 copies
    flagged read-only.

    Construction:
        Design.from_arrays(X, y)                          # Direct from arrays
        Design.from_dataframe(df, y='c', x=['a', 'b'])    # Named columns
        Design.from_dataframe(df, y='c')                  # X = all other columns
    """
    _X: NDArray[np.floating[Any]]
    _y: NDArray[np.floating[Any]]
    _n: int
    _p: int
    _names: tuple[str, ...]

    @classmethod
    def from_arrays(
        cls,
        X: ArrayLike,
        y: ArrayLike,
        *,
        names: list[str] | tuple[str, ...] | None = None,
    ) -> Design:
        """Build Design directly from arrays."""
        X_arr = check_array(X, 'X')
        y_arr = check_array(y, 'y')
        return cls._build(X_arr, y_arr, names=names)

    @classmethod
    def from_dataframe(
        cls,
        data: 'pd.DataFrame',
        *,
        y: str,
        x: str | list[str] | None = None,
    ) -> Design:
        """
        Build Design from named columns of a DataFrame.

        Args:
            data: Host dataset
            y: Response column
            x: Predictor column(s). If None, all columns except y.

        Raises:
            ColumnNotFoundError: If a named column is missing
        """
        if x is None:
            x_cols = [c for c in data.columns if c != y]
            if not x_cols:
                raise ValidationError("No predictor columns available")
        elif isinstance(x, str):
            x_cols = [x]
        else:
            x_cols = list(x)

        for col in [y, *x_cols]:
            if col not in data.columns:
                available = tuple(str(c) for c in data.columns)
                raise ColumnNotFoundError(
                    f"Column {col!r} not found. Available: {list(available)}",
                    column=col,
                    available=available,
                )

        X_arr = check_array(data[x_cols].to_numpy(), 'X')
        y_arr = check_array(data[y].to_numpy(), 'y')
        return cls._build(X_arr, y_arr, names=[str(c) for c in x_cols])

    @classmethod
    def _build(
        cls,
        X: NDArray,
        y: NDArray,
        names: list[str] | tuple[str, ...] | None,
    ) -> Design:
        """Internal builder with validation."""
        # Ensure correct shapes
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        if y.ndim == 2 and y.shape[1] == 1:
            y = y.ravel()

        # Validate
        check_2d(X, 'X')
        check_1d(y, 'y')
        check_consistent_length(X, y, names=('X', 'y'))
        check_finite(X, 'X')
        check_finite(y, 'y')

        n, p = X.shape
        if p == 0:
            raise ValidationError("X: design matrix has no columns")
        check_min_samples(X, 1, 'X')

        if names is None:
            names = tuple(f'x{i}' for i in range(p))
        elif len(names) != p:
            raise ValidationError(
                f"names: expected {p} regressor names, got {len(names)}"
            )

        X.flags.writeable = False
        y.flags.writeable = False
        return cls(_X=X, _y=y, _n=n, _p=p, _names=tuple(names))

    # === Properties ===

    @property
    def X(self) -> NDArray[np.floating[Any]]:
        """Design matrix (n x p)."""
        return self._X

    @property
    def y(self) -> NDArray[np.floating[Any]]:
        """Response vector (n,)."""
        return self._y

    @property
    def n(self) -> int:
        """Number of observations."""
        return self._n

    @property
    def p(self) -> int:
        """Number of regressors."""
        return self._p

    @property
    def names(self) -> tuple[str, ...]:
        """Regressor names, in column order."""
        return self._names

    def XtX(self) -> NDArray[np.floating[Any]]:
        """Compute X'X (for reference computations and tests)."""
        return self._X.T @ self._X

    def Xty(self) -> NDArray[np.floating[Any]]:
        """Compute X'y."""
        return self._X.T @ self._y
