"""
Difference-in-differences.

TWFE regresses the outcome on

    [covariates..., treat, post, treat*post, _const]

by OLS. The coefficient on the treat*post interaction is the DiD estimate
of the treatment effect. The model only talks to the estimation engine
through the Solver/Results contract.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from amita.core.exceptions import (
    ColumnDataTypeError,
    ColumnNotFoundError,
    ValidationError,
)
from amita.inference.se import SERequest, resolve_se_type
from amita.regression.solution import OLSResults
from amita.regression.solvers import OLSSolver

INTERACTION = 'treat*post'
CONSTANT = '_const'


class TWFE:
    """
    Two-way fixed-effects difference-in-differences estimator.

    Args:
        data: Panel in long format, one row per unit-period
        outcome: Outcome column
        treat: Treatment-group indicator column
        post: Post-period indicator column
        covariates: Additional regressor columns
        se_type: Any SE request accepted by resolve_se_type; a clustered
                 request names a column of `data`

    Example:
        >>> res = TWFE(df, 'bib', 'treat', 'post', se_type={'clustered': 'state'}).fit()
        >>> res.coef()[res.names.index('treat*post')]
    """

    def __init__(
        self,
        data: pd.DataFrame,
        outcome: str,
        treat: str,
        post: str,
        covariates: list[str] | None = None,
        se_type: SERequest = 'homoscedastic',
    ):
        if not isinstance(data, pd.DataFrame):
            raise ValidationError(
                f"data: expected a pandas DataFrame, got {type(data).__name__}"
            )
        self._data = data.copy()
        self._outcome = outcome
        self._treat = treat
        self._post = post
        self._covariates = list(covariates) if covariates is not None else []
        self._se_type = se_type

        for column in [outcome, treat, post, *self._covariates]:
            if column not in self._data.columns:
                available = tuple(str(c) for c in self._data.columns)
                raise ColumnNotFoundError(
                    f"Column {column!r} not found. Available: {list(available)}",
                    column=column,
                    available=available,
                )
        reserved = {INTERACTION, CONSTANT} & {outcome, treat, post, *self._covariates}
        if reserved:
            raise ValidationError(
                f"Column names {sorted(reserved)} are reserved for generated regressors"
            )

        for column in [outcome, treat, post, *self._covariates]:
            dtype = self._data[column].dtype
            if not pd.api.types.is_numeric_dtype(dtype):
                raise ColumnDataTypeError(
                    f"Column {column!r} has dtype {dtype}; regressors must be numeric or bool",
                    column=column,
                    expected="numeric or bool",
                    found=str(dtype),
                )

    @property
    def regressor_names(self) -> tuple[str, ...]:
        return (*self._covariates, self._treat, self._post, INTERACTION, CONSTANT)

    def regressors(self) -> pd.DataFrame:
        """The design matrix as a DataFrame, in regressor_names order."""
        frame = self._data.assign(**{
            INTERACTION: self._data[self._treat] * self._data[self._post],
            CONSTANT: 1.0,
        })
        return frame[list(self.regressor_names)]

    def solver(self) -> OLSSolver:
        """An unsolved OLSSolver for this design, with the SE type applied."""
        X = self.regressors().to_numpy(dtype=np.float64, na_value=np.nan)
        y = self._data[self._outcome].to_numpy(dtype=np.float64, na_value=np.nan)
        solver = OLSSolver(y, X, names=self.regressor_names)
        return solver.with_se_type(resolve_se_type(self._se_type, self._data))

    def fit(self) -> OLSResults:
        """Solve the regression and return its results."""
        return self.solver().solve().results()

    def __repr__(self) -> str:
        return (
            f"TWFE(outcome={self._outcome!r}, treat={self._treat!r}, "
            f"post={self._post!r}, covariates={self._covariates!r})"
        )
