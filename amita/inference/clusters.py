"""
Cluster tag resolution.

Turns a categorical column of the host dataset into a dense per-observation
integer tag array 0..k-1, aligned to the dataset's row order. Tags follow
the order in which each distinct value first occurs.

Every cluster must contain more than one observation: cluster-robust
variance is undefined for a singleton group.
"""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from amita.core.exceptions import (
    ValidationError,
    ColumnNotFoundError,
    ColumnDataTypeError,
    SingletonClusterError,
)


ACCEPTED_CLUSTER_DTYPES = "bool, int, or string"

_TAG = '__amita_cluster_tag'
_COUNT = '__amita_cluster_count'


def resolve_cluster_tags(data: pd.DataFrame, column: str) -> NDArray[np.int64]:
    """
    Map a categorical column to dense cluster tags.

    Args:
        data: Host dataset
        column: Name of the clustering column

    Returns:
        int64 array of length len(data); tag of each row's cluster,
        numbered 0..k-1 by first occurrence

    Raises:
        ColumnNotFoundError: If column is not in data
        ColumnDataTypeError: If column is not bool, int, or string
        ValidationError: If column has missing values
        SingletonClusterError: If any cluster has a single observation

    Example:
        >>> df = pd.DataFrame({'state': ['b', 'a', 'b', 'a']})
        >>> resolve_cluster_tags(df, 'state')
        array([0, 1, 0, 1])
    """
    validate_cluster_column(data, column)

    series = data[column]
    if series.isna().any():
        n_missing = int(series.isna().sum())
        raise ValidationError(
            f"Cluster column {column!r} has {n_missing} missing values"
        )

    keys = data[[column]]
    if isinstance(series.dtype, pd.CategoricalDtype):
        # Tags follow appearance order, not category order
        keys = keys.astype({column: series.cat.categories.dtype})

    counts = (
        keys.groupby(column, sort=False)
        .size()
        .rename(_COUNT)
        .reset_index()
    )
    _check_no_singletons(counts[column], counts[_COUNT], column)

    counts[_TAG] = np.arange(len(counts), dtype=np.int64)
    tagged = keys.merge(
        counts[[column, _TAG]],
        on=column,
        how='left',
        validate='many_to_one',
    )
    return tagged[_TAG].to_numpy(dtype=np.int64)


def validate_cluster_column(data: pd.DataFrame, column: str) -> None:
    """
    Check that column exists and has a categorical-compatible dtype.

    Raises:
        ColumnNotFoundError: If column is not in data
        ColumnDataTypeError: If column is not bool, int, or string
    """
    if column not in data.columns:
        available = tuple(str(c) for c in data.columns)
        raise ColumnNotFoundError(
            f"Column {column!r} not found. Available: {list(available)}",
            column=column,
            available=available,
        )

    series = data[column]
    dtype = series.dtype
    if isinstance(dtype, pd.CategoricalDtype):
        ok = _is_cluster_dtype(series.cat.categories.to_series())
    else:
        ok = _is_cluster_dtype(series)

    if not ok:
        raise ColumnDataTypeError(
            f"Column {column!r} contains unexpected datatype. "
            f"Expected {ACCEPTED_CLUSTER_DTYPES}, found {dtype}.",
            column=column,
            expected=ACCEPTED_CLUSTER_DTYPES,
            found=str(dtype),
        )


def factorize_cluster_ids(ids: ArrayLike, name: str = 'clusters') -> NDArray[np.int64]:
    """
    Densify an array of cluster labels into tags 0..k-1 (first occurrence).

    Used when a caller hands the solver raw labels instead of a column name.

    Raises:
        ValidationError: If ids is not 1-D, is empty, or has missing values
        SingletonClusterError: If any cluster has a single observation
    """
    arr = np.asarray(ids)
    if arr.ndim != 1 or arr.shape[0] == 0:
        raise ValidationError(
            f"{name}: expected a non-empty 1D array of cluster labels, got shape {arr.shape}"
        )
    if np.issubdtype(arr.dtype, np.floating):
        if not np.all(np.isfinite(arr)):
            raise ValidationError(f"{name}: cluster labels contain missing values")
        if not np.all(arr == np.round(arr)):
            raise ColumnDataTypeError(
                f"{name}: cluster labels must be {ACCEPTED_CLUSTER_DTYPES}, found {arr.dtype}",
                column=name,
                expected=ACCEPTED_CLUSTER_DTYPES,
                found=str(arr.dtype),
            )

    codes, uniques = pd.factorize(arr, sort=False)
    if np.any(codes < 0):
        raise ValidationError(f"{name}: cluster labels contain missing values")

    sizes = np.bincount(codes, minlength=len(uniques))
    _check_no_singletons(pd.Series(uniques), pd.Series(sizes), name)
    return codes.astype(np.int64)


def _is_cluster_dtype(series: pd.Series) -> bool:
    return bool(
        pd.api.types.is_bool_dtype(series)
        or pd.api.types.is_integer_dtype(series)
        or pd.api.types.is_string_dtype(series)
    )


def _check_no_singletons(labels: pd.Series, sizes: pd.Series, column: str) -> None:
    singles = labels[np.asarray(sizes) <= 1]
    if len(singles) > 0:
        clusters: tuple[Any, ...] = tuple(singles.tolist())
        shown = list(clusters[:10]) + (['...'] if len(clusters) > 10 else [])
        raise SingletonClusterError(
            f"Cluster {column!r} contains only 1 observation in "
            f"{len(clusters)} group(s): {shown}",
            column=column,
            clusters=clusters,
        )
