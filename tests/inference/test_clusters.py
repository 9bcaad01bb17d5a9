"""
Tests for cluster tag resolution.

Validates:
    - Dense tags 0..k-1 aligned to the input rows
    - First-occurrence tag order
    - Accepted and rejected column datatypes
    - Missing values and singleton clusters are rejected
"""

import numpy as np
import pandas as pd
import pytest

from amita.core.exceptions import (
    ColumnDataTypeError,
    ColumnNotFoundError,
    SingletonClusterError,
    ValidationError,
)
from amita.inference.clusters import factorize_cluster_ids, resolve_cluster_tags


# ═══════════════════════════════════════════════════════════════════════
# resolve_cluster_tags
# ═══════════════════════════════════════════════════════════════════════


class TestResolveClusterTags:

    def test_dense_tags_same_length(self):
        df = pd.DataFrame({'g': ['a', 'b', 'c', 'a', 'b', 'c', 'c']})
        tags = resolve_cluster_tags(df, 'g')
        assert tags.shape == (7,)
        assert tags.dtype == np.int64
        assert set(tags.tolist()) == {0, 1, 2}

    def test_first_occurrence_order(self):
        df = pd.DataFrame({'state': ['TX', 'CA', 'TX', 'NY', 'CA', 'NY']})
        tags = resolve_cluster_tags(df, 'state')
        np.testing.assert_array_equal(tags, [0, 1, 0, 2, 1, 2])

    def test_row_order_preserved_with_non_default_index(self):
        df = pd.DataFrame({'g': [5, 3, 5, 3]}, index=[10, 7, 2, 99])
        np.testing.assert_array_equal(resolve_cluster_tags(df, 'g'), [0, 1, 0, 1])

    def test_same_rows_share_tags(self, rng):
        labels = rng.choice(['u', 'v', 'w', 'x'], size=200)
        tags = resolve_cluster_tags(pd.DataFrame({'g': labels}), 'g')
        for label in np.unique(labels):
            assert len(np.unique(tags[labels == label])) == 1

    def test_bool_column(self):
        df = pd.DataFrame({'treated': [True, False, False, True]})
        np.testing.assert_array_equal(resolve_cluster_tags(df, 'treated'), [0, 1, 1, 0])

    def test_pandas_string_dtype(self):
        df = pd.DataFrame({'g': pd.array(['x', 'y', 'x', 'y'], dtype='string')})
        np.testing.assert_array_equal(resolve_cluster_tags(df, 'g'), [0, 1, 0, 1])

    def test_categorical_of_strings(self):
        df = pd.DataFrame({'g': pd.Categorical(['b', 'a', 'b', 'a'], categories=['a', 'b'])})
        np.testing.assert_array_equal(resolve_cluster_tags(df, 'g'), [0, 1, 0, 1])

    def test_missing_column(self):
        df = pd.DataFrame({'a': [1, 1]})
        with pytest.raises(ColumnNotFoundError) as exc_info:
            resolve_cluster_tags(df, 'state')
        assert exc_info.value.column == 'state'
        assert exc_info.value.available == ('a',)

    def test_float_column_rejected(self):
        df = pd.DataFrame({'g': [1.0, 1.0, 2.0, 2.0]})
        with pytest.raises(ColumnDataTypeError) as exc_info:
            resolve_cluster_tags(df, 'g')
        assert exc_info.value.found == 'float64'
        assert 'int' in exc_info.value.expected

    def test_missing_values_rejected(self):
        df = pd.DataFrame({'g': pd.array(['a', None, 'a', 'b', 'b'], dtype='string')})
        with pytest.raises(ValidationError, match="1 missing"):
            resolve_cluster_tags(df, 'g')

    def test_singleton_cluster(self):
        df = pd.DataFrame({'g': ['a', 'a', 'b', 'c', 'c']})
        with pytest.raises(SingletonClusterError) as exc_info:
            resolve_cluster_tags(df, 'g')
        assert exc_info.value.clusters == ('b',)
        assert exc_info.value.column == 'g'

    def test_all_singletons(self):
        df = pd.DataFrame({'g': [1, 2, 3]})
        with pytest.raises(SingletonClusterError, match="3 group"):
            resolve_cluster_tags(df, 'g')


# ═══════════════════════════════════════════════════════════════════════
# factorize_cluster_ids
# ═══════════════════════════════════════════════════════════════════════


class TestFactorizeClusterIds:

    def test_first_occurrence(self):
        np.testing.assert_array_equal(
            factorize_cluster_ids([7, 3, 7, 3, 9, 9]), [0, 1, 0, 1, 2, 2]
        )

    def test_integral_floats_accepted(self):
        np.testing.assert_array_equal(factorize_cluster_ids([2.0, 2.0, 1.0, 1.0]), [0, 0, 1, 1])

    def test_fractional_floats_rejected(self):
        with pytest.raises(ColumnDataTypeError):
            factorize_cluster_ids([0.5, 0.5, 1.0, 1.0])

    def test_nan_rejected(self):
        with pytest.raises(ValidationError, match="missing"):
            factorize_cluster_ids([1.0, np.nan, 1.0])

    def test_empty_rejected(self):
        with pytest.raises(ValidationError, match="non-empty"):
            factorize_cluster_ids([])

    def test_singleton_rejected(self):
        with pytest.raises(SingletonClusterError):
            factorize_cluster_ids(['a', 'a', 'b'])
