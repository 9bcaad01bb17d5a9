"""
Tests for SE type selection.

Validates:
    - Alias parsing ('robust' -> HC3, 'nonrobust' -> homoscedastic)
    - SolverSEType invariants (tags iff clustered, densified, read-only)
    - ModelSEType parsing and translation to SolverSEType
    - resolve_se_type as the single entry point
"""

import numpy as np
import pandas as pd
import pytest

from amita.core.exceptions import ColumnNotFoundError, SingletonClusterError, ValidationError
from amita.inference.se import (
    ModelSEType,
    SEType,
    SolverSEType,
    parse_se_kind,
    resolve_se_type,
)


class TestParseSEKind:

    @pytest.mark.parametrize("name,expected", [
        ('robust', SEType.HC3),
        ('nonrobust', SEType.HOMOSCEDASTIC),
        ('homoscedastic', SEType.HOMOSCEDASTIC),
        ('HC0', SEType.HC0),
        ('hc1', SEType.HC1),
        ('HC2', SEType.HC2),
        ('Clustered', SEType.CLUSTERED),
        ('non-robust', SEType.HOMOSCEDASTIC),
    ])
    def test_aliases(self, name, expected):
        assert parse_se_kind(name) is expected

    def test_enum_passthrough(self):
        assert parse_se_kind(SEType.HC1) is SEType.HC1

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown SE type"):
            parse_se_kind('HC9')

    def test_wrong_type(self):
        with pytest.raises(TypeError):
            parse_se_kind(3)

    def test_heteroscedasticity_consistent_flag(self):
        assert SEType.HC2.is_heteroscedasticity_consistent
        assert not SEType.CLUSTERED.is_heteroscedasticity_consistent


class TestSolverSEType:

    def test_default_is_homoscedastic(self):
        se = SolverSEType()
        assert se.kind is SEType.HOMOSCEDASTIC
        assert se.clusters is None
        assert se.n_clusters is None

    def test_robust_is_hc3(self):
        assert SolverSEType.robust().kind is SEType.HC3
        assert SolverSEType.nonrobust().kind is SEType.HOMOSCEDASTIC

    def test_string_kind_parsed(self):
        assert SolverSEType('robust').kind is SEType.HC3

    def test_clustered_densifies_labels(self):
        se = SolverSEType.clustered(['x', 'y', 'x', 'y', 'z', 'z'])
        np.testing.assert_array_equal(se.clusters, [0, 1, 0, 1, 2, 2])
        assert se.n_clusters == 3
        assert not se.clusters.flags.writeable

    def test_clustered_requires_tags(self):
        with pytest.raises(ValidationError, match="tag array"):
            SolverSEType(SEType.CLUSTERED)

    def test_tags_only_for_clustered(self):
        with pytest.raises(ValidationError, match="non-clustered"):
            SolverSEType(SEType.HC1, clusters=np.array([0, 0, 1, 1]))

    def test_clustered_singleton(self):
        with pytest.raises(SingletonClusterError):
            SolverSEType.clustered([1, 1, 2])


class TestModelSEType:

    def test_parse_string(self):
        assert ModelSEType.parse('robust') == ModelSEType(SEType.HC3)

    def test_parse_clustered_mapping(self):
        se = ModelSEType.parse({'clustered': 'state'})
        assert se.kind is SEType.CLUSTERED
        assert se.cluster == 'state'

    def test_parse_kind_mapping(self):
        se = ModelSEType.parse({'kind': 'cluster', 'cluster': 'firm'})
        assert se == ModelSEType.clustered('firm')

    def test_parse_bad_mapping(self):
        with pytest.raises(ValueError):
            ModelSEType.parse({'a': 1, 'b': 2})

    def test_clustered_requires_column(self):
        with pytest.raises(ValidationError):
            ModelSEType(SEType.CLUSTERED)

    def test_column_only_for_clustered(self):
        with pytest.raises(ValidationError):
            ModelSEType(SEType.HC1, cluster='state')

    def test_to_solver_non_clustered(self):
        se = ModelSEType(SEType.HC2).to_solver_se_type()
        assert se.kind is SEType.HC2
        assert se.clusters is None

    def test_to_solver_clustered(self):
        df = pd.DataFrame({'state': ['b', 'a', 'b', 'a']})
        se = ModelSEType.clustered('state').to_solver_se_type(df)
        np.testing.assert_array_equal(se.clusters, [0, 1, 0, 1])

    def test_to_solver_clustered_needs_data(self):
        with pytest.raises(ValidationError, match="host dataset"):
            ModelSEType.clustered('state').to_solver_se_type()

    def test_to_solver_missing_column(self):
        with pytest.raises(ColumnNotFoundError):
            ModelSEType.clustered('state').to_solver_se_type(pd.DataFrame({'a': [1, 1]}))


class TestResolveSEType:

    def test_solver_type_passthrough(self):
        se = SolverSEType.hc1()
        assert resolve_se_type(se) is se

    def test_alias(self):
        assert resolve_se_type('robust').kind is SEType.HC3

    def test_clustered_mapping_with_data(self):
        df = pd.DataFrame({'g': [1, 1, 2, 2, 3, 3]})
        se = resolve_se_type({'clustered': 'g'}, df)
        assert se.kind is SEType.CLUSTERED
        assert se.n_clusters == 3
