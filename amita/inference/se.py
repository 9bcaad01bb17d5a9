"""
Standard-error type selection.

Two levels:
    ModelSEType:  what a model-level caller asks for; a clustered request
                  names a column of the host dataset.
    SolverSEType: what a solver consumes; a clustered request carries the
                  dense per-observation tag array.

ModelSEType.to_solver_se_type() bridges the two by running the cluster
resolver.

Aliases:
    'nonrobust' -> homoscedastic
    'robust'    -> HC3
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Union

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from amita.core.exceptions import ValidationError
from amita.inference.clusters import factorize_cluster_ids, resolve_cluster_tags


class SEType(str, Enum):
    """Closed set of covariance estimators."""
    HOMOSCEDASTIC = 'homoscedastic'
    HC0 = 'HC0'
    HC1 = 'HC1'
    HC2 = 'HC2'
    HC3 = 'HC3'
    CLUSTERED = 'clustered'

    @property
    def is_heteroscedasticity_consistent(self) -> bool:
        return self in (SEType.HC0, SEType.HC1, SEType.HC2, SEType.HC3)


SE_ALIASES: dict[str, SEType] = {
    'homoscedastic': SEType.HOMOSCEDASTIC,
    'nonrobust': SEType.HOMOSCEDASTIC,
    'non_robust': SEType.HOMOSCEDASTIC,
    'iid': SEType.HOMOSCEDASTIC,
    'hc0': SEType.HC0,
    'hc1': SEType.HC1,
    'hc2': SEType.HC2,
    'hc3': SEType.HC3,
    'robust': SEType.HC3,
    'clustered': SEType.CLUSTERED,
    'cluster': SEType.CLUSTERED,
}


def parse_se_kind(name: str | SEType) -> SEType:
    """
    Resolve an SE name or alias (case-insensitive) to an SEType.

    Raises:
        ValueError: If the name is not recognized
    """
    if isinstance(name, SEType):
        return name
    if isinstance(name, str):
        kind = SE_ALIASES.get(name.strip().lower().replace('-', '_'))
        if kind is not None:
            return kind
        valid = ', '.join(sorted(SE_ALIASES))
        raise ValueError(f"Unknown SE type: {name!r}. Valid names: {valid}")
    raise TypeError(f"SE type must be str or SEType, got {type(name).__name__}")


@dataclass(frozen=True, eq=False)
class SolverSEType:
    """
    Solver-level SE request.

    Attributes:
        kind: The estimator
        clusters: Dense int64 cluster tags (n,), present iff kind is CLUSTERED

    Construct via the classmethods:
        SolverSEType.homoscedastic()
        SolverSEType.hc1()
        SolverSEType.robust()               # HC3
        SolverSEType.clustered(ids)         # raw labels are densified
    """
    kind: SEType = SEType.HOMOSCEDASTIC
    clusters: NDArray[np.int64] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'kind', parse_se_kind(self.kind))
        if self.kind == SEType.CLUSTERED:
            if self.clusters is None:
                raise ValidationError("Clustered SEs require a cluster tag array")
            tags = factorize_cluster_ids(self.clusters)
            tags.flags.writeable = False
            object.__setattr__(self, 'clusters', tags)
        elif self.clusters is not None:
            raise ValidationError(
                f"Cluster tags were given for non-clustered SE type {self.kind.value!r}"
            )

    @classmethod
    def homoscedastic(cls) -> SolverSEType:
        return cls(SEType.HOMOSCEDASTIC)

    nonrobust = homoscedastic

    @classmethod
    def hc0(cls) -> SolverSEType:
        return cls(SEType.HC0)

    @classmethod
    def hc1(cls) -> SolverSEType:
        return cls(SEType.HC1)

    @classmethod
    def hc2(cls) -> SolverSEType:
        return cls(SEType.HC2)

    @classmethod
    def hc3(cls) -> SolverSEType:
        return cls(SEType.HC3)

    robust = hc3

    @classmethod
    def clustered(cls, ids: ArrayLike) -> SolverSEType:
        return cls(SEType.CLUSTERED, clusters=np.asarray(ids))

    @property
    def n_clusters(self) -> int | None:
        if self.clusters is None:
            return None
        return int(self.clusters.max()) + 1

    def __repr__(self) -> str:
        if self.kind == SEType.CLUSTERED:
            return f"SolverSEType(clustered, n_obs={len(self.clusters)}, n_clusters={self.n_clusters})"
        return f"SolverSEType({self.kind.value})"


@dataclass(frozen=True)
class ModelSEType:
    """
    Model-level SE request.

    Attributes:
        kind: The estimator
        cluster: Name of the clustering column, required iff kind is CLUSTERED
    """
    kind: SEType = SEType.HOMOSCEDASTIC
    cluster: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'kind', parse_se_kind(self.kind))
        if self.kind == SEType.CLUSTERED and not self.cluster:
            raise ValidationError("Clustered SEs require the name of a cluster column")
        if self.kind != SEType.CLUSTERED and self.cluster is not None:
            raise ValidationError(
                f"A cluster column was given for non-clustered SE type {self.kind.value!r}"
            )

    @classmethod
    def clustered(cls, column: str) -> ModelSEType:
        return cls(SEType.CLUSTERED, cluster=column)

    @classmethod
    def parse(cls, spec: SERequest) -> ModelSEType:
        """
        Build from a name, an SEType, or a mapping.

        Examples:
            ModelSEType.parse('robust')
            ModelSEType.parse({'clustered': 'state'})
            ModelSEType.parse({'kind': 'clustered', 'cluster': 'state'})
        """
        if isinstance(spec, ModelSEType):
            return spec
        if isinstance(spec, (str, SEType)):
            return cls(parse_se_kind(spec))
        if isinstance(spec, Mapping):
            if 'kind' in spec:
                return cls(parse_se_kind(spec['kind']), cluster=spec.get('cluster'))
            if len(spec) == 1:
                (name, column), = spec.items()
                kind = parse_se_kind(name)
                return cls(kind, cluster=column if kind == SEType.CLUSTERED else None)
            raise ValueError(f"Cannot parse SE specification: {dict(spec)!r}")
        raise TypeError(f"Cannot parse SE specification of type {type(spec).__name__}")

    def to_solver_se_type(self, data: pd.DataFrame | None = None) -> SolverSEType:
        """
        Translate into a solver-level request.

        For clustered requests the named column of `data` is resolved into
        dense per-row tags.

        Raises:
            ValidationError: If clustering is requested without data
            ColumnNotFoundError, ColumnDataTypeError, SingletonClusterError:
                From the cluster resolver
        """
        if self.kind != SEType.CLUSTERED:
            return SolverSEType(self.kind)
        if data is None:
            raise ValidationError(
                f"Clustering by {self.cluster!r} requires the host dataset"
            )
        tags = resolve_cluster_tags(data, self.cluster)
        return SolverSEType(SEType.CLUSTERED, clusters=tags)


SERequest = Union[str, SEType, SolverSEType, ModelSEType, Mapping[str, Any]]


def resolve_se_type(se: SERequest, data: pd.DataFrame | None = None) -> SolverSEType:
    """
    Single entry point: turn any SE request into a SolverSEType.

    Args:
        se: Alias string, SEType, SolverSEType, ModelSEType, or mapping
        data: Host dataset, needed only to resolve a cluster column

    Returns:
        SolverSEType ready for a solver
    """
    if isinstance(se, SolverSEType):
        return se
    return ModelSEType.parse(se).to_solver_se_type(data)
