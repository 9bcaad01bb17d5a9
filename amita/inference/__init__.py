"""
Standard-error layer.

Public API:
    SEType, SolverSEType, ModelSEType, resolve_se_type
    resolve_cluster_tags
    compute_vcov (and the individual estimators)
"""

from amita.inference.se import (
    SEType,
    SolverSEType,
    ModelSEType,
    SE_ALIASES,
    parse_se_kind,
    resolve_se_type,
)
from amita.inference.clusters import (
    resolve_cluster_tags,
    validate_cluster_column,
    factorize_cluster_ids,
)
from amita.inference.sandwich import (
    homoscedastic_vcov,
    hc_vcov,
    cluster_vcov,
    compute_vcov,
    standard_errors,
)

__all__ = [
    "SEType",
    "SolverSEType",
    "ModelSEType",
    "SE_ALIASES",
    "parse_se_kind",
    "resolve_se_type",
    "resolve_cluster_tags",
    "validate_cluster_column",
    "factorize_cluster_ids",
    "homoscedastic_vcov",
    "hc_vcov",
    "cluster_vcov",
    "compute_vcov",
    "standard_errors",
]
