"""
Rule Scope & Specificity

Every rule row (acceptance, transform, surcharge, article map) is scoped by
the same set of optional dimensions. An empty dimension is a wildcard; a
populated one restricts the rule to the listed values.

Specificity is one declarative function over (dimension, weight) pairs:
a rule matching on a populated dimension earns that dimension's weight, a
rule populated on a dimension the context does not match is no candidate.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from ..data.reference import specificity as weights


class Dimension(str, Enum):
    VESSEL_NAME = "vessel_name"
    PORT = "port"
    PORT_GROUP = "port_group"
    CATEGORY_GROUP = "category_group"
    VEHICLE_CATEGORY = "vehicle_category"
    SERVICE_TYPE = "service_type"


DIMENSION_WEIGHTS: dict[Dimension, int] = {
    Dimension.VESSEL_NAME: weights.VESSEL_NAME,
    Dimension.PORT: weights.PORT,
    Dimension.PORT_GROUP: weights.PORT_GROUP,
    Dimension.CATEGORY_GROUP: weights.CATEGORY_GROUP,
    Dimension.VEHICLE_CATEGORY: weights.VEHICLE_CATEGORY,
    Dimension.SERVICE_TYPE: weights.SERVICE_TYPE,
}


def normalize_vessel(name: str | None) -> str | None:
    """Vessel names compare case- and whitespace-insensitively."""
    if name is None:
        return None
    name = " ".join(str(name).split()).upper()
    return name or None


# =============================================================================
# SCOPE & CONTEXT
# =============================================================================

@dataclass(frozen=True)
class RuleScope:
    """
    Allowed values per dimension. An empty tuple is a wildcard.

    Port and port group are alternatives: a rule scoped to both matches a
    context on either, earning the port weight for a direct port hit and
    the port-group weight otherwise.
    """
    port_ids: tuple[int, ...] = ()
    port_group_ids: tuple[int, ...] = ()
    vessel_names: tuple[str, ...] = ()
    category_group_ids: tuple[int, ...] = ()
    vehicle_categories: tuple[str, ...] = ()
    service_types: tuple[str, ...] = ()


@dataclass(frozen=True)
class MatchContext:
    """The cargo/route values a rule scope is matched against."""
    port_id: int | None = None
    port_group_ids: frozenset[int] = field(default_factory=frozenset)
    vessel_name: str | None = None
    category_group_id: int | None = None
    vehicle_category: str | None = None
    service_type: str | None = None


# =============================================================================
# SCORING
# =============================================================================

def _score_port(scope: RuleScope, ctx: MatchContext) -> int | None:
    if not scope.port_ids and not scope.port_group_ids:
        return 0
    if ctx.port_id is not None and ctx.port_id in scope.port_ids:
        return DIMENSION_WEIGHTS[Dimension.PORT]
    if ctx.port_group_ids & set(scope.port_group_ids):
        return DIMENSION_WEIGHTS[Dimension.PORT_GROUP]
    return None


def _score_single(
    allowed: tuple,
    value,
    dimension: Dimension,
) -> int | None:
    if not allowed:
        return 0
    if value is not None and value in allowed:
        return DIMENSION_WEIGHTS[dimension]
    return None


def specificity_score(scope: RuleScope, ctx: MatchContext) -> int | None:
    """
    Total specificity of a rule scope for a context.

    Returns None when any populated dimension fails to match, so the rule
    is not a candidate. A fully global scope scores 0.
    """
    vessel = normalize_vessel(ctx.vessel_name)
    parts = (
        _score_single(scope.vessel_names, vessel, Dimension.VESSEL_NAME),
        _score_port(scope, ctx),
        _score_single(scope.category_group_ids, ctx.category_group_id, Dimension.CATEGORY_GROUP),
        _score_single(scope.vehicle_categories, ctx.vehicle_category, Dimension.VEHICLE_CATEGORY),
        _score_single(scope.service_types, ctx.service_type, Dimension.SERVICE_TYPE),
    )
    if any(p is None for p in parts):
        return None
    return sum(parts)


def rank_key(
    score: int,
    priority: int,
    effective_from: date | None,
    rule_id: int,
) -> tuple:
    """
    Sort key putting the best candidate first.

    Order: score desc, priority desc, effective_from desc (null last),
    id desc.
    """
    recency = (0, -effective_from.toordinal()) if effective_from is not None else (1, 0)
    return (-score, -priority, recency, -rule_id)


__all__ = [
    "Dimension",
    "DIMENSION_WEIGHTS",
    "RuleScope",
    "MatchContext",
    "normalize_vessel",
    "specificity_score",
    "rank_key",
]
