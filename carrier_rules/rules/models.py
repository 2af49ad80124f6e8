"""
Rule Row Models

Frozen row types held by a RuleSnapshot. Rows are built once from the rule
tables and never mutated, so a snapshot can be shared freely.
"""

from dataclasses import dataclass
from datetime import date

from .params import (
    CalcMode,
    RuleLogic,
    SurchargeParams,
    TransformCode,
    TransformParams,
)
from .scope import MatchContext, RuleScope, rank_key, specificity_score


# =============================================================================
# REFERENCE ROWS
# =============================================================================

@dataclass(frozen=True)
class ShippingCarrier:
    id: int
    code: str
    name: str


@dataclass(frozen=True)
class Port:
    id: int
    code: str
    name: str
    country: str | None = None
    role: str | None = None


@dataclass(frozen=True)
class PortGroup:
    id: int
    carrier_id: int
    code: str
    port_ids: frozenset[int]


@dataclass(frozen=True)
class CategoryGroup:
    id: int
    carrier_id: int
    code: str
    vehicle_categories: frozenset[str]


# =============================================================================
# SCOPED RULE ROWS
# =============================================================================

@dataclass(frozen=True)
class RuleRow:
    """
    Fields shared by every scoped rule table.

    Attributes:
        id              - Row id, final tie-break (higher wins)
        carrier_id      - Owning carrier
        scope           - Optional scoping dimensions
        priority        - Higher wins between equally specific rules
        effective_from  - Start of validity, more recent wins ties
    """
    id: int
    carrier_id: int
    scope: RuleScope
    priority: int
    effective_from: date | None

    def score(self, ctx: MatchContext) -> int | None:
        return specificity_score(self.scope, ctx)

    def rank(self, score: int) -> tuple:
        return rank_key(score, self.priority, self.effective_from, self.id)


@dataclass(frozen=True)
class ClassificationBand(RuleRow):
    outcome_vehicle_category: str = ""
    max_cbm: float | None = None
    max_height_cm: float | None = None
    rule_logic: RuleLogic = RuleLogic.AND

    def matches(self, cbm: float, height_cm: float) -> bool:
        """
        AND: every present threshold holds. OR: any present threshold holds.

        Null thresholds are unconstrained; a band without thresholds
        matches everything under either logic.
        """
        checks = []
        if self.max_cbm is not None:
            checks.append(cbm <= self.max_cbm)
        if self.max_height_cm is not None:
            checks.append(height_cm <= self.max_height_cm)
        if not checks:
            return True
        if self.rule_logic is RuleLogic.OR:
            return any(checks)
        return all(checks)


# (violation/approval code stem, cargo attribute and rule column suffix)
ACCEPTANCE_DIMENSIONS = (
    ("length", "length_cm"),
    ("width", "width_cm"),
    ("height", "height_cm"),
    ("cbm", "cbm"),
    ("weight", "weight_kg"),
)

SOFT_LIMIT_DIMENSIONS = ("length", "width", "height", "weight")


@dataclass(frozen=True)
class AcceptanceRule(RuleRow):
    max_length_cm: float | None = None
    max_width_cm: float | None = None
    max_height_cm: float | None = None
    max_cbm: float | None = None
    max_weight_kg: float | None = None

    min_length_cm: float | None = None
    min_width_cm: float | None = None
    min_height_cm: float | None = None
    min_cbm: float | None = None
    min_weight_kg: float | None = None
    min_is_hard: bool = False

    soft_max_length_cm: float | None = None
    soft_max_width_cm: float | None = None
    soft_max_height_cm: float | None = None
    soft_max_weight_kg: float | None = None
    soft_length_requires_approval: bool = False
    soft_width_requires_approval: bool = False
    soft_height_requires_approval: bool = False
    soft_weight_requires_approval: bool = False

    must_be_empty: bool = False
    must_be_self_propelled: bool = False
    notes: str | None = None

    def limit(self, kind: str, suffix: str) -> float | None:
        """Limit value by kind ('max', 'min', 'soft_max') and column suffix."""
        return getattr(self, f"{kind}_{suffix}")

    def soft_requires_approval(self, stem: str) -> bool:
        return getattr(self, f"soft_{stem}_requires_approval")

    def inconsistent_limits(self) -> list[str]:
        """Column suffixes where a min limit exceeds the max limit."""
        return [
            suffix for _, suffix in ACCEPTANCE_DIMENSIONS
            if self.limit("min", suffix) is not None
            and self.limit("max", suffix) is not None
            and self.limit("min", suffix) > self.limit("max", suffix)
        ]


@dataclass(frozen=True)
class TransformRule(RuleRow):
    transform_code: TransformCode = TransformCode.OVERWIDTH_LM_RECALC
    params: TransformParams | None = None


@dataclass(frozen=True)
class SurchargeRule(RuleRow):
    event_code: str = ""
    name: str = ""
    calc_mode: CalcMode = CalcMode.FLAT
    params: SurchargeParams | None = None
    exclusive_group: str | None = None


@dataclass(frozen=True)
class ArticleMap(RuleRow):
    event_code: str = ""
    article_id: int = 0
    qty_mode: CalcMode | None = None


__all__ = [
    "ShippingCarrier",
    "Port",
    "PortGroup",
    "CategoryGroup",
    "RuleRow",
    "ClassificationBand",
    "AcceptanceRule",
    "ACCEPTANCE_DIMENSIONS",
    "SOFT_LIMIT_DIMENSIONS",
    "TransformRule",
    "SurchargeRule",
    "ArticleMap",
]
