"""
Carrier Rules

Rule row models, typed calc/transform variants, specificity scoring and
the point-in-time RuleSnapshot.
"""

from .models import (
    ACCEPTANCE_DIMENSIONS,
    SOFT_LIMIT_DIMENSIONS,
    AcceptanceRule,
    ArticleMap,
    CategoryGroup,
    ClassificationBand,
    Port,
    PortGroup,
    RuleRow,
    ShippingCarrier,
    SurchargeRule,
    TransformRule,
)
from .params import (
    CalcMode,
    QtyBasis,
    Rounding,
    RuleLogic,
    TransformCode,
)
from .scope import MatchContext, RuleScope, rank_key, specificity_score
from .snapshot import RuleSnapshot

__all__ = [
    # Row models
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
    # Tags
    "CalcMode",
    "TransformCode",
    "RuleLogic",
    "QtyBasis",
    "Rounding",
    # Scoring
    "RuleScope",
    "MatchContext",
    "specificity_score",
    "rank_key",
    # Snapshot
    "RuleSnapshot",
]
