"""
Rule Parameter Variants

Surcharge calc modes and transform codes arrive from the rule tables as a
string tag plus a JSON params blob. They are parsed once, at snapshot load,
into an enum and a frozen per-variant parameter dataclass, so the pricing
pipeline never dispatches on raw strings and never meets an unknown mode.

Parsers raise ValueError on unknown tags or invalid values. The snapshot
loader collects those into a single RuleConfigurationError.
"""

import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from ..data.reference import surcharge_defaults as defaults


# =============================================================================
# TAGS
# =============================================================================

class CalcMode(str, Enum):
    FLAT = "FLAT"
    PER_UNIT = "PER_UNIT"
    PERCENT_OF_BASIC_FREIGHT = "PERCENT_OF_BASIC_FREIGHT"
    WIDTH_LM_BASIS = "WIDTH_LM_BASIS"
    WIDTH_STEP_BLOCKS = "WIDTH_STEP_BLOCKS"
    WEIGHT_TIER = "WEIGHT_TIER"
    PER_TON_ABOVE = "PER_TON_ABOVE"
    PER_TANK = "PER_TANK"
    PER_LM = "PER_LM"


class TransformCode(str, Enum):
    OVERWIDTH_LM_RECALC = "OVERWIDTH_LM_RECALC"


class RuleLogic(str, Enum):
    AND = "AND"
    OR = "OR"


class QtyBasis(str, Enum):
    LM = "LM"
    UNIT = "UNIT"


class Rounding(str, Enum):
    CEIL = "CEIL"
    FLOOR = "FLOOR"
    ROUND = "ROUND"

    def apply(self, value: float) -> int:
        """Round to a whole number of blocks. ROUND is half-up."""
        if self is Rounding.CEIL:
            return math.ceil(value)
        if self is Rounding.FLOOR:
            return math.floor(value)
        return math.floor(value + 0.5)


# =============================================================================
# SURCHARGE PARAMS
# =============================================================================

@dataclass(frozen=True)
class FlatParams:
    amount: float


@dataclass(frozen=True)
class PerUnitParams:
    amount: float


@dataclass(frozen=True)
class PercentOfBasicFreightParams:
    percentage: float


@dataclass(frozen=True)
class WidthLmBasisParams:
    amount_per_lm: float
    trigger_width_gt_cm: float
    use_chargeable_lm: bool = True


@dataclass(frozen=True)
class WidthStepBlocksParams:
    amount_per_block: float
    threshold_cm: float
    block_cm: float
    trigger_width_gt_cm: float
    rounding: Rounding = Rounding.CEIL
    qty_basis: QtyBasis = QtyBasis.LM


@dataclass(frozen=True)
class WeightTier:
    max_kg: float | None
    amount: float
    min_kg: float | None = None
    per_ton_over: float | None = None


@dataclass(frozen=True)
class WeightTierParams:
    tiers: tuple[WeightTier, ...]

    def match(self, weight_kg: float) -> WeightTier | None:
        """
        First finite tier with weight_kg <= max_kg, else the catch-all.

        Tiers are stored with finite max_kg ascending and catch-all tiers
        (max_kg null) last. A catch-all with a min_kg only applies from
        that weight on. No tiers, or no matching tier, gives None.
        """
        for tier in self.tiers:
            if tier.max_kg is not None:
                if weight_kg <= tier.max_kg:
                    return tier
            elif tier.min_kg is None or weight_kg >= tier.min_kg:
                return tier
        return None


@dataclass(frozen=True)
class PerTonAboveParams:
    threshold_kg: float
    amount_per_ton: float


@dataclass(frozen=True)
class PerTankParams:
    amount: float


@dataclass(frozen=True)
class PerLmParams:
    amount: float


SurchargeParams = (
    FlatParams | PerUnitParams | PercentOfBasicFreightParams | WidthLmBasisParams
    | WidthStepBlocksParams | WeightTierParams | PerTonAboveParams | PerTankParams
    | PerLmParams
)


# =============================================================================
# TRANSFORM PARAMS
# =============================================================================

@dataclass(frozen=True)
class OverwidthLmRecalcParams:
    trigger_width_gt_cm: float
    divisor_cm: float

    def triggers(self, width_cm: float) -> bool:
        return width_cm > self.trigger_width_gt_cm


TransformParams = OverwidthLmRecalcParams


# =============================================================================
# PARSING
# =============================================================================

def load_params(raw: Any) -> dict:
    """Params column value (JSON string, dict or null) as a dict."""
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return dict(raw)
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return {}
        value = json.loads(raw)
        if not isinstance(value, dict):
            raise ValueError(f"params must be a JSON object, got {type(value).__name__}")
        return value
    raise ValueError(f"params must be a JSON object, got {type(raw).__name__}")


def _number(params: dict, key: str, default: float | None = None) -> float:
    value = params.get(key)
    if value is None:
        if default is None:
            raise ValueError(f"missing required param '{key}'")
        return float(default)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"param '{key}' must be numeric, got {value!r}")
    if number < 0:
        raise ValueError(f"param '{key}' must be non-negative, got {number}")
    return number


def _optional_number(params: dict, key: str) -> float | None:
    if params.get(key) is None:
        return None
    return _number(params, key)


def _flag(params: dict, key: str, default: bool) -> bool:
    value = params.get(key, default)
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _enum(enum_cls: type[Enum], value: Any, field: str) -> Any:
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"unknown {field} '{value}' (expected one of: {allowed})")


def _parse_weight_tiers(params: dict) -> WeightTierParams:
    raw_tiers = params.get("tiers") or []
    if not isinstance(raw_tiers, list):
        raise ValueError("param 'tiers' must be a list")

    tiers = []
    for raw in raw_tiers:
        if not isinstance(raw, dict):
            raise ValueError("each weight tier must be an object")
        tiers.append(WeightTier(
            max_kg=_optional_number(raw, "max_kg"),
            amount=_number(raw, "amount", 0),
            min_kg=_optional_number(raw, "min_kg"),
            per_ton_over=_optional_number(raw, "per_ton_over"),
        ))

    finite = sorted((t for t in tiers if t.max_kg is not None), key=lambda t: t.max_kg)
    catch_all = [t for t in tiers if t.max_kg is None]
    return WeightTierParams(tiers=tuple(finite + catch_all))


def _parse_width_step_blocks(params: dict) -> WidthStepBlocksParams:
    threshold = _number(params, "threshold_cm", defaults.THRESHOLD_CM)
    block_cm = _number(params, "block_cm", defaults.BLOCK_CM)
    if block_cm == 0:
        raise ValueError("param 'block_cm' must be greater than zero")
    return WidthStepBlocksParams(
        amount_per_block=_number(params, "amount_per_block", 0),
        threshold_cm=threshold,
        block_cm=block_cm,
        trigger_width_gt_cm=_number(params, "trigger_width_gt_cm", threshold),
        rounding=_enum(Rounding, params.get("rounding", defaults.ROUNDING), "rounding"),
        qty_basis=_enum(QtyBasis, params.get("qty_basis", defaults.QTY_BASIS), "qty_basis"),
    )


_SURCHARGE_PARSERS: dict[CalcMode, Callable[[dict], SurchargeParams]] = {
    CalcMode.FLAT: lambda p: FlatParams(amount=_number(p, "amount", 0)),
    CalcMode.PER_UNIT: lambda p: PerUnitParams(amount=_number(p, "amount", 0)),
    CalcMode.PERCENT_OF_BASIC_FREIGHT: lambda p: PercentOfBasicFreightParams(
        percentage=_number(p, "percentage", 0),
    ),
    CalcMode.WIDTH_LM_BASIS: lambda p: WidthLmBasisParams(
        amount_per_lm=_number(p, "amount_per_lm", 0),
        trigger_width_gt_cm=_number(p, "trigger_width_gt_cm", defaults.TRIGGER_WIDTH_GT_CM),
        use_chargeable_lm=_flag(p, "use_chargeable_lm", True),
    ),
    CalcMode.WIDTH_STEP_BLOCKS: _parse_width_step_blocks,
    CalcMode.WEIGHT_TIER: _parse_weight_tiers,
    CalcMode.PER_TON_ABOVE: lambda p: PerTonAboveParams(
        threshold_kg=_number(p, "threshold_kg", 0),
        amount_per_ton=_number(p, "amount_per_ton", 0),
    ),
    CalcMode.PER_TANK: lambda p: PerTankParams(amount=_number(p, "amount", 0)),
    CalcMode.PER_LM: lambda p: PerLmParams(amount=_number(p, "amount", 0)),
}


def parse_calc_mode(value: Any) -> CalcMode:
    return _enum(CalcMode, value, "calc_mode")


def parse_surcharge_params(calc_mode: Any, raw_params: Any) -> tuple[CalcMode, SurchargeParams]:
    """Parse a calc_mode tag and its params blob into the typed variant."""
    mode = parse_calc_mode(calc_mode)
    return mode, _SURCHARGE_PARSERS[mode](load_params(raw_params))


def parse_transform_params(transform_code: Any, raw_params: Any) -> tuple[TransformCode, TransformParams]:
    """Parse a transform_code tag and its params blob into the typed variant."""
    code = _enum(TransformCode, transform_code, "transform_code")
    params = load_params(raw_params)
    divisor = _number(params, "divisor_cm", defaults.DIVISOR_CM)
    if divisor == 0:
        raise ValueError("param 'divisor_cm' must be greater than zero")
    return code, OverwidthLmRecalcParams(
        trigger_width_gt_cm=_number(params, "trigger_width_gt_cm", defaults.TRIGGER_WIDTH_GT_CM),
        divisor_cm=divisor,
    )


def parse_rule_logic(value: Any) -> RuleLogic:
    if value is None:
        return RuleLogic.AND
    return _enum(RuleLogic, value, "rule_logic")


__all__ = [
    "CalcMode",
    "TransformCode",
    "RuleLogic",
    "QtyBasis",
    "Rounding",
    "FlatParams",
    "PerUnitParams",
    "PercentOfBasicFreightParams",
    "WidthLmBasisParams",
    "WidthStepBlocksParams",
    "WeightTier",
    "WeightTierParams",
    "PerTonAboveParams",
    "PerTankParams",
    "PerLmParams",
    "SurchargeParams",
    "OverwidthLmRecalcParams",
    "TransformParams",
    "load_params",
    "parse_calc_mode",
    "parse_surcharge_params",
    "parse_transform_params",
    "parse_rule_logic",
]
