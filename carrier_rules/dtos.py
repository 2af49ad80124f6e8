"""
Cargo Pipeline Value Objects

Immutable request and result types passed in and out of the rule engine.
Sequences are tuples, so results compare by value.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import CargoValidationError


class AcceptanceStatus(str, Enum):
    ALLOWED = "ALLOWED"
    ALLOWED_UPON_REQUEST = "ALLOWED_UPON_REQUEST"
    NOT_ALLOWED = "NOT_ALLOWED"


# =============================================================================
# REQUEST
# =============================================================================

@dataclass(frozen=True)
class CargoInput:
    """
    One cargo line with its carrier/route context.

    Attributes:
        DIMENSIONS
            length_cm, width_cm, height_cm  - Must be finite and > 0
            cbm, weight_kg                  - Must be finite and >= 0
            unit_count                      - Must be >= 1

        CONTEXT
            carrier_id          - Required
            pod_port_id         - Port of discharge
            vessel_name         - Scheduled vessel
            category            - Explicit vehicle category, never overridden
            category_group_id   - Explicit category group
            service_type        - e.g. "RORO_EXPORT"
            flags               - Operational flags ("empty", "non_self_propelled")

        PRICING
            basic_freight_amount - Base for PERCENT_OF_BASIC_FREIGHT
    """
    carrier_id: int | None
    length_cm: float
    width_cm: float
    height_cm: float
    cbm: float
    weight_kg: float
    unit_count: int = 1
    pod_port_id: int | None = None
    category: str | None = None
    vessel_name: str | None = None
    category_group_id: int | None = None
    basic_freight_amount: float | None = None
    service_type: str | None = None
    flags: tuple[str, ...] = ()

    def validate(self) -> None:
        """Raise CargoValidationError listing every problem with this line."""
        errors = []
        if self.carrier_id is None:
            errors.append("carrier_id is required")
        for name in ("length_cm", "width_cm", "height_cm"):
            value = getattr(self, name)
            if value is None or not math.isfinite(value) or value <= 0:
                errors.append(f"{name} must be greater than 0, got {value}")
        for name in ("cbm", "weight_kg"):
            value = getattr(self, name)
            if value is None or not math.isfinite(value) or value < 0:
                errors.append(f"{name} must be non-negative, got {value}")
        freight = self.basic_freight_amount
        if freight is not None and (not math.isfinite(freight) or freight < 0):
            errors.append(f"basic_freight_amount must be non-negative, got {freight}")
        if self.unit_count is None or self.unit_count < 1:
            errors.append(f"unit_count must be at least 1, got {self.unit_count}")
        if errors:
            raise CargoValidationError(errors)

    def has_flag(self, flag: str) -> bool:
        return flag in self.flags


# =============================================================================
# RESULTS
# =============================================================================

@dataclass(frozen=True)
class ChargeableMeasure:
    """Base and chargeable loading meters, plus the transform that produced them."""
    base_lm: float
    chargeable_lm: float
    applied_transform_rule_id: int | None = None
    meta: tuple[tuple[str, Any], ...] = ()

    def meta_dict(self) -> dict[str, Any]:
        return dict(self.meta)


@dataclass(frozen=True)
class SurchargeCalculation:
    qty: float
    amount: float
    amount_basis: str
    needs_basic_freight: bool = False
    reason: str = ""

    @property
    def total(self) -> float:
        return self.qty * self.amount


@dataclass(frozen=True)
class SurchargeEvent:
    event_code: str
    qty: float
    amount: float
    amount_basis: str
    matched_rule_id: int
    reason: str

    @property
    def total(self) -> float:
        return self.qty * self.amount


@dataclass(frozen=True)
class QuoteLineDraft:
    article_id: int
    qty: float
    source_event_code: str
    amount_override: float | None = None
    meta: tuple[tuple[str, Any], ...] = ()


@dataclass(frozen=True)
class ProcessCargoResult:
    classified_vehicle_category: str | None
    acceptance_status: AcceptanceStatus
    chargeable_measure: ChargeableMeasure
    matched_category_group: str | None = None
    violations: tuple[str, ...] = ()
    approvals_required: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    surcharge_events: tuple[SurchargeEvent, ...] = ()
    quote_line_drafts: tuple[QuoteLineDraft, ...] = ()

    @property
    def surcharge_total(self) -> float:
        return sum(e.total for e in self.surcharge_events)


__all__ = [
    "AcceptanceStatus",
    "CargoInput",
    "ChargeableMeasure",
    "SurchargeCalculation",
    "SurchargeEvent",
    "QuoteLineDraft",
    "ProcessCargoResult",
]
