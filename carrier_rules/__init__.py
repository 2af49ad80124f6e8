"""
Carrier Rules Module

RoRo carrier rule resolution and pricing: vehicle classification,
acceptance limits, chargeable loading meters, surcharges and quote line
drafts for one cargo line at a time.
"""

from .dtos import (
    AcceptanceStatus,
    CargoInput,
    ChargeableMeasure,
    ProcessCargoResult,
    QuoteLineDraft,
    SurchargeEvent,
)
from .engine import CarrierRuleEngine
from .errors import CargoValidationError, RuleConfigurationError
from .process_frame import process_cargo_frame
from .rules import RuleSnapshot
from .version import VERSION

__all__ = [
    "AcceptanceStatus",
    "CargoInput",
    "CargoValidationError",
    "CarrierRuleEngine",
    "ChargeableMeasure",
    "ProcessCargoResult",
    "QuoteLineDraft",
    "RuleConfigurationError",
    "RuleSnapshot",
    "SurchargeEvent",
    "VERSION",
    "process_cargo_frame",
]
