"""
Carrier Surcharges Package

Calc-mode handlers and exclusivity resolution for carrier surcharge rules.

Processing:
    1. The resolver returns the best rule per event_code
    2. Rules without an exclusive_group are calculated independently
    3. Within each exclusive_group only the first rule (priority desc)
       producing a non-zero quantity fires

Usage:
    from carrier_rules.surcharges import CarrierSurchargeCalculator, apply_exclusivity
"""

from ..rules import CalcMode
from .calculator import HANDLERS, CarrierSurchargeCalculator
from .exclusivity import (
    apply_exclusivity,
    get_exclusivity_group,
)


# =============================================================================
# VALIDATION
# =============================================================================

def validate_handlers() -> None:
    """
    Check every calc mode has exactly one handler.

    Raises ValueError listing the gaps. Called at import time so a calc
    mode can never reach the pipeline without a handler.
    """
    errors = []
    for mode in CalcMode:
        if mode not in HANDLERS:
            errors.append(f"{mode.value}: no handler registered")
    for mode in HANDLERS:
        if not isinstance(mode, CalcMode):
            errors.append(f"{mode!r}: handler registered for unknown calc mode")

    if errors:
        raise ValueError("Surcharge handler errors:\n  " + "\n  ".join(errors))


# Run validation at import time
validate_handlers()

__all__ = [
    "CarrierSurchargeCalculator",
    "HANDLERS",
    "apply_exclusivity",
    "get_exclusivity_group",
    "validate_handlers",
]
