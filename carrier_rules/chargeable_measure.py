"""
Chargeable Loading Meter

Billing unit computation for RoRo cargo.

Base LM assumes the cargo occupies a standard 2.5 m lane: widths below the
lane are clamped up to it. Overwidth cargo can be repriced on its true
footprint by a carrier OVERWIDTH_LM_RECALC transform rule.
"""

import logging

from .data.reference.loading_meter import CM2_PER_LM, STANDARD_LANE_WIDTH_CM
from .dtos import ChargeableMeasure
from .resolver import CarrierRuleResolver
from .rules import TransformCode

logger = logging.getLogger(__name__)


def calculate_base_lm(length_cm: float, width_cm: float) -> float:
    """
    Base loading meters.

    (length_m * max(width_m, 2.5)) / 2.5, computed as a single division in
    cm^2 so fixture values come out exact. 0 if either dimension <= 0.
    """
    if length_cm <= 0 or width_cm <= 0:
        return 0.0
    return (length_cm * max(width_cm, STANDARD_LANE_WIDTH_CM)) / CM2_PER_LM


class ChargeableMeasureService:
    """Base and chargeable LM for a cargo line, using the resolver for transforms."""

    def __init__(self, resolver: CarrierRuleResolver):
        self.resolver = resolver

    calculate_base_lm = staticmethod(calculate_base_lm)

    def compute_chargeable_lm(
        self,
        length_cm: float,
        width_cm: float,
        carrier_id: int | None = None,
        port_id: int | None = None,
        vessel_name: str | None = None,
        category_group_id: int | None = None,
        vehicle_category: str | None = None,
        service_type: str | None = None,
    ) -> ChargeableMeasure:
        """
        Chargeable LM after applying the best-matching width transform.

        Without a carrier, or without a transform rule whose trigger the
        width exceeds, chargeable LM equals base LM. When triggered:
        chargeable_lm = (length_cm * width_cm) / (divisor_cm * 100).
        """
        base_lm = calculate_base_lm(length_cm, width_cm)
        if carrier_id is None:
            return ChargeableMeasure(base_lm=base_lm, chargeable_lm=base_lm)

        rule = self.resolver.resolve_transform_rule(
            carrier_id,
            TransformCode.OVERWIDTH_LM_RECALC,
            port_id=port_id,
            vehicle_category=vehicle_category,
            category_group_id=category_group_id,
            vessel_name=vessel_name,
            service_type=service_type,
        )
        if rule is None:
            return ChargeableMeasure(base_lm=base_lm, chargeable_lm=base_lm)

        params = rule.params
        if not params.triggers(width_cm):
            return ChargeableMeasure(
                base_lm=base_lm,
                chargeable_lm=base_lm,
                meta=(
                    ("reason", f"width {width_cm} cm within trigger {params.trigger_width_gt_cm} cm"),
                ),
            )

        chargeable_lm = (length_cm * width_cm) / (params.divisor_cm * 100)
        logger.debug(
            "Overwidth recalculation by rule %s: %.4f -> %.4f LM",
            rule.id, base_lm, chargeable_lm,
        )
        return ChargeableMeasure(
            base_lm=base_lm,
            chargeable_lm=chargeable_lm,
            applied_transform_rule_id=rule.id,
            meta=(
                ("transform_code", rule.transform_code.value),
                ("reason", f"width {width_cm} cm > trigger {params.trigger_width_gt_cm} cm"),
                ("divisor_cm", params.divisor_cm),
            ),
        )


__all__ = ["ChargeableMeasureService", "calculate_base_lm"]
