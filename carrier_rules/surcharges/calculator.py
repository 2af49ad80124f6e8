"""
Carrier Surcharge Calculator

Maps one surcharge rule plus cargo context to a (qty, amount) pair.

Each calc mode has one handler. Handlers are pure: same rule, cargo and
chargeable measure always give the same SurchargeCalculation. A qty of 0
means the surcharge did not trigger.

    calc_mode                   qty                                 amount
    ---------                   ---                                 ------
    FLAT                        1                                   amount
    PER_UNIT                    unit_count                          amount
    PERCENT_OF_BASIC_FREIGHT    1 (0 without basic freight)         basic * percentage / 100
    WIDTH_LM_BASIS              LM if width > trigger else 0        amount_per_lm
    WIDTH_STEP_BLOCKS           blocks * (LM or 1)                  amount_per_block
    WEIGHT_TIER                 1 (0 without a matching tier)       tier amount (+ per ton over)
    PER_TON_ABOVE               tons above threshold                amount_per_ton
    PER_TANK                    unit_count                          amount
    PER_LM                      chargeable LM                       amount
"""

from typing import Callable

from ..dtos import CargoInput, ChargeableMeasure, SurchargeCalculation
from ..rules import CalcMode, QtyBasis, SurchargeRule


Handler = Callable[[SurchargeRule, CargoInput, ChargeableMeasure, float | None], SurchargeCalculation]


def _no_charge(rule: SurchargeRule, reason: str, needs_basic_freight: bool = False) -> SurchargeCalculation:
    return SurchargeCalculation(
        qty=0,
        amount=0.0,
        amount_basis=rule.calc_mode.value,
        needs_basic_freight=needs_basic_freight,
        reason=reason,
    )


# =============================================================================
# HANDLERS
# =============================================================================

def _flat(rule, cargo, measure, basic_freight):
    return SurchargeCalculation(1, rule.params.amount, rule.calc_mode.value, reason="flat charge")


def _per_unit(rule, cargo, measure, basic_freight):
    return SurchargeCalculation(
        cargo.unit_count, rule.params.amount, rule.calc_mode.value,
        reason=f"{cargo.unit_count} unit(s)",
    )


def _percent_of_basic_freight(rule, cargo, measure, basic_freight):
    if basic_freight is None:
        basic_freight = cargo.basic_freight_amount
    if basic_freight is None or basic_freight <= 0:
        return _no_charge(rule, "basic freight not available", needs_basic_freight=True)

    percentage = rule.params.percentage
    return SurchargeCalculation(
        1,
        basic_freight * percentage / 100,
        rule.calc_mode.value,
        reason=f"{percentage:g}% of basic freight {basic_freight:g}",
    )


def _width_lm_basis(rule, cargo, measure, basic_freight):
    params = rule.params
    if cargo.width_cm <= params.trigger_width_gt_cm:
        return _no_charge(rule, f"width {cargo.width_cm:g} cm <= {params.trigger_width_gt_cm:g} cm")

    lm = measure.chargeable_lm if params.use_chargeable_lm else measure.base_lm
    return SurchargeCalculation(
        lm, params.amount_per_lm, rule.calc_mode.value,
        reason=f"width {cargo.width_cm:g} cm > {params.trigger_width_gt_cm:g} cm",
    )


def _width_step_blocks(rule, cargo, measure, basic_freight):
    """
    blocks = rounding((width - threshold_cm) / block_cm)

    qty = blocks * chargeable LM for qty_basis LM, blocks for UNIT.
    """
    params = rule.params
    if cargo.width_cm <= params.trigger_width_gt_cm:
        return _no_charge(rule, f"width {cargo.width_cm:g} cm <= {params.trigger_width_gt_cm:g} cm")

    blocks = params.rounding.apply((cargo.width_cm - params.threshold_cm) / params.block_cm)
    if blocks <= 0:
        return _no_charge(rule, f"width {cargo.width_cm:g} cm within threshold {params.threshold_cm:g} cm")

    multiplier = measure.chargeable_lm if params.qty_basis is QtyBasis.LM else 1
    return SurchargeCalculation(
        blocks * multiplier, params.amount_per_block, rule.calc_mode.value,
        reason=f"{blocks} block(s) of {params.block_cm:g} cm over {params.threshold_cm:g} cm",
    )


def _weight_tier(rule, cargo, measure, basic_freight):
    tier = rule.params.match(cargo.weight_kg)
    if tier is None:
        return _no_charge(rule, f"no weight tier for {cargo.weight_kg:g} kg")

    amount = tier.amount
    if tier.per_ton_over is not None and tier.min_kg is not None and cargo.weight_kg > tier.min_kg:
        amount += (cargo.weight_kg - tier.min_kg) / 1000 * tier.per_ton_over

    bound = f"<= {tier.max_kg:g} kg" if tier.max_kg is not None else "catch-all"
    return SurchargeCalculation(1, amount, rule.calc_mode.value, reason=f"weight tier {bound}")


def _per_ton_above(rule, cargo, measure, basic_freight):
    params = rule.params
    if cargo.weight_kg <= params.threshold_kg:
        return _no_charge(rule, f"weight {cargo.weight_kg:g} kg <= {params.threshold_kg:g} kg")

    tons_over = (cargo.weight_kg - params.threshold_kg) / 1000
    return SurchargeCalculation(
        tons_over, params.amount_per_ton, rule.calc_mode.value,
        reason=f"{tons_over:g} t above {params.threshold_kg:g} kg",
    )


def _per_tank(rule, cargo, measure, basic_freight):
    return SurchargeCalculation(
        cargo.unit_count, rule.params.amount, rule.calc_mode.value,
        reason=f"{cargo.unit_count} tank(s)",
    )


def _per_lm(rule, cargo, measure, basic_freight):
    return SurchargeCalculation(
        measure.chargeable_lm, rule.params.amount, rule.calc_mode.value,
        reason=f"{measure.chargeable_lm:g} LM",
    )


HANDLERS: dict[CalcMode, Handler] = {
    CalcMode.FLAT: _flat,
    CalcMode.PER_UNIT: _per_unit,
    CalcMode.PERCENT_OF_BASIC_FREIGHT: _percent_of_basic_freight,
    CalcMode.WIDTH_LM_BASIS: _width_lm_basis,
    CalcMode.WIDTH_STEP_BLOCKS: _width_step_blocks,
    CalcMode.WEIGHT_TIER: _weight_tier,
    CalcMode.PER_TON_ABOVE: _per_ton_above,
    CalcMode.PER_TANK: _per_tank,
    CalcMode.PER_LM: _per_lm,
}


# =============================================================================
# CALCULATOR
# =============================================================================

class CarrierSurchargeCalculator:
    """Stateless dispatcher over HANDLERS."""

    def calculate(
        self,
        rule: SurchargeRule,
        cargo: CargoInput,
        chargeable_measure: ChargeableMeasure,
        basic_freight_amount: float | None = None,
    ) -> SurchargeCalculation:
        """
        Quantity and unit amount for one surcharge rule.

        Args:
            rule: Surcharge rule from a RuleSnapshot (params already typed)
            cargo: Cargo line being priced
            chargeable_measure: Base and chargeable LM for the line
            basic_freight_amount: Overrides cargo.basic_freight_amount

        Returns:
            SurchargeCalculation with amount_basis echoing the calc mode
        """
        return HANDLERS[rule.calc_mode](rule, cargo, chargeable_measure, basic_freight_amount)


__all__ = ["CarrierSurchargeCalculator", "HANDLERS"]
