"""
Tests for surcharge calc-mode handlers and exclusivity

Run with: pytest carrier_rules/tests/ -v
"""

from datetime import date

import pytest

from carrier_rules.dtos import CargoInput, ChargeableMeasure, SurchargeCalculation
from carrier_rules.rules import CalcMode, RuleScope, SurchargeRule
from carrier_rules.rules.params import parse_surcharge_params
from carrier_rules.surcharges import (
    HANDLERS,
    CarrierSurchargeCalculator,
    apply_exclusivity,
    get_exclusivity_group,
    validate_handlers,
)


# =============================================================================
# FIXTURES
# =============================================================================

def make_rule(calc_mode: str, params: dict, id: int = 1, **extra) -> SurchargeRule:
    mode, typed = parse_surcharge_params(calc_mode, params)
    fields = dict(
        id=id,
        carrier_id=1,
        scope=RuleScope(),
        priority=0,
        effective_from=None,
        event_code=f"EVENT_{id}",
        name=f"Event {id}",
        calc_mode=mode,
        params=typed,
        exclusive_group=None,
    )
    fields.update(extra)
    return SurchargeRule(**fields)


def make_cargo(**overrides) -> CargoInput:
    fields = dict(
        carrier_id=1,
        length_cm=600.0,
        width_cm=288.0,
        height_cm=200.0,
        cbm=34.56,
        weight_kg=8000.0,
    )
    fields.update(overrides)
    return CargoInput(**fields)


@pytest.fixture
def calculator() -> CarrierSurchargeCalculator:
    return CarrierSurchargeCalculator()


@pytest.fixture
def measure() -> ChargeableMeasure:
    """600 x 288 cm: 6.912 LM."""
    return ChargeableMeasure(base_lm=6.912, chargeable_lm=6.912)


# =============================================================================
# TESTS: HANDLER REGISTRY
# =============================================================================

class TestHandlerRegistry:

    def test_every_calc_mode_has_handler(self):
        assert set(HANDLERS) == set(CalcMode)
        validate_handlers()


# =============================================================================
# TESTS: SIMPLE MODES
# =============================================================================

class TestSimpleModes:
    """FLAT, PER_UNIT, PER_TANK, PER_LM."""

    def test_flat(self, calculator, measure):
        calc = calculator.calculate(make_rule("FLAT", {"amount": 75}), make_cargo(unit_count=4), measure)
        assert (calc.qty, calc.amount) == (1, 75.0)
        assert calc.amount_basis == "FLAT"

    def test_per_unit(self, calculator, measure):
        calc = calculator.calculate(make_rule("PER_UNIT", {"amount": 150}), make_cargo(unit_count=3), measure)
        assert (calc.qty, calc.amount) == (3, 150.0)
        assert calc.total == 450.0

    def test_per_tank(self, calculator, measure):
        calc = calculator.calculate(make_rule("PER_TANK", {"amount": 220}), make_cargo(unit_count=2), measure)
        assert (calc.qty, calc.amount) == (2, 220.0)

    def test_per_lm(self, calculator):
        measure = ChargeableMeasure(base_lm=6.24, chargeable_lm=7.0)
        calc = calculator.calculate(make_rule("PER_LM", {"amount": 30}), make_cargo(), measure)
        assert calc.qty == pytest.approx(7.0)
        assert calc.amount == 30.0


# =============================================================================
# TESTS: PERCENT OF BASIC FREIGHT
# =============================================================================

class TestPercentOfBasicFreight:

    def test_percentage_of_cargo_freight(self, calculator, measure):
        rule = make_rule("PERCENT_OF_BASIC_FREIGHT", {"percentage": 10})
        calc = calculator.calculate(rule, make_cargo(basic_freight_amount=1000.0), measure)
        assert calc.qty == 1
        assert calc.amount == pytest.approx(100.0)
        assert not calc.needs_basic_freight

    def test_argument_overrides_cargo_freight(self, calculator, measure):
        rule = make_rule("PERCENT_OF_BASIC_FREIGHT", {"percentage": 10})
        calc = calculator.calculate(rule, make_cargo(basic_freight_amount=1000.0), measure, 2000.0)
        assert calc.amount == pytest.approx(200.0)

    @pytest.mark.parametrize("freight", [None, 0.0])
    def test_missing_freight_flags_need(self, calculator, measure, freight):
        rule = make_rule("PERCENT_OF_BASIC_FREIGHT", {"percentage": 10})
        calc = calculator.calculate(rule, make_cargo(basic_freight_amount=freight), measure)
        assert calc.qty == 0
        assert calc.needs_basic_freight


# =============================================================================
# TESTS: WIDTH MODES
# =============================================================================

class TestWidthLmBasis:

    def test_overwidth_charged_on_chargeable_lm(self, calculator):
        measure = ChargeableMeasure(base_lm=6.912, chargeable_lm=7.2)
        rule = make_rule("WIDTH_LM_BASIS", {"amount_per_lm": 50, "trigger_width_gt_cm": 250})
        calc = calculator.calculate(rule, make_cargo(), measure)
        assert calc.qty == pytest.approx(7.2)
        assert calc.amount == 50.0

    def test_base_lm_when_configured(self, calculator):
        measure = ChargeableMeasure(base_lm=6.912, chargeable_lm=7.2)
        rule = make_rule("WIDTH_LM_BASIS", {
            "amount_per_lm": 50, "trigger_width_gt_cm": 250, "use_chargeable_lm": False,
        })
        assert calculator.calculate(rule, make_cargo(), measure).qty == pytest.approx(6.912)

    def test_within_trigger_is_zero(self, calculator, measure):
        rule = make_rule("WIDTH_LM_BASIS", {"amount_per_lm": 50, "trigger_width_gt_cm": 290})
        assert calculator.calculate(rule, make_cargo(), measure).qty == 0


class TestWidthStepBlocks:
    """blocks = rounding((width - threshold) / block)."""

    PARAMS = {"amount_per_block": 40, "threshold_cm": 250, "block_cm": 25}

    def test_blocks_times_lm(self, calculator, measure):
        calc = calculator.calculate(make_rule("WIDTH_STEP_BLOCKS", self.PARAMS), make_cargo(), measure)
        # (288 - 250) / 25 = 1.52 -> ceil 2
        assert calc.qty == pytest.approx(2 * 6.912)
        assert calc.amount == 40.0

    def test_unit_basis(self, calculator, measure):
        rule = make_rule("WIDTH_STEP_BLOCKS", {**self.PARAMS, "qty_basis": "UNIT"})
        assert calculator.calculate(rule, make_cargo(), measure).qty == 2

    @pytest.mark.parametrize("rounding,width,blocks", [
        ("FLOOR", 288.0, 1),
        ("ROUND", 288.0, 2),
        ("ROUND", 262.5, 1),   # 0.5 rounds half up
        ("ROUND", 262.0, 0),
        ("CEIL", 251.0, 1),
    ])
    def test_rounding(self, calculator, measure, rounding, width, blocks):
        rule = make_rule("WIDTH_STEP_BLOCKS", {**self.PARAMS, "rounding": rounding, "qty_basis": "UNIT"})
        assert calculator.calculate(rule, make_cargo(width_cm=width), measure).qty == blocks

    def test_within_trigger_is_zero(self, calculator, measure):
        rule = make_rule("WIDTH_STEP_BLOCKS", {**self.PARAMS, "trigger_width_gt_cm": 300})
        assert calculator.calculate(rule, make_cargo(), measure).qty == 0


# =============================================================================
# TESTS: WEIGHT MODES
# =============================================================================

class TestWeightTier:

    TIERS = {"tiers": [{"max_kg": 10000, "amount": 120}, {"max_kg": 30000, "amount": 500}]}

    @pytest.mark.parametrize("weight,amount", [
        (8000.0, 120.0),
        (10000.0, 120.0),
        (25000.0, 500.0),
    ])
    def test_first_tier_at_or_above_weight(self, calculator, measure, weight, amount):
        calc = calculator.calculate(make_rule("WEIGHT_TIER", self.TIERS), make_cargo(weight_kg=weight), measure)
        assert calc.qty == 1
        assert calc.amount == amount

    def test_above_all_tiers_is_zero(self, calculator, measure):
        calc = calculator.calculate(make_rule("WEIGHT_TIER", self.TIERS), make_cargo(weight_kg=35000.0), measure)
        assert calc.qty == 0

    def test_empty_tiers_is_zero(self, calculator, measure):
        assert calculator.calculate(make_rule("WEIGHT_TIER", {"tiers": []}), make_cargo(), measure).qty == 0

    def test_catch_all_with_per_ton_over(self, calculator, measure):
        """Conakry: 155 up to 20 t, then 11 per ton above 20 t."""
        rule = make_rule("WEIGHT_TIER", {"tiers": [
            {"max_kg": 10000, "amount": 120},
            {"max_kg": 20000, "amount": 155},
            {"min_kg": 20000, "amount": 155, "per_ton_over": 11},
        ]})
        calc = calculator.calculate(rule, make_cargo(weight_kg=25000.0), measure)
        assert calc.qty == 1
        assert calc.amount == pytest.approx(210.0)

        calc = calculator.calculate(rule, make_cargo(weight_kg=15000.0), measure)
        assert calc.amount == 155.0


class TestPerTonAbove:

    def test_tons_above_threshold(self, calculator, measure):
        rule = make_rule("PER_TON_ABOVE", {"threshold_kg": 20000, "amount_per_ton": 12})
        calc = calculator.calculate(rule, make_cargo(weight_kg=23500.0), measure)
        assert calc.qty == pytest.approx(3.5)
        assert calc.amount == 12.0

    def test_at_threshold_is_zero(self, calculator, measure):
        rule = make_rule("PER_TON_ABOVE", {"threshold_kg": 20000, "amount_per_ton": 12})
        assert calculator.calculate(rule, make_cargo(weight_kg=20000.0), measure).qty == 0


# =============================================================================
# TESTS: EXCLUSIVITY
# =============================================================================

class TestExclusivity:
    """Within a group the first rule (priority desc) with qty > 0 wins."""

    @staticmethod
    def evaluate_with(qty_by_id: dict[int, float]):
        def _evaluate(rule):
            return SurchargeCalculation(qty_by_id[rule.id], 10.0, rule.calc_mode.value)
        return _evaluate

    def test_highest_priority_wins(self):
        high = make_rule("FLAT", {"amount": 1}, id=1, priority=10, exclusive_group="OVERWIDTH")
        low = make_rule("FLAT", {"amount": 1}, id=2, priority=5, exclusive_group="OVERWIDTH")
        fired = apply_exclusivity([low, high], self.evaluate_with({1: 1, 2: 1}))
        assert [rule.id for rule, _ in fired] == [1]

    def test_falls_through_to_next_rule_when_zero(self):
        high = make_rule("FLAT", {"amount": 1}, id=1, priority=10, exclusive_group="OVERWIDTH")
        low = make_rule("FLAT", {"amount": 1}, id=2, priority=5, exclusive_group="OVERWIDTH")
        fired = apply_exclusivity([high, low], self.evaluate_with({1: 0, 2: 3}))
        assert [(rule.id, calc.qty) for rule, calc in fired] == [(2, 3)]

    def test_recency_breaks_priority_tie(self):
        old = make_rule("FLAT", {"amount": 1}, id=5, exclusive_group="G", effective_from=date(2024, 1, 1))
        new = make_rule("FLAT", {"amount": 1}, id=1, exclusive_group="G", effective_from=date(2025, 1, 1))
        assert [r.id for r in get_exclusivity_group([old, new], "G")] == [1, 5]

    def test_ungrouped_rules_independent(self):
        rules = [
            make_rule("FLAT", {"amount": 1}, id=1),
            make_rule("FLAT", {"amount": 1}, id=2),
            make_rule("FLAT", {"amount": 1}, id=3, exclusive_group="G"),
            make_rule("FLAT", {"amount": 1}, id=4, exclusive_group="G"),
        ]
        fired = apply_exclusivity(rules, self.evaluate_with({1: 1, 2: 0, 3: 1, 4: 1}))
        assert [rule.id for rule, _ in fired] == [1, 4]

    def test_nothing_fires(self):
        rules = [make_rule("FLAT", {"amount": 1}, id=1, exclusive_group="G")]
        assert apply_exclusivity(rules, self.evaluate_with({1: 0})) == []
