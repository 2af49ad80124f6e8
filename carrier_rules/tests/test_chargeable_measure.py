"""
Tests for loading meter calculation

Run with: pytest carrier_rules/tests/ -v
"""

import pytest

from carrier_rules.chargeable_measure import ChargeableMeasureService, calculate_base_lm
from carrier_rules.resolver import CarrierRuleResolver


def transform(id, trigger, divisor, **extra) -> dict:
    row = {
        "id": id,
        "carrier_id": 1,
        "transform_code": "OVERWIDTH_LM_RECALC",
        "params": {"trigger_width_gt_cm": trigger, "divisor_cm": divisor},
    }
    row.update(extra)
    return row


@pytest.fixture
def make_service(make_snapshot):
    def _make(*rules: dict) -> ChargeableMeasureService:
        return ChargeableMeasureService(CarrierRuleResolver(make_snapshot(transform_rules=list(rules))))
    return _make


# =============================================================================
# TESTS: BASE LM
# =============================================================================

class TestBaseLm:
    """Tests for calculate_base_lm."""

    @pytest.mark.parametrize("length,width,expected", [
        (450, 180, 4.5),      # narrow cargo clamped to the 250 cm lane
        (600, 250, 6.0),
        (600, 260, 6.24),     # overwidth uses its own width
        (1200, 255, 12.24),
    ])
    def test_base_lm(self, length, width, expected):
        assert calculate_base_lm(length, width) == pytest.approx(expected)

    @pytest.mark.parametrize("length,width", [(0, 200), (450, 0), (-10, 200)])
    def test_non_positive_dimension_gives_zero(self, length, width):
        assert calculate_base_lm(length, width) == 0.0

    def test_service_exposes_base_lm(self):
        assert ChargeableMeasureService.calculate_base_lm(450, 180) == pytest.approx(4.5)


# =============================================================================
# TESTS: CHARGEABLE LM
# =============================================================================

class TestChargeableLm:
    """Tests for ChargeableMeasureService.compute_chargeable_lm."""

    def test_overwidth_recalculated(self, make_service):
        service = make_service(transform(1, trigger=260, divisor=250))
        measure = service.compute_chargeable_lm(600, 280, carrier_id=1)

        assert measure.base_lm == pytest.approx(6.72)
        assert measure.chargeable_lm == pytest.approx(6.72)
        assert measure.applied_transform_rule_id == 1
        meta = measure.meta_dict()
        assert meta["transform_code"] == "OVERWIDTH_LM_RECALC"
        assert meta["divisor_cm"] == 250

    def test_divisor_changes_chargeable_lm(self, make_service):
        service = make_service(transform(1, trigger=260, divisor=240))
        measure = service.compute_chargeable_lm(600, 280, carrier_id=1)

        assert measure.base_lm == pytest.approx(6.72)
        assert measure.chargeable_lm == pytest.approx(7.0)

    def test_width_at_trigger_keeps_base(self, make_service):
        service = make_service(transform(1, trigger=260, divisor=240))
        measure = service.compute_chargeable_lm(600, 260, carrier_id=1)

        assert measure.chargeable_lm == measure.base_lm == pytest.approx(6.24)
        assert measure.applied_transform_rule_id is None
        assert "within trigger" in measure.meta_dict()["reason"]

    def test_no_carrier_gives_base(self, make_service):
        service = make_service(transform(1, trigger=100, divisor=100))
        measure = service.compute_chargeable_lm(450, 180)
        assert measure.chargeable_lm == pytest.approx(4.5)
        assert measure.applied_transform_rule_id is None
        assert measure.meta == ()

    def test_no_rule_gives_base(self, make_service):
        measure = make_service().compute_chargeable_lm(600, 300, carrier_id=1)
        assert measure.chargeable_lm == measure.base_lm
        assert measure.applied_transform_rule_id is None

    def test_port_rule_overrides_global(self, make_service):
        service = make_service(
            transform(1, trigger=260, divisor=240, priority=10),
            transform(2, trigger=255, divisor=240, port_id=10, priority=15),
        )

        at_port = service.compute_chargeable_lm(600, 258, carrier_id=1, port_id=10)
        assert at_port.applied_transform_rule_id == 2
        assert at_port.chargeable_lm == pytest.approx(600 * 258 / 24000)

        # Global rule wins elsewhere and does not trigger at 258 cm
        elsewhere = service.compute_chargeable_lm(600, 258, carrier_id=1, port_id=11)
        assert elsewhere.applied_transform_rule_id is None
        assert elsewhere.chargeable_lm == pytest.approx(600 * 258 / 25000)

    def test_best_rule_only(self, make_service):
        """The winning rule is checked alone; a looser losing rule never applies."""
        service = make_service(
            transform(1, trigger=300, divisor=240, port_id=10),
            transform(2, trigger=200, divisor=240),
        )
        measure = service.compute_chargeable_lm(600, 280, carrier_id=1, port_id=10)
        assert measure.applied_transform_rule_id is None
