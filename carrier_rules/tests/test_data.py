"""
Tests for bundled reference tables and the calculator script

Run with: pytest carrier_rules/tests/ -v
"""

from datetime import date

import pytest

from carrier_rules import AcceptanceStatus, CarrierRuleEngine
from carrier_rules.data import load_rule_tables, load_table
from carrier_rules.rules import RuleSnapshot
from carrier_rules.rules.columns import REQUIRED
from carrier_rules.scripts.calculator import create_cargo, get_user_input, print_results


AS_OF = date(2026, 1, 15)


@pytest.fixture(scope="module")
def snapshot() -> RuleSnapshot:
    return RuleSnapshot.load(load_rule_tables(), AS_OF)


def user_values(**overrides) -> dict:
    values = {
        "carrier_code": "GRIMALDI",
        "pod_code": "CKY",
        "vessel_name": None,
        "length_cm": 450.0,
        "width_cm": 180.0,
        "height_cm": 150.0,
        "weight_kg": 1500.0,
        "cbm": 12.15,
        "unit_count": 1,
        "category": None,
        "basic_freight_amount": 1000.0,
        "flags": ("empty",),
        "as_of": AS_OF,
    }
    values.update(overrides)
    return values


# =============================================================================
# TESTS: REFERENCE TABLES
# =============================================================================

class TestReferenceTables:

    def test_every_table_bundled(self):
        assert set(load_rule_tables()) == set(REQUIRED)

    def test_load_single_table(self):
        ports = load_table("ports")
        assert ports.height == 9
        assert "ABJ" in ports["code"].to_list()

    def test_snapshot_loads(self, snapshot):
        assert [c.code for c in snapshot.carriers] == ["GRIMALDI"]
        assert len(snapshot.ports) == 9
        assert len(snapshot.classification_bands) == 3
        assert len(snapshot.acceptance_rules) == 4
        assert len(snapshot.transform_rules) == 2
        assert len(snapshot.surcharge_rules) == 4
        assert len(snapshot.article_maps) == 4

    def test_west_africa_port_group(self, snapshot):
        assert snapshot.port_groups[0].port_ids == frozenset(range(1, 9))
        assert snapshot.port_group_ids_for(1, 9) == frozenset()

    def test_conakry_tiers(self, snapshot):
        rule = next(r for r in snapshot.surcharge_rules if r.event_code == "CONAKRY_WEIGHT_TIER")
        assert rule.scope.port_ids == (4,)
        tiers = rule.params.tiers
        assert [t.max_kg for t in tiers] == [10000, 20000, None]
        assert tiers[-1].per_ton_over == 11

    def test_nothing_eligible_before_rules_start(self):
        early = RuleSnapshot.load(load_rule_tables(), date(2024, 6, 1))
        assert early.surcharge_rules == ()
        # Ports carry no validity columns
        assert len(early.ports) == 9


# =============================================================================
# TESTS: CALCULATOR SCRIPT
# =============================================================================

class TestCalculatorScript:

    def test_create_cargo_resolves_codes(self, snapshot):
        cargo = create_cargo(user_values(), snapshot)
        assert cargo.carrier_id == 1
        assert cargo.pod_port_id == 4
        assert cargo.flags == ("empty",)

    def test_create_cargo_without_port(self, snapshot):
        assert create_cargo(user_values(pod_code=None), snapshot).pod_port_id is None

    @pytest.mark.parametrize("overrides,message", [
        ({"carrier_code": "NOPE"}, "Unknown carrier code"),
        ({"pod_code": "XXX"}, "Unknown port code"),
    ])
    def test_create_cargo_unknown_codes(self, snapshot, overrides, message):
        with pytest.raises(ValueError, match=message):
            create_cargo(user_values(**overrides), snapshot)

    def test_get_user_input(self, monkeypatch):
        answers = iter([
            "", "abj", "", "450", "180", "150", "1500", "", "2", "", "1000", "empty", "2026-01-15",
        ])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))

        values = get_user_input()
        assert values["carrier_code"] == "GRIMALDI"
        assert values["pod_code"] == "abj"
        assert values["cbm"] == pytest.approx(12.15)
        assert values["unit_count"] == 2
        assert values["category"] is None
        assert values["flags"] == ("empty",)
        assert values["as_of"] == AS_OF

    def test_print_results(self, snapshot, capsys):
        engine = CarrierRuleEngine(load_rule_tables(), clock=lambda: AS_OF)
        cargo = create_cargo(user_values(), snapshot)
        result = engine.process_cargo(cargo, snapshot)
        assert result.acceptance_status is AcceptanceStatus.ALLOWED

        print_results(result, cargo)
        out = capsys.readouterr().out
        assert "Vehicle category: car" in out
        assert "CONAKRY_WEIGHT_TIER" in out
        assert "TOTAL" in out
        assert "Article 1002" in out
