"""
Shared fixtures for carrier rule tests.

Rule tables are built as polars DataFrames from row dicts. Rows default to
active with priority 0; dict/list params are JSON-encoded like a CSV export.
"""

import json
from datetime import date

import polars as pl
import pytest

from carrier_rules.engine import CarrierRuleEngine
from carrier_rules.rules import RuleSnapshot


AS_OF = date(2026, 1, 15)

TEST_CARRIER = {"id": 1, "code": "TEST", "name": "Test Carrier"}


def _frame(rows: list[dict]) -> pl.DataFrame:
    normalized = []
    for row in rows:
        row = dict(row)
        if isinstance(row.get("params"), (dict, list)):
            row["params"] = json.dumps(row["params"])
        row.setdefault("is_active", True)
        row.setdefault("priority", 0)
        normalized.append(row)
    return pl.from_dicts(normalized, infer_schema_length=None)


@pytest.fixture
def as_of() -> date:
    return AS_OF


@pytest.fixture
def make_tables():
    """Factory: table name -> list of row dicts, carrier TEST added by default."""
    def _make(**tables: list[dict]) -> dict[str, pl.DataFrame]:
        tables.setdefault("carriers", [TEST_CARRIER])
        return {name: _frame(rows) for name, rows in tables.items() if rows}
    return _make


@pytest.fixture
def make_snapshot(make_tables):
    """Factory: rule rows -> RuleSnapshot as of AS_OF."""
    def _make(**tables: list[dict]) -> RuleSnapshot:
        return RuleSnapshot.load(make_tables(**tables), AS_OF)
    return _make


@pytest.fixture
def make_engine(make_tables):
    """Factory: rule rows -> CarrierRuleEngine with a fixed clock."""
    def _make(**tables: list[dict]) -> CarrierRuleEngine:
        return CarrierRuleEngine(make_tables(**tables), clock=lambda: AS_OF)
    return _make
