"""
Batch Cargo Processing

DataFrame in, DataFrame out. Entry point for the quotation recalculation
collaborator: every row is one cargo line, priced against a single rule
snapshot loaded once for the whole frame.

REQUIRED INPUT COLUMNS
----------------------
    carrier_id          - Carrier row id
    length_cm           - Cargo length
    width_cm            - Cargo width
    height_cm           - Cargo height
    cbm                 - Volume in cubic meters
    weight_kg           - Weight in kilograms

OPTIONAL INPUT COLUMNS
----------------------
    pod_port_id, unit_count (default 1), category, vessel_name,
    category_group_id, basic_freight_amount, service_type,
    flags (list, or comma-separated string)

OUTPUT COLUMNS ADDED
--------------------
    classified_vehicle_category, matched_category_group, acceptance_status,
    violations, approvals_required, warnings,
    base_lm, chargeable_lm, applied_transform_rule_id,
    surcharge_event_codes, surcharge_total, quote_line_count,
    validation_error (null unless the row failed validation),
    engine_version

Rows failing validation are flagged, never priced: their result columns
stay null and validation_error carries the reasons.

USAGE
-----
    from carrier_rules.process_frame import process_cargo_frame
    result = process_cargo_frame(df, engine)
"""

import logging
from datetime import date
from typing import Any, Mapping, Union

import pandas as pd
import polars as pl

from shared.rules import to_polars

from .dtos import CargoInput, ProcessCargoResult
from .engine import CarrierRuleEngine
from .errors import CargoValidationError
from .rules.columns import CARGO_REQUIRED
from .version import VERSION

logger = logging.getLogger(__name__)


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def process_cargo_frame(
    df: Union[pl.DataFrame, pd.DataFrame],
    engine: CarrierRuleEngine,
    as_of: date | None = None,
) -> pl.DataFrame:
    """
    Run the rule engine over every cargo row.

    Args:
        df: Cargo lines with required columns (see module docstring)
        engine: Engine holding the rule tables
        as_of: Validity date for the snapshot (engine clock if omitted)

    Returns:
        Polars DataFrame with the input columns plus result columns

    Raises:
        ValueError: If required input columns are missing
    """
    df = to_polars(df)
    missing = [c for c in CARGO_REQUIRED if c not in df.columns]
    if missing:
        raise ValueError(f"Cargo frame is missing required columns: {missing}")

    snapshot = engine.load_snapshot(as_of)

    results: list[ProcessCargoResult | None] = []
    errors: list[str | None] = []
    for row in df.iter_rows(named=True):
        try:
            results.append(engine.process_cargo(cargo_from_row(row), snapshot))
            errors.append(None)
        except CargoValidationError as e:
            results.append(None)
            errors.append("; ".join(e.errors))

    invalid = sum(e is not None for e in errors)
    if invalid:
        logger.warning("%d of %d cargo rows failed validation", invalid, df.height)

    return _add_result_columns(df, results, errors)


# =============================================================================
# ROW CONVERSION
# =============================================================================

def _flags(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(f.strip() for f in value.split(",") if f.strip())
    return tuple(str(f).strip() for f in value if f is not None)


def cargo_from_row(row: Mapping[str, Any]) -> CargoInput:
    """
    Build a CargoInput from one frame row (missing optionals read as null).

    Raises:
        CargoValidationError: If a numeric cell cannot be converted
    """
    errors: list[str] = []

    def number(name: str, cast, default=None):
        value = row.get(name)
        if value is None:
            return default
        try:
            return cast(value)
        except (TypeError, ValueError):
            errors.append(f"{name} must be numeric, got {value!r}")
            return default

    cargo = dict(
        carrier_id=number("carrier_id", int),
        length_cm=number("length_cm", float),
        width_cm=number("width_cm", float),
        height_cm=number("height_cm", float),
        cbm=number("cbm", float),
        weight_kg=number("weight_kg", float),
        unit_count=number("unit_count", int, default=1),
        pod_port_id=number("pod_port_id", int),
        category_group_id=number("category_group_id", int),
        basic_freight_amount=number("basic_freight_amount", float),
    )
    if errors:
        raise CargoValidationError(errors)

    return CargoInput(
        **cargo,
        category=row.get("category") or None,
        vessel_name=row.get("vessel_name") or None,
        service_type=row.get("service_type") or None,
        flags=_flags(row.get("flags")),
    )


# =============================================================================
# RESULT COLUMNS
# =============================================================================

def _add_result_columns(
    df: pl.DataFrame,
    results: list[ProcessCargoResult | None],
    errors: list[str | None],
) -> pl.DataFrame:
    def col(getter):
        return [None if r is None else getter(r) for r in results]

    str_list = pl.List(pl.Utf8)
    return df.with_columns(
        pl.Series("classified_vehicle_category", col(lambda r: r.classified_vehicle_category), dtype=pl.Utf8),
        pl.Series("matched_category_group", col(lambda r: r.matched_category_group), dtype=pl.Utf8),
        pl.Series("acceptance_status", col(lambda r: r.acceptance_status.value), dtype=pl.Utf8),
        pl.Series("violations", col(lambda r: list(r.violations)), dtype=str_list),
        pl.Series("approvals_required", col(lambda r: list(r.approvals_required)), dtype=str_list),
        pl.Series("warnings", col(lambda r: list(r.warnings)), dtype=str_list),
        pl.Series("base_lm", col(lambda r: r.chargeable_measure.base_lm), dtype=pl.Float64),
        pl.Series("chargeable_lm", col(lambda r: r.chargeable_measure.chargeable_lm), dtype=pl.Float64),
        pl.Series(
            "applied_transform_rule_id",
            col(lambda r: r.chargeable_measure.applied_transform_rule_id),
            dtype=pl.Int64,
        ),
        pl.Series(
            "surcharge_event_codes",
            col(lambda r: [e.event_code for e in r.surcharge_events]),
            dtype=str_list,
        ),
        pl.Series("surcharge_total", col(lambda r: float(r.surcharge_total)), dtype=pl.Float64),
        pl.Series("quote_line_count", col(lambda r: len(r.quote_line_drafts)), dtype=pl.Int64),
        pl.Series("validation_error", errors, dtype=pl.Utf8),
        pl.lit(VERSION).alias("engine_version"),
    )


__all__ = ["process_cargo_frame", "cargo_from_row"]
