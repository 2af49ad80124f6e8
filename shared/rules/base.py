"""
Rule Table Helpers

Shared polars expressions for every carrier rule table.
"""

from datetime import date, datetime
from typing import Union

import pandas as pd
import polars as pl


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def in_window(
    as_of: date,
    start_col: str = "effective_from",
    end_col: str = "effective_until"
) -> pl.Expr:
    """
    Check if a rule row's validity window covers a date.

    Both bounds are inclusive. A null start means "valid since forever",
    a null end means "open-ended".

    Args:
        as_of: Date the rule must be valid on
        start_col: Column holding the first valid date
        end_col: Column holding the last valid date

    Returns:
        Polars expression evaluating to True if the window covers as_of
    """
    started = pl.col(start_col).is_null() | (pl.col(start_col) <= pl.lit(as_of))
    not_ended = pl.col(end_col).is_null() | (pl.col(end_col) >= pl.lit(as_of))
    return started & not_ended


def eligible(as_of: date) -> pl.Expr:
    """Active flag set and validity window covering as_of."""
    return pl.col("is_active").fill_null(False) & in_window(as_of)


DATE_FORMATS = ("%Y-%m-%d",)
DATETIME_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S%.f", "%Y-%m-%dT%H:%M:%S%.f")


def parse_date_strings(df: pl.DataFrame, col: str) -> pl.Series:
    """
    Parse a string date column, accepting ISO dates and datetimes.

    Blank strings become null. Any other value that matches none of the
    formats raises, so a bad export never widens a validity window.

    Raises:
        ValueError: If a non-blank value cannot be parsed
    """
    text = pl.col(col).str.strip_chars()
    text = pl.when(text == "").then(pl.lit(None, dtype=pl.Utf8)).otherwise(text)
    parsers = [text.str.to_date(fmt, strict=False) for fmt in DATE_FORMATS]
    parsers += [text.str.to_datetime(fmt, strict=False).dt.date() for fmt in DATETIME_FORMATS]

    parsed = df.select(text.alias("raw"), pl.coalesce(parsers).alias("parsed"))
    bad = parsed.filter(pl.col("raw").is_not_null() & pl.col("parsed").is_null())["raw"]
    if bad.len() > 0:
        raise ValueError(f"unparseable {col} values: {bad.unique(maintain_order=True).to_list()[:5]}")
    return parsed["parsed"].alias(col)


def normalize_validity(df: pl.DataFrame) -> pl.DataFrame:
    """
    Bring validity columns to a comparable shape.

    Adds missing effective_from/effective_until columns as null dates,
    parses string dates (CSV exports) and truncates datetimes to dates.
    A missing is_active column means every row is active.

    Raises:
        ValueError: If a string date cannot be parsed
    """
    if "is_active" not in df.columns:
        df = df.with_columns(pl.lit(True).alias("is_active"))

    for col in ("effective_from", "effective_until"):
        if col not in df.columns:
            df = df.with_columns(pl.lit(None, dtype=pl.Date).alias(col))
            continue

        dtype = df.schema[col]
        if dtype == pl.Utf8:
            df = df.with_columns(parse_date_strings(df, col))
            continue
        if isinstance(dtype, pl.Datetime):
            expr = pl.col(col).dt.date()
        elif dtype == pl.Date:
            continue
        else:
            expr = pl.col(col).cast(pl.Date)
        df = df.with_columns(expr.alias(col))

    active_dtype = df.schema["is_active"]
    if active_dtype == pl.Utf8:
        df = df.with_columns(
            pl.col("is_active").str.to_lowercase().is_in(["true", "1", "yes"]).alias("is_active")
        )
    elif active_dtype != pl.Boolean:
        df = df.with_columns(pl.col("is_active").cast(pl.Boolean))

    return df


def as_date(value: date | datetime | None) -> date | None:
    """Coerce a datetime to its date, pass dates and None through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def to_polars(data: Union[pl.DataFrame, pd.DataFrame]) -> pl.DataFrame:
    """
    Accept a polars or pandas table, return polars.

    Pandas frames are converted row-wise with NaN/NaT mapped to None, so
    object columns holding JSON strings or lists survive unchanged.
    """
    if isinstance(data, pl.DataFrame):
        return data
    if isinstance(data, pd.DataFrame):
        if data.empty:
            return pl.DataFrame({col: [] for col in data.columns})
        records = data.astype(object).where(pd.notna(data), None).to_dict(orient="records")
        return pl.from_dicts(records, infer_schema_length=None)
    raise TypeError(f"Expected a polars or pandas DataFrame, got {type(data).__name__}")
