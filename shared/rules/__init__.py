"""
Shared Rules

Validity-window helpers and frame conversion for carrier rule tables.
"""

from .base import as_date, eligible, in_window, normalize_validity, parse_date_strings, to_polars

__all__ = [
    "as_date",
    "eligible",
    "in_window",
    "normalize_validity",
    "parse_date_strings",
    "to_polars",
]
