"""
Carrier Rules Data

Reference rule tables and configuration constants.

Structure:
    - reference/: Configuration constants and sample rule tables (CSV)
"""

from .reference import (
    load_rule_tables,
    load_table,
    CM2_PER_LM,
    LM_LANE_WIDTH_M,
    STANDARD_LANE_WIDTH_CM,
)
from .reference import specificity as SPECIFICITY
from .reference import surcharge_defaults as SURCHARGE_DEFAULTS

__all__ = [
    # Rule table loaders
    "load_rule_tables",
    "load_table",
    # Loading meter config
    "CM2_PER_LM",
    "LM_LANE_WIDTH_M",
    "STANDARD_LANE_WIDTH_CM",
    # Scoring / defaults config
    "SPECIFICITY",
    "SURCHARGE_DEFAULTS",
]
