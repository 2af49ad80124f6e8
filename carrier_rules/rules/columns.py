"""
Rule Table Columns

Column contract for the rule tables handed to RuleSnapshot.load() and for
the cargo frame consumed by process_cargo_frame().

A table that is not supplied is treated as empty. Supplied tables must
carry their REQUIRED columns; every other column documented here is
optional and reads as null for every row when missing. Every table is
filtered by is_active and its validity window at load.
"""

# =============================================================================
# SHARED
# =============================================================================

# Optional scoping columns. Single-value legacy columns and list columns
# (JSON array strings or native lists) are merged; an empty list is a wildcard.
SCOPE_COLUMNS = {
    "port_ids": ["port_id", "port_ids"],
    "port_group_ids": ["port_group_id", "port_group_ids"],
    "vessel_names": ["vessel_name", "vessel_names"],
    "category_group_ids": ["category_group_id", "category_group_ids"],
    "vehicle_categories": ["vehicle_category", "vehicle_categories"],
    "service_types": ["service_type", "service_types"],
}


# =============================================================================
# REQUIRED COLUMNS PER TABLE
# =============================================================================

REQUIRED = {
    "carriers": ["id", "code", "name"],
    "ports": ["id", "code", "name"],
    "port_groups": ["id", "carrier_id", "code"],
    "port_group_members": ["port_group_id", "port_id"],
    "category_groups": ["id", "carrier_id", "code"],
    "category_group_members": ["category_group_id", "vehicle_category"],
    "classification_bands": ["id", "carrier_id", "outcome_vehicle_category"],
    "acceptance_rules": ["id", "carrier_id"],
    "transform_rules": ["id", "carrier_id", "transform_code"],
    "surcharge_rules": ["id", "carrier_id", "event_code", "calc_mode"],
    "surcharge_article_maps": ["id", "carrier_id", "event_code", "article_id"],
}


# =============================================================================
# ACCEPTANCE RULE LIMIT COLUMNS
# =============================================================================

ACCEPTANCE_NUMERIC = [
    "max_length_cm", "max_width_cm", "max_height_cm", "max_cbm", "max_weight_kg",
    "min_length_cm", "min_width_cm", "min_height_cm", "min_cbm", "min_weight_kg",
    "soft_max_length_cm", "soft_max_width_cm", "soft_max_height_cm", "soft_max_weight_kg",
]

ACCEPTANCE_FLAGS = [
    "min_is_hard",
    "soft_length_requires_approval",
    "soft_width_requires_approval",
    "soft_height_requires_approval",
    "soft_weight_requires_approval",
    "must_be_empty",
    "must_be_self_propelled",
]


# =============================================================================
# CARGO FRAME
# =============================================================================

CARGO_REQUIRED = [
    "carrier_id",
    "length_cm",
    "width_cm",
    "height_cm",
    "cbm",
    "weight_kg",
]

# Columns appended by process_cargo_frame()
CARGO_OUTPUT = [
    "classified_vehicle_category",
    "matched_category_group",
    "acceptance_status",
    "violations",
    "approvals_required",
    "warnings",
    "base_lm",
    "chargeable_lm",
    "applied_transform_rule_id",
    "surcharge_event_codes",
    "surcharge_total",
    "quote_line_count",
    "validation_error",
    "engine_version",
]
