"""
Rule Snapshot

Point-in-time, read-only view of every carrier rule table.

RuleSnapshot.load() filters each table by is_active and validity window in
one polars pass, converts the surviving rows to frozen row models and
parses calc modes / transform codes into typed variants. Configuration
errors are collected across all tables and raised together as a
RuleConfigurationError, so a bad rule is rejected at ingestion and never
discovered mid-pipeline.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Mapping

import polars as pl

from shared.rules import as_date, eligible, normalize_validity, to_polars

from ..errors import RuleConfigurationError
from .columns import ACCEPTANCE_FLAGS, ACCEPTANCE_NUMERIC, REQUIRED, SCOPE_COLUMNS
from .models import (
    AcceptanceRule,
    ArticleMap,
    CategoryGroup,
    ClassificationBand,
    Port,
    PortGroup,
    ShippingCarrier,
    SurchargeRule,
    TransformRule,
)
from .params import (
    load_params,
    parse_calc_mode,
    parse_rule_logic,
    parse_surcharge_params,
    parse_transform_params,
)
from .scope import RuleScope, normalize_vessel

logger = logging.getLogger(__name__)


# =============================================================================
# VALUE COERCION
# =============================================================================

def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and value != value)


def _as_list(value: Any) -> list:
    """Scope cell (null, scalar, list, or JSON array string) as a list."""
    if _is_missing(value):
        return []
    if isinstance(value, (list, tuple, pl.Series)):
        return [v for v in value if not _is_missing(v)]
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text.startswith("["):
            parsed = json.loads(text)
            return [v for v in parsed if not _is_missing(v)]
        return [text]
    return [value]


def _int(value: Any, default: int | None = None) -> int | None:
    if _is_missing(value):
        return default
    return int(value)


def _float(value: Any, field: str) -> float | None:
    if _is_missing(value):
        return None
    number = float(value)
    if number < 0:
        raise ValueError(f"{field} must be non-negative, got {number}")
    return number


def _bool(value: Any, default: bool = False) -> bool:
    if _is_missing(value):
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _str(value: Any) -> str | None:
    if _is_missing(value):
        return None
    text = str(value).strip()
    return text or None


def _scope(row: Mapping[str, Any]) -> RuleScope:
    """Merge legacy single-value and list scope columns into a RuleScope."""
    merged: dict[str, list] = {}
    for target, sources in SCOPE_COLUMNS.items():
        values = []
        for col in sources:
            values.extend(_as_list(row.get(col)))
        merged[target] = values

    def unique(values, convert):
        out = []
        for v in values:
            v = convert(v)
            if v is not None and v not in out:
                out.append(v)
        return tuple(out)

    return RuleScope(
        port_ids=unique(merged["port_ids"], _int),
        port_group_ids=unique(merged["port_group_ids"], _int),
        vessel_names=unique(merged["vessel_names"], normalize_vessel),
        category_group_ids=unique(merged["category_group_ids"], _int),
        vehicle_categories=unique(merged["vehicle_categories"], _str),
        service_types=unique(merged["service_types"], _str),
    )


def _base_fields(row: Mapping[str, Any]) -> dict:
    return {
        "id": int(row["id"]),
        "carrier_id": int(row["carrier_id"]),
        "scope": _scope(row),
        "priority": _int(row.get("priority"), 0),
        "effective_from": as_date(row.get("effective_from")),
    }


# =============================================================================
# ROW BUILDERS
# =============================================================================

def _build_band(row: Mapping[str, Any]) -> ClassificationBand:
    return ClassificationBand(
        **_base_fields(row),
        outcome_vehicle_category=str(row["outcome_vehicle_category"]).strip(),
        max_cbm=_float(row.get("max_cbm"), "max_cbm"),
        max_height_cm=_float(row.get("max_height_cm"), "max_height_cm"),
        rule_logic=parse_rule_logic(_str(row.get("rule_logic"))),
    )


def _build_acceptance(row: Mapping[str, Any]) -> AcceptanceRule:
    numeric = {col: _float(row.get(col), col) for col in ACCEPTANCE_NUMERIC}
    flags = {col: _bool(row.get(col)) for col in ACCEPTANCE_FLAGS}
    return AcceptanceRule(
        **_base_fields(row),
        **numeric,
        **flags,
        notes=_str(row.get("notes")),
    )


def _build_transform(row: Mapping[str, Any]) -> TransformRule:
    code, params = parse_transform_params(row["transform_code"], row.get("params"))
    return TransformRule(**_base_fields(row), transform_code=code, params=params)


def _build_surcharge(row: Mapping[str, Any]) -> SurchargeRule:
    raw_params = load_params(row.get("params"))
    calc_mode, params = parse_surcharge_params(row["calc_mode"], raw_params)
    exclusive_group = _str(row.get("exclusive_group")) or _str(raw_params.get("exclusive_group"))
    return SurchargeRule(
        **_base_fields(row),
        event_code=str(row["event_code"]).strip(),
        name=_str(row.get("name")) or str(row["event_code"]).strip(),
        calc_mode=calc_mode,
        params=params,
        exclusive_group=exclusive_group,
    )


def _build_article_map(row: Mapping[str, Any]) -> ArticleMap:
    qty_mode = _str(row.get("qty_mode"))
    return ArticleMap(
        **_base_fields(row),
        event_code=str(row["event_code"]).strip(),
        article_id=int(row["article_id"]),
        qty_mode=parse_calc_mode(qty_mode) if qty_mode else None,
    )


# =============================================================================
# SNAPSHOT
# =============================================================================

@dataclass(frozen=True)
class RuleSnapshot:
    """
    Immutable rule tables as of one date.

    Every collection is a tuple of frozen rows that were active and inside
    their validity window on `as_of`. Lookups never re-check validity.
    """
    as_of: date
    carriers: tuple[ShippingCarrier, ...] = ()
    ports: tuple[Port, ...] = ()
    port_groups: tuple[PortGroup, ...] = ()
    category_groups: tuple[CategoryGroup, ...] = ()
    classification_bands: tuple[ClassificationBand, ...] = ()
    acceptance_rules: tuple[AcceptanceRule, ...] = ()
    transform_rules: tuple[TransformRule, ...] = ()
    surcharge_rules: tuple[SurchargeRule, ...] = ()
    article_maps: tuple[ArticleMap, ...] = ()

    # -------------------------------------------------------------------------
    # LOADING
    # -------------------------------------------------------------------------

    @classmethod
    def load(cls, tables: Mapping[str, Any], as_of: date) -> "RuleSnapshot":
        """
        Build a snapshot from rule tables.

        Args:
            tables: Table name -> polars or pandas DataFrame. Missing tables
                are treated as empty. Names follow rules.columns.REQUIRED.
            as_of: Date rows must be active on

        Returns:
            RuleSnapshot holding only eligible rows

        Raises:
            RuleConfigurationError: On unknown tables, missing required
                columns, unknown calc modes / transform codes / qty modes /
                rounding, or negative amounts
        """
        errors: list[str] = []

        unknown = sorted(set(tables) - set(REQUIRED))
        for name in unknown:
            errors.append(f"unknown table '{name}'")

        frames: dict[str, pl.DataFrame] = {}
        for name, required in REQUIRED.items():
            if tables.get(name) is None:
                continue
            df = to_polars(tables[name])
            missing = [c for c in required if c not in df.columns]
            if missing:
                errors.append(f"{name}: missing required columns {missing}")
                continue
            try:
                df = normalize_validity(df)
            except ValueError as e:
                errors.append(f"{name}: {e}")
                continue
            frames[name] = df.filter(eligible(as_of))

        if errors:
            raise RuleConfigurationError(errors)

        def rows(name: str) -> list[dict]:
            if name not in frames:
                return []
            return list(frames[name].iter_rows(named=True))

        def build(name: str, builder: Callable[[Mapping[str, Any]], Any]) -> tuple:
            built = []
            for row in rows(name):
                try:
                    built.append(builder(row))
                except (ValueError, TypeError, KeyError) as e:
                    errors.append(f"{name} id={row.get('id')}: {e}")
            return tuple(built)

        carriers = build("carriers", lambda r: ShippingCarrier(
            id=int(r["id"]), code=str(r["code"]).strip(), name=str(r["name"]).strip(),
        ))
        ports = build("ports", lambda r: Port(
            id=int(r["id"]),
            code=str(r["code"]).strip(),
            name=str(r["name"]).strip(),
            country=_str(r.get("country")),
            role=_str(r.get("role")),
        ))

        group_ports: dict[int, set[int]] = {}
        for r in rows("port_group_members"):
            group_id, port_id = _int(r["port_group_id"]), _int(r["port_id"])
            if group_id is not None and port_id is not None:
                group_ports.setdefault(group_id, set()).add(port_id)
        port_groups = build("port_groups", lambda r: PortGroup(
            id=int(r["id"]),
            carrier_id=int(r["carrier_id"]),
            code=str(r["code"]).strip(),
            port_ids=frozenset(group_ports.get(int(r["id"]), ())),
        ))

        group_categories: dict[int, set[str]] = {}
        for r in rows("category_group_members"):
            group_id, category = _int(r["category_group_id"]), _str(r["vehicle_category"])
            if group_id is not None and category:
                group_categories.setdefault(group_id, set()).add(category)
        category_groups = build("category_groups", lambda r: CategoryGroup(
            id=int(r["id"]),
            carrier_id=int(r["carrier_id"]),
            code=str(r["code"]).strip(),
            vehicle_categories=frozenset(group_categories.get(int(r["id"]), ())),
        ))

        bands = build("classification_bands", _build_band)
        acceptance = build("acceptance_rules", _build_acceptance)
        transforms = build("transform_rules", _build_transform)
        surcharges = build("surcharge_rules", _build_surcharge)
        article_maps = build("surcharge_article_maps", _build_article_map)

        if errors:
            raise RuleConfigurationError(errors)

        consistent = []
        for rule in acceptance:
            bad = rule.inconsistent_limits()
            if bad:
                logger.warning(
                    "Dropping acceptance rule %s: min exceeds max for %s",
                    rule.id, ", ".join(bad),
                )
                continue
            consistent.append(rule)

        snapshot = cls(
            as_of=as_of,
            carriers=carriers,
            ports=ports,
            port_groups=port_groups,
            category_groups=tuple(sorted(category_groups, key=lambda g: g.id)),
            classification_bands=bands,
            acceptance_rules=tuple(consistent),
            transform_rules=transforms,
            surcharge_rules=surcharges,
            article_maps=article_maps,
        )
        logger.info(
            "Loaded rule snapshot as of %s: %d bands, %d acceptance, %d transform, "
            "%d surcharge, %d article map rules",
            as_of, len(bands), len(consistent), len(transforms),
            len(surcharges), len(article_maps),
        )
        return snapshot

    # -------------------------------------------------------------------------
    # REFERENCE LOOKUPS
    # -------------------------------------------------------------------------

    def carrier_by_code(self, code: str) -> ShippingCarrier | None:
        code = code.strip().upper()
        return next((c for c in self.carriers if c.code.upper() == code), None)

    def port_by_code(self, code: str) -> Port | None:
        code = code.strip().upper()
        return next((p for p in self.ports if p.code.upper() == code), None)

    def port_group_ids_for(self, carrier_id: int, port_id: int | None) -> frozenset[int]:
        """Ids of the carrier's active port groups containing port_id."""
        if port_id is None:
            return frozenset()
        return frozenset(
            g.id for g in self.port_groups
            if g.carrier_id == carrier_id and port_id in g.port_ids
        )

    def category_group(self, carrier_id: int, group_id: int | None) -> CategoryGroup | None:
        if group_id is None:
            return None
        return next(
            (g for g in self.category_groups if g.carrier_id == carrier_id and g.id == group_id),
            None,
        )

    def category_group_for(self, carrier_id: int, vehicle_category: str | None) -> CategoryGroup | None:
        """Lowest-id active group of the carrier listing vehicle_category."""
        if not vehicle_category:
            return None
        return next(
            (g for g in self.category_groups
             if g.carrier_id == carrier_id and vehicle_category in g.vehicle_categories),
            None,
        )


__all__ = ["RuleSnapshot"]
