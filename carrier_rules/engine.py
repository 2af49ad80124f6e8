"""
Carrier Rule Engine

One cargo line in, one ProcessCargoResult out.

PIPELINE
--------
    0. Validate cargo input (raises CargoValidationError)
       Load the rule snapshot once; every later step reads from it
    1. Classification      - fill the vehicle category from a band when absent
    2. Category group      - derive from category membership when absent
    3. Acceptance          - min / max / soft limits and operational flags
    4. Chargeable measure  - base LM and overwidth transform
    5. Surcharges          - best rule per event, exclusive groups, drop qty 0
    6. Article mapping     - quote line drafts for mapped events

Resolver misses mean "no constraint". After validation the engine never
raises.

USAGE
-----
    from carrier_rules import CarrierRuleEngine, CargoInput
    from carrier_rules.data import load_rule_tables

    engine = CarrierRuleEngine(load_rule_tables())
    result = engine.process_cargo(CargoInput(carrier_id=1, ...))
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Mapping

from .chargeable_measure import ChargeableMeasureService
from .dtos import (
    AcceptanceStatus,
    CargoInput,
    ChargeableMeasure,
    ProcessCargoResult,
    QuoteLineDraft,
    SurchargeEvent,
)
from .resolver import CarrierRuleResolver
from .rules import (
    ACCEPTANCE_DIMENSIONS,
    SOFT_LIMIT_DIMENSIONS,
    AcceptanceRule,
    CalcMode,
    RuleSnapshot,
)
from .surcharges import CarrierSurchargeCalculator, apply_exclusivity

logger = logging.getLogger(__name__)

EMPTY_FLAG = "empty"
NON_SELF_PROPELLED_FLAG = "non_self_propelled"


@dataclass(frozen=True)
class AcceptanceOutcome:
    status: AcceptanceStatus
    violations: tuple[str, ...] = ()
    approvals_required: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    rule_id: int | None = None


# =============================================================================
# ACCEPTANCE
# =============================================================================

def evaluate_acceptance(rule: AcceptanceRule | None, cargo: CargoInput) -> AcceptanceOutcome:
    """
    Check cargo against one acceptance rule.

    Min limits give `min_<dim>_below` (violation when min_is_hard, else a
    warning). A value above max gives `soft_<dim>_approval` when it stays
    within an approval-gated soft max, otherwise `max_<dim>_exceeded`.
    Any violation means NOT_ALLOWED, otherwise any approval means
    ALLOWED_UPON_REQUEST. No rule means ALLOWED.
    """
    if rule is None:
        return AcceptanceOutcome(status=AcceptanceStatus.ALLOWED)

    violations = []
    approvals = []
    warnings = []

    for stem, suffix in ACCEPTANCE_DIMENSIONS:
        minimum = rule.limit("min", suffix)
        if minimum is not None and getattr(cargo, suffix) < minimum:
            code = f"min_{stem}_below"
            if rule.min_is_hard:
                violations.append(code)
            else:
                warnings.append(code)

    for stem, suffix in ACCEPTANCE_DIMENSIONS:
        value = getattr(cargo, suffix)
        maximum = rule.limit("max", suffix)
        if maximum is None or value <= maximum:
            continue
        soft_max = rule.limit("soft_max", suffix) if stem in SOFT_LIMIT_DIMENSIONS else None
        if soft_max is not None and value <= soft_max and rule.soft_requires_approval(stem):
            approvals.append(f"soft_{stem}_approval")
        else:
            violations.append(f"max_{stem}_exceeded")

    if rule.must_be_empty and not cargo.has_flag(EMPTY_FLAG):
        violations.append("must_be_empty_required")
    if rule.must_be_self_propelled and cargo.has_flag(NON_SELF_PROPELLED_FLAG):
        violations.append("must_be_self_propelled_required")

    if violations:
        status = AcceptanceStatus.NOT_ALLOWED
    elif approvals:
        status = AcceptanceStatus.ALLOWED_UPON_REQUEST
    else:
        status = AcceptanceStatus.ALLOWED

    return AcceptanceOutcome(
        status=status,
        violations=tuple(violations),
        approvals_required=tuple(approvals),
        warnings=tuple(warnings),
        rule_id=rule.id,
    )


# =============================================================================
# ARTICLE MAPPING
# =============================================================================

def draft_qty(
    qty_mode: CalcMode | None,
    event: SurchargeEvent,
    cargo: CargoInput,
    measure: ChargeableMeasure,
) -> float:
    """Quote line quantity for an event under an article map's qty_mode."""
    if qty_mode is CalcMode.FLAT:
        return 1
    if qty_mode in (CalcMode.PER_UNIT, CalcMode.PER_TANK):
        return cargo.unit_count
    if qty_mode is CalcMode.PER_LM:
        return measure.chargeable_lm
    return event.qty


# =============================================================================
# ENGINE
# =============================================================================

class CarrierRuleEngine:
    """
    Orchestrates classification, acceptance, LM and surcharges.

    Args:
        tables: Rule tables (name -> polars/pandas DataFrame), or a callable
            returning them. A callable is invoked on every snapshot load so
            callers can hand in a live source.
        clock: Returns "today" for validity filtering
    """

    def __init__(
        self,
        tables: Mapping[str, Any] | Callable[[], Mapping[str, Any]],
        clock: Callable[[], date] = date.today,
    ):
        self._tables = tables
        self._clock = clock
        self.calculator = CarrierSurchargeCalculator()

    def load_snapshot(self, as_of: date | None = None) -> RuleSnapshot:
        tables = self._tables() if callable(self._tables) else self._tables
        return RuleSnapshot.load(tables, as_of or self._clock())

    def process_cargo(self, cargo: CargoInput, snapshot: RuleSnapshot | None = None) -> ProcessCargoResult:
        """
        Run the full pipeline for one cargo line.

        Args:
            cargo: Cargo line with carrier/route context
            snapshot: Rule snapshot to price against (loaded once if omitted)

        Returns:
            ProcessCargoResult

        Raises:
            CargoValidationError: If the cargo input is malformed
        """
        cargo.validate()
        if snapshot is None:
            snapshot = self.load_snapshot()
        resolver = CarrierRuleResolver(snapshot)
        carrier_id = cargo.carrier_id

        # 1. Classification
        category = cargo.category
        if not category:
            band = resolver.resolve_classification_band(
                carrier_id, cargo.pod_port_id, cargo.cbm, cargo.height_cm,
            )
            category = band.outcome_vehicle_category if band is not None else None

        # 2. Category group
        if cargo.category_group_id is not None:
            category_group_id = cargo.category_group_id
            group = snapshot.category_group(carrier_id, category_group_id)
        else:
            group = resolver.derive_category_group(carrier_id, category)
            category_group_id = group.id if group is not None else None

        scope = dict(
            port_id=cargo.pod_port_id,
            vehicle_category=category,
            category_group_id=category_group_id,
            vessel_name=cargo.vessel_name,
            service_type=cargo.service_type,
        )

        # 3. Acceptance
        acceptance = evaluate_acceptance(resolver.resolve_acceptance_rule(carrier_id, **scope), cargo)

        # 4. Chargeable measure
        measure = ChargeableMeasureService(resolver).compute_chargeable_lm(
            cargo.length_cm, cargo.width_cm, carrier_id, **scope,
        )

        # 5. Surcharges
        rules = list(resolver.resolve_surcharge_rules(carrier_id, **scope))
        freight_warnings: list[str] = []

        def evaluate(rule):
            calc = self.calculator.calculate(rule, cargo, measure, cargo.basic_freight_amount)
            if calc.needs_basic_freight:
                freight_warnings.append(f"basic_freight_missing_{rule.event_code.lower()}")
            return calc

        fired = apply_exclusivity(rules, evaluate)
        events = tuple(
            SurchargeEvent(
                event_code=rule.event_code,
                qty=calc.qty,
                amount=calc.amount,
                amount_basis=calc.amount_basis,
                matched_rule_id=rule.id,
                reason=f"{rule.name}: {calc.reason}" if calc.reason else rule.name,
            )
            for rule, calc in fired
        )

        # 6. Article mapping
        drafts = []
        for event in events:
            article_map = resolver.resolve_article_map(carrier_id, event.event_code, **scope)
            if article_map is None:
                continue
            drafts.append(QuoteLineDraft(
                article_id=article_map.article_id,
                qty=draft_qty(article_map.qty_mode, event, cargo, measure),
                source_event_code=event.event_code,
                amount_override=event.amount if event.amount > 0 else None,
                meta=(
                    ("amount_basis", event.amount_basis),
                    ("matched_rule_id", event.matched_rule_id),
                    ("article_map_id", article_map.id),
                ),
            ))

        logger.debug(
            "Cargo for carrier %s: category=%s status=%s lm=%.4f events=%s",
            carrier_id, category, acceptance.status.value, measure.chargeable_lm,
            [e.event_code for e in events],
        )

        return ProcessCargoResult(
            classified_vehicle_category=category,
            matched_category_group=group.code if group is not None else None,
            acceptance_status=acceptance.status,
            violations=acceptance.violations,
            approvals_required=acceptance.approvals_required,
            warnings=acceptance.warnings + tuple(freight_warnings),
            chargeable_measure=measure,
            surcharge_events=events,
            quote_line_drafts=tuple(drafts),
        )


__all__ = [
    "AcceptanceOutcome",
    "CarrierRuleEngine",
    "draft_qty",
    "evaluate_acceptance",
]
