"""
Carrier Rule Resolver

Picks the winning rule rows for a cargo/route context from a RuleSnapshot.

Candidates are the carrier's rows whose scope matches the context (see
rules.scope.specificity_score). They are ranked by specificity, then
priority, then most recent effective_from, then id. Acceptance, transform
and article-map lookups return the single best row; surcharges return the
best row per event_code.

A miss is a normal outcome ("no constraint") and returns None or an empty
tuple.
"""

import logging
from typing import Iterable, TypeVar

from .rules import (
    AcceptanceRule,
    ArticleMap,
    CategoryGroup,
    ClassificationBand,
    MatchContext,
    RuleRow,
    RuleSnapshot,
    SurchargeRule,
    TransformCode,
    TransformRule,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=RuleRow)


class CarrierRuleResolver:
    """Rule lookups against one immutable snapshot."""

    def __init__(self, snapshot: RuleSnapshot):
        self.snapshot = snapshot

    # -------------------------------------------------------------------------
    # CONTEXT
    # -------------------------------------------------------------------------

    def resolve_port_group_ids(self, carrier_id: int, port_id: int | None) -> frozenset[int]:
        return self.snapshot.port_group_ids_for(carrier_id, port_id)

    def derive_category_group(self, carrier_id: int, vehicle_category: str | None) -> CategoryGroup | None:
        """Category group the carrier files vehicle_category under, if any."""
        return self.snapshot.category_group_for(carrier_id, vehicle_category)

    def context(
        self,
        carrier_id: int,
        port_id: int | None = None,
        vessel_name: str | None = None,
        category_group_id: int | None = None,
        vehicle_category: str | None = None,
        service_type: str | None = None,
    ) -> MatchContext:
        return MatchContext(
            port_id=port_id,
            port_group_ids=self.resolve_port_group_ids(carrier_id, port_id),
            vessel_name=vessel_name,
            category_group_id=category_group_id,
            vehicle_category=vehicle_category,
            service_type=service_type,
        )

    # -------------------------------------------------------------------------
    # RANKING
    # -------------------------------------------------------------------------

    def rank(self, rows: Iterable[R], carrier_id: int, ctx: MatchContext) -> list[R]:
        """Carrier rows matching ctx, best first."""
        scored = []
        for row in rows:
            if row.carrier_id != carrier_id:
                continue
            score = row.score(ctx)
            if score is None:
                continue
            scored.append((row.rank(score), row))
        scored.sort(key=lambda pair: pair[0])
        return [row for _, row in scored]

    def _best(self, rows: Iterable[R], carrier_id: int, ctx: MatchContext, kind: str) -> R | None:
        ranked = self.rank(rows, carrier_id, ctx)
        if not ranked:
            logger.debug("No %s rule for carrier %s", kind, carrier_id)
            return None
        logger.debug(
            "Resolved %s rule %s for carrier %s (%d candidates)",
            kind, ranked[0].id, carrier_id, len(ranked),
        )
        return ranked[0]

    # -------------------------------------------------------------------------
    # LOOKUPS
    # -------------------------------------------------------------------------

    def resolve_classification_band(
        self,
        carrier_id: int,
        pod_port_id: int | None,
        cbm: float,
        height_cm: float,
    ) -> ClassificationBand | None:
        """First band, in rank order, whose thresholds admit cbm and height."""
        ctx = self.context(carrier_id, port_id=pod_port_id)
        for band in self.rank(self.snapshot.classification_bands, carrier_id, ctx):
            if band.matches(cbm, height_cm):
                logger.debug(
                    "Classified cbm=%s height=%s as %s (band %s)",
                    cbm, height_cm, band.outcome_vehicle_category, band.id,
                )
                return band
        return None

    def resolve_acceptance_rule(
        self,
        carrier_id: int,
        port_id: int | None = None,
        vehicle_category: str | None = None,
        category_group_id: int | None = None,
        vessel_name: str | None = None,
        service_type: str | None = None,
    ) -> AcceptanceRule | None:
        ctx = self.context(
            carrier_id, port_id, vessel_name, category_group_id, vehicle_category, service_type,
        )
        return self._best(self.snapshot.acceptance_rules, carrier_id, ctx, "acceptance")

    def resolve_transform_rule(
        self,
        carrier_id: int,
        transform_code: TransformCode = TransformCode.OVERWIDTH_LM_RECALC,
        port_id: int | None = None,
        vehicle_category: str | None = None,
        category_group_id: int | None = None,
        vessel_name: str | None = None,
        service_type: str | None = None,
    ) -> TransformRule | None:
        ctx = self.context(
            carrier_id, port_id, vessel_name, category_group_id, vehicle_category, service_type,
        )
        rows = (r for r in self.snapshot.transform_rules if r.transform_code is transform_code)
        return self._best(rows, carrier_id, ctx, transform_code.value)

    def resolve_surcharge_rules(
        self,
        carrier_id: int,
        port_id: int | None = None,
        vehicle_category: str | None = None,
        category_group_id: int | None = None,
        vessel_name: str | None = None,
        service_type: str | None = None,
    ) -> tuple[SurchargeRule, ...]:
        """
        Applicable surcharge rules, best-ranked row per event_code.

        Returned in rank order. Exclusive groups are left to the engine.
        """
        ctx = self.context(
            carrier_id, port_id, vessel_name, category_group_id, vehicle_category, service_type,
        )
        winners: dict[str, SurchargeRule] = {}
        for rule in self.rank(self.snapshot.surcharge_rules, carrier_id, ctx):
            winners.setdefault(rule.event_code, rule)
        logger.debug("Resolved surcharge events %s for carrier %s", list(winners), carrier_id)
        return tuple(winners.values())

    def resolve_article_map(
        self,
        carrier_id: int,
        event_code: str,
        port_id: int | None = None,
        vehicle_category: str | None = None,
        category_group_id: int | None = None,
        vessel_name: str | None = None,
        service_type: str | None = None,
    ) -> ArticleMap | None:
        ctx = self.context(
            carrier_id, port_id, vessel_name, category_group_id, vehicle_category, service_type,
        )
        rows = (m for m in self.snapshot.article_maps if m.event_code == event_code)
        return self._best(rows, carrier_id, ctx, f"article map {event_code}")


__all__ = ["CarrierRuleResolver"]
