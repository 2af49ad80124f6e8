"""
Surcharge Exclusivity

Rules sharing an exclusive_group compete: at most one of them fires.
Candidates are tried highest priority first (then most recent
effective_from, then highest id); the first producing a non-zero quantity
wins. Rules without a group apply independently.
"""

from typing import Callable

from ..dtos import SurchargeCalculation
from ..rules import SurchargeRule


def _group_order(rule: SurchargeRule) -> tuple:
    recency = (0, -rule.effective_from.toordinal()) if rule.effective_from is not None else (1, 0)
    return (-rule.priority, recency, -rule.id)


def get_exclusivity_group(rules: list[SurchargeRule], group: str) -> list[SurchargeRule]:
    """Rules in an exclusivity group, in the order they are tried."""
    return sorted((r for r in rules if r.exclusive_group == group), key=_group_order)


def apply_exclusivity(
    rules: list[SurchargeRule],
    evaluate: Callable[[SurchargeRule], SurchargeCalculation],
) -> list[tuple[SurchargeRule, SurchargeCalculation]]:
    """
    Evaluate rules, keeping at most one winner per exclusivity group.

    Args:
        rules: Resolved surcharge rules in rank order
        evaluate: Computes the SurchargeCalculation for one rule

    Returns:
        (rule, calculation) pairs with qty > 0, in the rank order of each
        rule (a group's winner takes the slot of the group's first rule)
    """
    fired = []
    settled: set[str] = set()

    for rule in rules:
        group = rule.exclusive_group
        if group is None:
            calc = evaluate(rule)
            if calc.qty > 0:
                fired.append((rule, calc))
            continue

        if group in settled:
            continue
        settled.add(group)

        for candidate in get_exclusivity_group(rules, group):
            calc = evaluate(candidate)
            if calc.qty > 0:
                fired.append((candidate, calc))
                break

    return fired


__all__ = [
    "apply_exclusivity",
    "get_exclusivity_group",
]
