"""
Contribution timeline resolution.

A scenario may carry several time-ranged contribution rules whose age ranges
overlap. This module resolves the single effective monthly cash flow for a
given age. It is the only place this resolution happens; the projection
simulator and the alternative-scenario solvers both go through it.
"""

from typing import Iterable, List, Optional

from .scenario import ContributionRule


def active_rules(age: int, rules: Iterable[ContributionRule]) -> List[ContributionRule]:
    """Return the enabled rules whose inclusive [start_age, end_age] covers age."""
    return [rule for rule in rules if rule.covers(age)]


def winning_rule(
    age: int, rules: Iterable[ContributionRule]
) -> Optional[ContributionRule]:
    """
    Pick the rule that governs the given age.

    When several rules overlap, the one with the greatest start age wins,
    independent of input order. Among rules sharing that start age the first
    one in the input wins.

    Args:
        age: Age to evaluate
        rules: Normalized contribution rules

    Returns:
        The governing rule, or None when no rule covers the age
    """
    winner: Optional[ContributionRule] = None
    for rule in active_rules(age, rules):
        if winner is None or rule.start_age > winner.start_age:
            winner = rule
    return winner


def resolve_monthly_contribution(
    age: int, base_amount: float, rules: Iterable[ContributionRule]
) -> float:
    """
    Resolve the effective monthly contribution at an age.

    Args:
        age: Age to evaluate
        base_amount: Contribution used when no rule applies
        rules: Normalized contribution rules (withdrawals already negative)

    Returns:
        The winning rule's monthly amount, or base_amount unchanged
    """
    rule = winning_rule(age, rules)
    if rule is None:
        return base_amount
    return rule.monthly_amount


def contribution_schedule(
    start_age: int,
    end_age: int,
    base_amount: float,
    rules: Iterable[ContributionRule],
    contribution_end_age: Optional[int] = None,
) -> List[float]:
    """
    Monthly contribution per age in [start_age, end_age).

    The base amount stops at contribution_end_age; timeline rules still apply.
    """
    rules = list(rules)
    schedule = []
    for age in range(start_age, end_age):
        base = base_amount
        if contribution_end_age is not None and age >= contribution_end_age:
            base = 0.0
        schedule.append(resolve_monthly_contribution(age, base, rules))
    return schedule
