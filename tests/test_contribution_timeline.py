"""
Tests for contribution timeline resolution.
"""

import pytest

from wealth_planner.models.contribution_timeline import (
    active_rules,
    contribution_schedule,
    resolve_monthly_contribution,
    winning_rule,
)
from wealth_planner.models.scenario import ContributionRule


@pytest.fixture
def overlapping_rules():
    """A broad rule from 30 and a narrower one covering 32-37."""
    return [
        ContributionRule(start_age=32, end_age=37, monthly_amount=8000.0),
        ContributionRule(start_age=30, end_age=64, monthly_amount=3000.0),
    ]


class TestActiveRules:
    """Test rule coverage."""

    def test_inclusive_bounds(self):
        rule = ContributionRule(start_age=32, end_age=37, monthly_amount=1.0)

        assert active_rules(32, [rule]) == [rule]
        assert active_rules(37, [rule]) == [rule]
        assert active_rules(31, [rule]) == []
        assert active_rules(38, [rule]) == []

    def test_disabled_rules_ignored(self):
        rule = ContributionRule(start_age=0, monthly_amount=1.0, enabled=False)
        assert active_rules(40, [rule]) == []


class TestWinningRule:
    """Test overlap resolution."""

    def test_greatest_start_age_wins(self, overlapping_rules):
        assert winning_rule(35, overlapping_rules).monthly_amount == 8000.0
        assert winning_rule(35, list(reversed(overlapping_rules))).monthly_amount == 8000.0

    def test_first_rule_wins_tie(self):
        rules = [
            ContributionRule(start_age=40, end_age=50, monthly_amount=100.0),
            ContributionRule(start_age=40, end_age=45, monthly_amount=200.0),
        ]
        assert winning_rule(42, rules).monthly_amount == 100.0

    def test_no_rule(self):
        assert winning_rule(20, []) is None


class TestResolveMonthlyContribution:
    """Test the effective monthly contribution."""

    def test_narrow_range_overrides(self, overlapping_rules):
        amounts = {
            age: resolve_monthly_contribution(age, 1000.0, overlapping_rules)
            for age in range(30, 40)
        }

        assert amounts[30] == 3000.0
        assert amounts[31] == 3000.0
        assert all(amounts[age] == 8000.0 for age in range(32, 38))
        assert amounts[38] == 3000.0

    def test_base_amount_without_rules(self):
        assert resolve_monthly_contribution(70, 1000.0, []) == 1000.0

    def test_withdrawal_rule(self):
        rules = [ContributionRule(start_age=60, monthly_amount=-2500.0)]
        assert resolve_monthly_contribution(65, 1000.0, rules) == -2500.0

    def test_zero_rule_pauses_contributions(self):
        rules = [ContributionRule(start_age=40, end_age=42, monthly_amount=0.0)]
        assert resolve_monthly_contribution(41, 1000.0, rules) == 0.0


class TestContributionSchedule:
    """Test per-age schedules."""

    def test_base_stops_at_contribution_end(self):
        schedule = contribution_schedule(58, 63, 1000.0, [], contribution_end_age=60)
        assert schedule == [1000.0, 1000.0, 0.0, 0.0, 0.0]

    def test_rules_apply_after_contribution_end(self):
        rules = [ContributionRule(start_age=61, end_age=61, monthly_amount=500.0)]
        schedule = contribution_schedule(59, 63, 1000.0, rules, contribution_end_age=60)
        assert schedule == [1000.0, 0.0, 500.0, 0.0]


class TestSingleRuleExample:
    """Test a single 32-37 rule against a 5000 base contribution."""

    def test_rule_range(self):
        rules = [ContributionRule(start_age=32, end_age=37, monthly_amount=2000.0)]

        assert resolve_monthly_contribution(31, 5000.0, rules) == 5000.0
        for age in range(32, 38):
            assert resolve_monthly_contribution(age, 5000.0, rules) == 2000.0
        assert resolve_monthly_contribution(38, 5000.0, rules) == 5000.0
