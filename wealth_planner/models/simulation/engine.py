"""
Wealth projection simulator.

This module implements the deterministic, monthly-stepped projection engine.
A run takes one ScenarioInput and produces a yearly wealth series, the
retirement KPIs derived from it and a succession cost snapshot.

Per simulated year the engine, for each of 12 months:
1. adds the month's contribution (resolved from the contribution timeline)
2. compounds the liquid principal at the monthly real rate
3. withdraws the desired income once retirement age is reached

and then, at the year boundary, applies cash-in events and impacting goals
for the new age. Liquid wealth is floor-clamped at zero throughout. Illiquid
assets never compound; they only enter ``total_wealth``.
"""

import logging
import math
from collections import defaultdict
from typing import Any, Dict, List, Optional, Union

from ...config import EngineSettings, get_global_settings
from ..contribution_timeline import contribution_schedule
from ..currency import AssetTotals, aggregate_assets
from ..normalization import normalize_scenario
from ..scenario import ScenarioInput
from ..stress import perturb
from ..succession import SuccessionCalculator
from .result import EffectiveAssumptions, KPISnapshot, SimulationResult, SimulationSeriesPoint

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12

# Wealth score weights
SCORE_COVERAGE_WEIGHT = 45
SCORE_LIQUIDITY_WEIGHT = 35
SCORE_REAL_RETURN_BONUS = 20


def real_rate(nominal: float, inflation: float) -> float:
    """Fisher composition of a nominal rate and inflation."""
    return (1 + nominal) / max(1e-9, 1 + inflation) - 1


def annual_to_monthly_rate(annual: float) -> float:
    """Equivalent monthly compounding rate; zero for rates at or below -100%."""
    if not math.isfinite(annual) or annual <= -1:
        return 0.0
    return (1 + annual) ** (1 / MONTHS_PER_YEAR) - 1


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def wealth_score(coverage_pct: float, liquidity_pct: float, real_annual: float) -> int:
    """Fixed-weight blend of coverage, liquidity and a positive-real-return bonus."""
    coverage = _clamp(coverage_pct / 100, 0, 2)
    liquidity = _clamp(liquidity_pct / 100, 0, 1)
    bonus = SCORE_REAL_RETURN_BONUS if real_annual > 0 else 0
    raw = coverage * SCORE_COVERAGE_WEIGHT + liquidity * SCORE_LIQUIDITY_WEIGHT + bonus
    return int(_clamp(_round_half_up(raw), 0, 100))


class WealthProjectionSimulator:
    """Deterministic monthly-stepped wealth projection engine."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        """Initialize the simulator.

        Args:
            settings: Engine settings; defaults to the global settings
        """
        self.settings = settings or get_global_settings()
        self.succession_calculator = SuccessionCalculator(self.settings)

    def run(
        self, scenario: Union[ScenarioInput, Dict[str, Any]], stress: bool = False
    ) -> SimulationResult:
        """
        Project a scenario from current age to life expectancy.

        Args:
            scenario: ScenarioInput, or a raw mapping to normalize first
            stress: Whether to apply the stress perturbation

        Returns:
            SimulationResult with KPIs, yearly series and succession snapshot
        """
        scenario = normalize_scenario(scenario, self.settings)

        effective = perturb(
            scenario.assumptions.nominal_return,
            scenario.assumptions.inflation,
            scenario.fx_rates,
            stress=stress,
            settings=self.settings,
        )
        real_annual = real_rate(effective.nominal_return, effective.inflation)
        real_monthly = annual_to_monthly_rate(real_annual)

        totals = aggregate_assets(scenario.assets, effective.fx_rates, self.settings)

        start_age = scenario.current_age
        end_age = max(start_age, scenario.life_expectancy)

        assumptions = EffectiveAssumptions(
            nominal_return=effective.nominal_return,
            inflation=effective.inflation,
            real_annual_rate=real_annual,
            real_monthly_rate=real_monthly,
            is_stress=effective.is_stress,
            start_age=start_age,
            end_age=end_age,
            retirement_age=scenario.retirement_age,
            contribution_end_age=scenario.contribution_end_age,
            base_monthly_contribution=scenario.monthly_contribution,
            desired_monthly_income=scenario.desired_monthly_income,
        )
        logger.debug(
            f"Projecting ages {start_age}-{end_age} at real {real_annual:.4%} "
            f"(stress={effective.is_stress})"
        )

        series, depletion_age = self._project(scenario, assumptions, totals)
        kpis = self._calculate_kpis(series, totals, assumptions, depletion_age)
        succession = self.succession_calculator.calculate_for_scenario(scenario)

        return SimulationResult(kpis=kpis, series=series, succession=succession)

    def _project(
        self,
        scenario: ScenarioInput,
        assumptions: EffectiveAssumptions,
        totals: AssetTotals,
    ):
        """Run the monthly loop; returns the series and the depletion age."""
        cash_in_by_age: Dict[int, float] = defaultdict(float)
        for event in scenario.cash_in_events:
            if not event.enabled:
                continue
            cash_in_by_age[event.age] += event.amount

        goals_by_age: Dict[int, float] = defaultdict(float)
        for goal in scenario.impacting_goals:
            goals_by_age[goal.age] += goal.amount

        start_age = assumptions.start_age
        schedule = contribution_schedule(
            start_age,
            assumptions.end_age,
            scenario.monthly_contribution,
            scenario.contribution_rules,
            contribution_end_age=scenario.contribution_end_age,
        )

        illiquid = totals.illiquid_total
        wealth = totals.liquid_total
        monthly_rate = assumptions.real_monthly_rate
        income = assumptions.desired_monthly_income

        series: List[SimulationSeriesPoint] = [
            SimulationSeriesPoint(
                age=start_age, wealth=wealth, total_wealth=wealth + illiquid
            )
        ]
        depletion_age: Optional[int] = None

        for offset, age in enumerate(range(start_age, assumptions.end_age)):
            contribution = schedule[offset]
            withdrawing = age >= assumptions.retirement_age and income > 0
            previous = wealth

            for _ in range(MONTHS_PER_YEAR):
                wealth = max(0.0, wealth + contribution)
                wealth *= 1 + monthly_rate
                if withdrawing:
                    wealth = max(0.0, wealth - income)

            next_age = age + 1
            wealth += cash_in_by_age.get(next_age, 0.0)
            wealth = max(0.0, wealth - goals_by_age.get(next_age, 0.0))

            if depletion_age is None and previous > 0 and wealth <= 0:
                depletion_age = next_age

            series.append(
                SimulationSeriesPoint(
                    age=next_age, wealth=wealth, total_wealth=wealth + illiquid
                )
            )

        return series, depletion_age

    def _calculate_kpis(
        self,
        series: List[SimulationSeriesPoint],
        totals: AssetTotals,
        assumptions: EffectiveAssumptions,
        depletion_age: Optional[int],
    ) -> KPISnapshot:
        """Derive the KPI snapshot from the retirement-age point."""
        at_retirement = next(
            (p for p in series if p.age == assumptions.retirement_age), series[-1]
        )
        capital = at_retirement.wealth
        real_annual = assumptions.real_annual_rate
        desired_annual = assumptions.desired_monthly_income * MONTHS_PER_YEAR

        sustainable_income = capital * real_annual / 12 if real_annual > 0 else 0.0
        if real_annual > 0 and desired_annual > 0:
            required_capital = desired_annual / real_annual
        else:
            required_capital = 0.0
        coverage_pct = capital / required_capital * 100 if required_capital > 0 else 0.0

        grand_total = totals.grand_total
        liquidity_pct = totals.liquid_total / grand_total * 100 if grand_total > 0 else 0.0

        return KPISnapshot(
            capital_at_retirement=capital,
            sustainable_monthly_income=sustainable_income,
            required_capital=required_capital,
            coverage_pct=coverage_pct,
            wealth_score=wealth_score(coverage_pct, liquidity_pct, real_annual),
            liquidity_pct=liquidity_pct,
            baseline_liquid_wealth=totals.liquid_total,
            current_illiquid_wealth=totals.illiquid_total,
            depletion_age=depletion_age,
            assumptions=assumptions,
        )
