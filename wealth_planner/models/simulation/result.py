"""
Simulation result models.

This module provides the read-only value objects produced by one run of the
wealth projection simulator:

1. SimulationSeriesPoint - wealth at each simulated age
2. EffectiveAssumptions - the rates and horizon the run actually used
3. KPISnapshot - retirement-income and liquidity indicators
4. SimulationResult - KPIs, series and succession snapshot together

All models are frozen; a new run produces new objects rather than patching
old ones.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..succession import SuccessionSnapshot


class SimulationSeriesPoint(BaseModel):
    """Wealth at one simulated age."""

    model_config = ConfigDict(frozen=True)

    age: int = Field(..., ge=0, description="Age at this point")
    wealth: float = Field(..., ge=0, description="Liquid (compounding) wealth")
    total_wealth: float = Field(..., ge=0, description="Liquid plus illiquid wealth")


class EffectiveAssumptions(BaseModel):
    """Rates and horizon used by a run, after stress."""

    model_config = ConfigDict(frozen=True)

    nominal_return: float
    inflation: float
    real_annual_rate: float
    real_monthly_rate: float
    is_stress: bool
    start_age: int
    end_age: int
    retirement_age: int
    contribution_end_age: int
    base_monthly_contribution: float
    desired_monthly_income: float


class KPISnapshot(BaseModel):
    """Retirement-income and liquidity indicators of one run."""

    model_config = ConfigDict(frozen=True)

    capital_at_retirement: float = Field(
        ..., description="Liquid wealth at the retirement-age point"
    )
    sustainable_monthly_income: float = Field(
        ..., description="Monthly income the capital sustains at the real rate"
    )
    required_capital: float = Field(
        ..., description="Capital needed to fund the desired income perpetually"
    )
    coverage_pct: float = Field(
        ..., description="Capital at retirement over required capital, in percent"
    )
    wealth_score: int = Field(..., ge=0, le=100, description="Composite 0-100 score")
    liquidity_pct: float = Field(..., description="Liquid share of current wealth")
    baseline_liquid_wealth: float = Field(
        ..., description="Opening liquid wealth (reconciliation origin)"
    )
    current_illiquid_wealth: float = Field(..., description="Opening illiquid wealth")
    depletion_age: Optional[int] = Field(
        default=None, description="First age at which liquid wealth hits zero"
    )
    assumptions: EffectiveAssumptions


class SimulationResult(BaseModel):
    """Complete output of one simulator run."""

    model_config = ConfigDict(frozen=True)

    kpis: KPISnapshot
    series: List[SimulationSeriesPoint]
    succession: SuccessionSnapshot

    def point_at(self, age: int) -> Optional[SimulationSeriesPoint]:
        """Get the series point for an age."""
        for point in self.series:
            if point.age == age:
                return point
        return None

    def get_final_wealth(self) -> float:
        """Liquid wealth at the last simulated age."""
        if not self.series:
            return 0.0
        return self.series[-1].wealth
