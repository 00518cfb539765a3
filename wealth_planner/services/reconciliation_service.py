"""
Reconciliation service for plan-vs-actual tracking.

This service folds a client's actually-reported monthly results into a
scenario. Starting from the simulator's opening liquid wealth it rolls two
tracks forward over the reported months:

- the actual track, using the reported contributions and returns, and
- the planned track, using the planned contributions and the simulator's
  own monthly real rate,

so that "did the client follow the plan" is separated from "did the market
perform as assumed". Each track's ending wealth then seeds a fresh
re-anchored projection, giving directly comparable forward KPIs.
"""

import logging
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from wealth_planner.config import EngineSettings
from wealth_planner.models.normalization import normalize_scenario, normalize_tracking_records
from wealth_planner.models.scenario import Asset, ScenarioInput, TrackingRecord
from wealth_planner.models.simulation.engine import WealthProjectionSimulator
from wealth_planner.models.simulation.result import SimulationResult

logger = logging.getLogger(__name__)


class TrackingOrderError(ValueError):
    """Raised when tracking records are not strictly chronological."""


class Comparison(BaseModel):
    """A planned figure next to its actual counterpart."""

    model_config = ConfigDict(frozen=True)

    planned: float
    actual: float
    delta: float

    @classmethod
    def of(cls, planned: float, actual: float) -> "Comparison":
        return cls(planned=planned, actual=actual, delta=actual - planned)


class YearSummary(BaseModel):
    """Tracking figures restricted to one calendar year."""

    model_config = ConfigDict(frozen=True)

    year: int
    months: int = Field(..., ge=1, description="Months reported in the year")
    contributions: Comparison
    accumulated_inflation_pct: float
    accumulated_return_pct: float


class ReconciliationResult(BaseModel):
    """Outcome of reconciling a scenario with its tracking history."""

    model_config = ConfigDict(frozen=True)

    origin_wealth: float = Field(..., description="Baseline opening liquid wealth")
    planned_wealth_today: float
    actual_wealth_today: float
    delta: float = Field(..., description="Actual minus planned wealth today")
    contributions: Comparison
    accumulated_inflation_pct: float
    accumulated_return_pct: float
    sustainable_income: Comparison = Field(
        ..., description="Re-anchored sustainable monthly income, planned vs actual"
    )
    coverage_pct: Comparison = Field(
        ..., description="Re-anchored goal coverage, planned vs actual"
    )
    baseline_engine: SimulationResult
    planned_engine_rerun: SimulationResult
    adjusted_engine_rerun: SimulationResult
    years_available: List[int]
    last_entry: Dict[str, int]
    year_summaries: List[YearSummary]
    year_summary: Optional[YearSummary] = Field(
        default=None, description="Summary of the selected year, when requested"
    )


def _as_records(
    records: Iterable[Union[TrackingRecord, Mapping[str, Any]]]
) -> List[TrackingRecord]:
    """Accept canonical records or raw mappings, in input order."""
    result = []
    for record in records or []:
        if isinstance(record, TrackingRecord):
            result.append(record)
        else:
            result.extend(normalize_tracking_records([record]))
    return result


def validate_chronology(records: List[TrackingRecord]) -> None:
    """Ensure records are strictly increasing by (year, month)."""
    for previous, current in zip(records, records[1:]):
        if current.period <= previous.period:
            raise TrackingOrderError(
                f"Tracking record {current.year}-{current.month:02d} is not after "
                f"{previous.year}-{previous.month:02d}"
            )


def accumulated_pct(monthly_pcts: Iterable[float]) -> float:
    """Compound monthly percentages into one period percentage."""
    rates = np.asarray(list(monthly_pcts), dtype=np.float64) / 100
    return float((np.prod(1 + rates) - 1) * 100)


def roll_forward(
    origin: float, contributions: Iterable[float], monthly_rates: Iterable[float]
) -> float:
    """Add each month's contribution, then compound at that month's rate."""
    wealth = origin
    for contribution, rate in zip(contributions, monthly_rates):
        wealth += contribution
        wealth *= 1 + rate
    return wealth


def anchored_scenario(
    scenario: ScenarioInput, opening_wealth: float, currency: str = "BRL"
) -> ScenarioInput:
    """Copy of the scenario whose only asset is a base-currency financial balance."""
    asset = Asset(
        value=max(0.0, opening_wealth),
        currency=currency,
        bucket="financial",
        asset_type="financial",
        description="Wealth re-anchored from tracking history",
    )
    return scenario.model_copy(update={"assets": [asset]})


class ReconciliationEngine:
    """Service reconciling planned projections with reported results."""

    def __init__(
        self,
        simulator: Optional[WealthProjectionSimulator] = None,
        settings: Optional[EngineSettings] = None,
    ) -> None:
        """Initialize the reconciliation engine.

        Args:
            simulator: Projection engine to re-invoke; built from settings if omitted
            settings: Engine settings for a newly built simulator
        """
        self.simulator = simulator or WealthProjectionSimulator(settings)
        self.anchor_currency = self.simulator.settings.base_currency

    def reconcile(
        self,
        scenario: ScenarioInput,
        records: Iterable[Union[TrackingRecord, Mapping[str, Any]]],
        stress: bool = False,
        selected_year: Optional[int] = None,
    ) -> Optional[ReconciliationResult]:
        """Reconcile a scenario with its tracking history.

        Args:
            scenario: Scenario the records belong to
            records: Chronological tracking records or raw record mappings
            stress: Whether all projections use the stress perturbation
            selected_year: Year to summarize in ``year_summary``

        Returns:
            ReconciliationResult, or None when there is no tracking history

        Raises:
            TrackingOrderError: If records are out of order or duplicated
        """
        records = _as_records(records)
        if not records:
            logger.info("No tracking records; reconciliation unavailable")
            return None
        validate_chronology(records)
        scenario = normalize_scenario(scenario, self.simulator.settings)

        baseline = self.simulator.run(scenario, stress=stress)
        origin = baseline.kpis.baseline_liquid_wealth
        monthly_real = baseline.kpis.assumptions.real_monthly_rate

        actual_today = roll_forward(
            origin,
            (r.actual_contribution for r in records),
            (r.actual_monthly_return_pct / 100 for r in records),
        )
        planned_today = roll_forward(
            origin,
            (r.planned_contribution for r in records),
            (monthly_real for _ in records),
        )
        logger.info(
            f"Reconciled {len(records)} months: planned={planned_today:.2f} "
            f"actual={actual_today:.2f}"
        )

        planned_rerun = self.simulator.run(
            self._anchor(scenario, planned_today), stress=stress
        )
        adjusted_rerun = self.simulator.run(
            self._anchor(scenario, actual_today), stress=stress
        )

        summaries = self._year_summaries(records)
        by_year = {summary.year: summary for summary in summaries}

        return ReconciliationResult(
            origin_wealth=origin,
            planned_wealth_today=planned_today,
            actual_wealth_today=actual_today,
            delta=actual_today - planned_today,
            contributions=Comparison.of(
                float(np.sum([r.planned_contribution for r in records])),
                float(np.sum([r.actual_contribution for r in records])),
            ),
            accumulated_inflation_pct=accumulated_pct(
                r.actual_monthly_inflation_pct for r in records
            ),
            accumulated_return_pct=accumulated_pct(
                r.actual_monthly_return_pct for r in records
            ),
            sustainable_income=Comparison.of(
                planned_rerun.kpis.sustainable_monthly_income,
                adjusted_rerun.kpis.sustainable_monthly_income,
            ),
            coverage_pct=Comparison.of(
                planned_rerun.kpis.coverage_pct, adjusted_rerun.kpis.coverage_pct
            ),
            baseline_engine=baseline,
            planned_engine_rerun=planned_rerun,
            adjusted_engine_rerun=adjusted_rerun,
            years_available=list(by_year),
            last_entry={"year": records[-1].year, "month": records[-1].month},
            year_summaries=summaries,
            year_summary=by_year.get(selected_year) if selected_year else None,
        )

    def _anchor(self, scenario: ScenarioInput, opening_wealth: float) -> ScenarioInput:
        return anchored_scenario(scenario, opening_wealth, self.anchor_currency)

    def _year_summaries(self, records: List[TrackingRecord]) -> List[YearSummary]:
        """Per-year contribution totals and compounded rates, in year order."""
        grouped: "OrderedDict[int, List[TrackingRecord]]" = OrderedDict()
        for record in records:
            grouped.setdefault(record.year, []).append(record)

        summaries = []
        for year, months in grouped.items():
            summaries.append(
                YearSummary(
                    year=year,
                    months=len(months),
                    contributions=Comparison.of(
                        float(np.sum([m.planned_contribution for m in months])),
                        float(np.sum([m.actual_contribution for m in months])),
                    ),
                    accumulated_inflation_pct=accumulated_pct(
                        m.actual_monthly_inflation_pct for m in months
                    ),
                    accumulated_return_pct=accumulated_pct(
                        m.actual_monthly_return_pct for m in months
                    ),
                )
            )
        return summaries
