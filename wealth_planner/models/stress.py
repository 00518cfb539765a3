"""
Stress perturbation model.

Derives the adverse-scenario macro assumptions used by the projection
simulator: higher inflation, lower nominal return and shocked FX rates.
"""

from typing import Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config import EngineSettings, get_global_settings


class StressedAssumptions(BaseModel):
    """Effective macro assumptions for one simulation run."""

    model_config = ConfigDict(frozen=True)

    nominal_return: float = Field(..., description="Nominal annual return")
    inflation: float = Field(..., description="Annual inflation")
    fx_rates: Dict[str, float] = Field(default_factory=dict)
    is_stress: bool = Field(default=False)


def apply_fx_shock(
    fx_rates: Mapping[str, float], shock_pct: float, defaults: Mapping[str, float]
) -> Dict[str, float]:
    """Multiply each FX rate by (1 + shock_pct), starting from defaults when missing."""
    base = dict(defaults)
    base.update({key: rate for key, rate in fx_rates.items() if rate and rate > 0})
    return {key: rate * (1 + shock_pct) for key, rate in base.items()}


def perturb(
    nominal_return: float,
    inflation: float,
    fx_rates: Optional[Mapping[str, float]] = None,
    stress: bool = False,
    settings: Optional[EngineSettings] = None,
) -> StressedAssumptions:
    """
    Build the effective assumptions, applying the stress penalties if requested.

    Args:
        nominal_return: Normalized nominal annual return
        inflation: Normalized annual inflation
        fx_rates: Scenario FX table
        stress: Whether the adverse scenario is active
        settings: Engine settings holding the penalties

    Returns:
        StressedAssumptions; the unmodified inputs when stress is off
    """
    fx_rates = dict(fx_rates or {})
    if not stress:
        return StressedAssumptions(
            nominal_return=nominal_return, inflation=inflation, fx_rates=fx_rates
        )

    settings = settings or get_global_settings()
    return StressedAssumptions(
        nominal_return=nominal_return - settings.stress_return_sub,
        inflation=inflation + settings.stress_inflation_add,
        fx_rates=apply_fx_shock(
            fx_rates, settings.stress_fx_shock_pct, settings.default_fx_rates
        ),
        is_stress=True,
    )
