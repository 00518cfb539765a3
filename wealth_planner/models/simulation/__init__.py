"""
Wealth projection simulation package.

This package provides the monthly-stepped projection engine and the
read-only result models it produces.
"""

from .engine import (
    WealthProjectionSimulator,
    annual_to_monthly_rate,
    real_rate,
    wealth_score,
)
from .result import (
    EffectiveAssumptions,
    KPISnapshot,
    SimulationResult,
    SimulationSeriesPoint,
)

__all__ = [
    "WealthProjectionSimulator",
    "annual_to_monthly_rate",
    "real_rate",
    "wealth_score",
    "EffectiveAssumptions",
    "KPISnapshot",
    "SimulationResult",
    "SimulationSeriesPoint",
]
