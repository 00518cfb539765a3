"""Data models and engines for wealth projection scenarios."""

from .scenario import (
    Asset,
    CashInEvent,
    ContributionRule,
    Goal,
    MacroAssumptions,
    ScenarioInput,
    SuccessionCostConfig,
    TrackingRecord,
    WrapperSuccessionConfig,
)
from .contribution_timeline import (
    active_rules,
    contribution_schedule,
    resolve_monthly_contribution,
    winning_rule,
)
from .currency import (
    AssetTotals,
    FxExposure,
    aggregate_assets,
    calculate_fx_exposure,
    convert_to_base,
    effective_fx_rate,
    validate_asset_fx,
)
from .normalization import (
    normalize_rate,
    normalize_scenario,
    normalize_tracking_records,
    to_number,
)
from .stress import StressedAssumptions, perturb
from .succession import SuccessionCalculator, SuccessionCosts, SuccessionSnapshot
from .solvers import ScenarioSolver, SolverResult

__all__ = [
    "Asset",
    "CashInEvent",
    "ContributionRule",
    "Goal",
    "MacroAssumptions",
    "ScenarioInput",
    "SuccessionCostConfig",
    "TrackingRecord",
    "WrapperSuccessionConfig",
    "active_rules",
    "contribution_schedule",
    "resolve_monthly_contribution",
    "winning_rule",
    "AssetTotals",
    "FxExposure",
    "aggregate_assets",
    "calculate_fx_exposure",
    "convert_to_base",
    "effective_fx_rate",
    "validate_asset_fx",
    "normalize_rate",
    "normalize_scenario",
    "normalize_tracking_records",
    "to_number",
    "StressedAssumptions",
    "perturb",
    "SuccessionCalculator",
    "SuccessionCosts",
    "SuccessionSnapshot",
    "ScenarioSolver",
    "SolverResult",
]
