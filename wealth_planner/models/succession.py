"""
Succession cost calculator.

Estimates transfer-tax (ITCMD), legal and administrative costs of passing an
estate to heirs, and the liquidity shortfall against the assets heirs can
reach quickly. Independent of the age-stepped projection.
"""

import logging
from typing import Dict, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config import EngineSettings, get_global_settings
from .currency import aggregate_assets
from .numbers import normalize_rate
from .scenario import Asset, ScenarioInput, SuccessionCostConfig, WrapperSuccessionConfig

logger = logging.getLogger(__name__)


class SuccessionRates(BaseModel):
    """Effective, clamped succession rates."""

    model_config = ConfigDict(frozen=True)

    transfer_tax_rate: float = Field(..., ge=0, description="Transfer-tax rate")
    legal_pct: float = Field(..., ge=0, description="Legal fee rate")
    fees_pct: float = Field(..., ge=0, description="Administrative fee rate")
    fees_fixed: float = Field(..., ge=0, description="Fixed administrative fee")


class SuccessionCosts(BaseModel):
    """Cost components of a succession."""

    model_config = ConfigDict(frozen=True)

    transfer_tax: float = Field(..., description="Transfer tax (ITCMD)")
    legal: float = Field(..., description="Legal fees")
    fees: float = Field(..., description="Administrative fees incl. fixed fee")
    total: float = Field(..., description="Sum of all components")


class SuccessionSnapshot(BaseModel):
    """Result of one succession cost calculation."""

    model_config = ConfigDict(frozen=True)

    state: str
    financial_total: float
    illiquid_total: float
    wrapper_total: float
    wrapper_by_subtype: Dict[str, float]
    estate_base: float = Field(..., description="Base for legal and admin costs")
    transfer_tax_base: float = Field(..., description="Base for transfer tax")
    costs: SuccessionCosts
    available_liquidity: float
    liquidity_gap: float = Field(..., ge=0)
    rates: SuccessionRates


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class SuccessionCalculator:
    """Calculator for estimated succession costs."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        """Initialize the calculator.

        Args:
            settings: Engine settings with the jurisdiction rate table
        """
        self.settings = settings or get_global_settings()

    def resolve_rates(
        self, state: str, costs: Optional[SuccessionCostConfig] = None
    ) -> SuccessionRates:
        """Merge per-scenario overrides with jurisdiction defaults and clamp them."""
        costs = costs or SuccessionCostConfig()
        cap = self.settings.succession_rate_cap
        state_default = self.settings.transfer_tax_rate_for(state)

        transfer_tax_rate = normalize_rate(costs.transfer_tax_rate, state_default)
        legal_pct = normalize_rate(costs.legal_pct, self.settings.default_legal_pct)
        fees_pct = normalize_rate(costs.fees_pct, self.settings.default_fees_pct)
        fees_fixed = costs.fees_fixed
        if fees_fixed is None:
            fees_fixed = self.settings.default_fees_fixed

        return SuccessionRates(
            transfer_tax_rate=_clamp(transfer_tax_rate, 0.0, cap),
            legal_pct=_clamp(legal_pct, 0.0, cap),
            fees_pct=_clamp(fees_pct, 0.0, cap),
            fees_fixed=max(0.0, fees_fixed),
        )

    def calculate(
        self,
        assets: Iterable[Asset],
        fx_rates: Optional[Mapping[str, float]] = None,
        state: Optional[str] = None,
        costs: Optional[SuccessionCostConfig] = None,
        wrapper: Optional[WrapperSuccessionConfig] = None,
    ) -> SuccessionSnapshot:
        """
        Calculate succession costs over an estate.

        Args:
            assets: Client assets (unstressed)
            fx_rates: Scenario FX table
            state: Jurisdiction code for the default transfer-tax rate
            costs: Per-scenario rate overrides
            wrapper: Treatment of retirement-wrapper assets

        Returns:
            SuccessionSnapshot with cost components and liquidity gap
        """
        state = (state or self.settings.default_state).upper()
        wrapper = wrapper or WrapperSuccessionConfig()
        rates = self.resolve_rates(state, costs)
        totals = aggregate_assets(assets, fx_rates, self.settings)

        non_wrapper_estate = totals.financial_total + totals.illiquid_total
        wrapper_in_estate = not wrapper.exclude_from_estate

        estate_base = non_wrapper_estate
        if wrapper_in_estate:
            estate_base += totals.wrapper_total

        transfer_tax_base = non_wrapper_estate
        if wrapper_in_estate or wrapper.apply_transfer_tax:
            transfer_tax_base += totals.wrapper_total

        transfer_tax = transfer_tax_base * rates.transfer_tax_rate
        legal = estate_base * rates.legal_pct
        fees = estate_base * rates.fees_pct + rates.fees_fixed
        total_cost = transfer_tax + legal + fees

        available_liquidity = totals.financial_total
        if wrapper.exclude_from_estate:
            available_liquidity += totals.wrapper_total

        liquidity_gap = max(0.0, total_cost - available_liquidity)
        logger.debug(
            f"Succession for {state}: base={estate_base:.2f} cost={total_cost:.2f} "
            f"gap={liquidity_gap:.2f}"
        )

        return SuccessionSnapshot(
            state=state,
            financial_total=totals.financial_total,
            illiquid_total=totals.illiquid_total,
            wrapper_total=totals.wrapper_total,
            wrapper_by_subtype=totals.wrapper_by_subtype,
            estate_base=estate_base,
            transfer_tax_base=transfer_tax_base,
            costs=SuccessionCosts(
                transfer_tax=transfer_tax, legal=legal, fees=fees, total=total_cost
            ),
            available_liquidity=available_liquidity,
            liquidity_gap=liquidity_gap,
            rates=rates,
        )

    def calculate_for_scenario(self, scenario: ScenarioInput) -> SuccessionSnapshot:
        """Calculate succession costs from a scenario's unstressed assets."""
        return self.calculate(
            scenario.assets,
            fx_rates=scenario.fx_rates,
            state=scenario.state,
            costs=scenario.succession,
            wrapper=scenario.wrapper_succession,
        )
