"""
Currency conversion and asset aggregation.

Converts asset amounts to the base currency using the scenario FX table and
buckets them into financial, illiquid and retirement-wrapper totals.
"""

import logging
import math
from typing import Dict, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ..config import EngineSettings, get_global_settings
from .scenario import Asset

logger = logging.getLogger(__name__)


class AssetTotals(BaseModel):
    """Base-currency totals per liquidity bucket."""

    model_config = ConfigDict(frozen=True)

    financial_total: float = Field(default=0.0, description="Financial assets")
    illiquid_total: float = Field(
        default=0.0, description="Real estate, vehicles, business and other goods"
    )
    wrapper_total: float = Field(default=0.0, description="Retirement-wrapper assets")
    wrapper_by_subtype: Dict[str, float] = Field(
        default_factory=lambda: {"VGBL": 0.0, "PGBL": 0.0},
        description="Wrapper totals per plan type",
    )

    @computed_field
    @property
    def liquid_total(self) -> float:
        """Financial plus wrapper: the compounding principal."""
        return self.financial_total + self.wrapper_total

    @computed_field
    @property
    def grand_total(self) -> float:
        return self.financial_total + self.illiquid_total + self.wrapper_total


class FxExposure(BaseModel):
    """Currency breakdown of investable assets."""

    model_config = ConfigDict(frozen=True)

    total: float
    by_currency: Dict[str, float]
    percentages: Dict[str, float]
    international_total: float
    international_pct: float


def fx_key(currency: str, base_currency: str = "BRL") -> str:
    return f"{currency.upper()}_{base_currency.upper()}"


def _valid_rate(rate: Optional[float]) -> bool:
    return rate is not None and math.isfinite(rate) and rate > 0


def effective_fx_rate(
    currency: str,
    fx_rates: Optional[Mapping[str, float]] = None,
    settings: Optional[EngineSettings] = None,
) -> float:
    """
    Rate converting one unit of currency into the base currency.

    Falls back from the scenario table to the configured default table and
    finally to 1.0; never raises.
    """
    settings = settings or get_global_settings()
    currency = (currency or settings.base_currency).upper()
    if currency == settings.base_currency:
        return 1.0

    key = fx_key(currency, settings.base_currency)
    scenario_rate = (fx_rates or {}).get(key)
    if _valid_rate(scenario_rate):
        return float(scenario_rate)

    default_rate = settings.default_fx_rates.get(key)
    if _valid_rate(default_rate):
        return float(default_rate)

    logger.warning(f"No FX rate for {key}, converting at 1.0")
    return 1.0


def convert_to_base(
    asset: Asset,
    fx_rates: Optional[Mapping[str, float]] = None,
    settings: Optional[EngineSettings] = None,
) -> float:
    """Asset value in the base currency."""
    return asset.value * effective_fx_rate(asset.currency, fx_rates, settings)


def aggregate_assets(
    assets: Iterable[Asset],
    fx_rates: Optional[Mapping[str, float]] = None,
    settings: Optional[EngineSettings] = None,
) -> AssetTotals:
    """
    Bucket assets into base-currency totals.

    Args:
        assets: Normalized assets
        fx_rates: Scenario FX table (possibly stressed)
        settings: Engine settings providing default FX rates

    Returns:
        AssetTotals with every asset counted exactly once
    """
    financial = 0.0
    illiquid = 0.0
    wrapper = 0.0
    by_subtype = {"VGBL": 0.0, "PGBL": 0.0}

    for asset in assets:
        amount = convert_to_base(asset, fx_rates, settings)
        if asset.bucket == "illiquid":
            illiquid += amount
        elif asset.bucket == "wrapper":
            wrapper += amount
            by_subtype[asset.wrapper_subtype or "VGBL"] += amount
        else:
            financial += amount

    return AssetTotals(
        financial_total=financial,
        illiquid_total=illiquid,
        wrapper_total=wrapper,
        wrapper_by_subtype=by_subtype,
    )


def calculate_fx_exposure(
    assets: Iterable[Asset],
    fx_rates: Optional[Mapping[str, float]] = None,
    settings: Optional[EngineSettings] = None,
) -> FxExposure:
    """Currency exposure over investable (financial and wrapper) assets."""
    settings = settings or get_global_settings()
    base = settings.base_currency
    by_currency: Dict[str, float] = {base: 0.0}

    for asset in assets:
        if asset.bucket == "illiquid":
            continue
        by_currency[asset.currency] = by_currency.get(asset.currency, 0.0) + (
            convert_to_base(asset, fx_rates, settings)
        )

    total = sum(by_currency.values())
    if total > 0:
        percentages = {ccy: amount / total * 100 for ccy, amount in by_currency.items()}
    else:
        percentages = {ccy: (100.0 if ccy == base else 0.0) for ccy in by_currency}

    international = total - by_currency[base]
    return FxExposure(
        total=total,
        by_currency=by_currency,
        percentages=percentages,
        international_total=international,
        international_pct=international / total * 100 if total > 0 else 0.0,
    )


def validate_asset_fx(
    asset: Asset,
    fx_rates: Optional[Mapping[str, float]] = None,
    settings: Optional[EngineSettings] = None,
) -> Optional[str]:
    """Return a warning when a foreign asset has no scenario FX rate."""
    settings = settings or get_global_settings()
    if asset.currency == settings.base_currency:
        return None
    key = fx_key(asset.currency, settings.base_currency)
    if _valid_rate((fx_rates or {}).get(key)):
        return None
    return f"Asset in {asset.currency} has no FX rate defined; using default fallback."
