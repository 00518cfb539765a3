"""
Pydantic models for wealth planning scenarios.

This module defines the strict, fully-typed input structure consumed by the
projection, succession and reconciliation engines. Raw client data with
alternate field spellings is mapped onto these models by
``wealth_planner.models.normalization``.
"""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .numbers import normalize_rate

MAX_AGE = 120

AssetBucket = Literal["financial", "illiquid", "wrapper"]
WrapperSubtype = Literal["VGBL", "PGBL"]
RiskProfile = Literal["conservative", "moderate", "bold"]


class Asset(BaseModel):
    """A single client asset expressed in its native currency."""

    model_config = ConfigDict(frozen=True)

    value: float = Field(..., ge=0, description="Amount in the asset's own currency")
    currency: str = Field(default="BRL", description="ISO currency code")
    bucket: AssetBucket = Field(
        default="financial", description="Liquidity bucket used by the engines"
    )
    asset_type: str = Field(
        default="financial", description="Asset type label (real_estate, ...)"
    )
    wrapper_subtype: Optional[WrapperSubtype] = Field(
        default=None, description="Retirement-wrapper plan type (wrapper bucket only)"
    )
    description: str = Field(default="", description="Free-form label")

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        return (v or "BRL").strip().upper()

    @model_validator(mode="after")
    def validate_wrapper_subtype(self):
        if self.bucket != "wrapper" and self.wrapper_subtype is not None:
            raise ValueError("wrapper_subtype is only valid for wrapper assets")
        return self


class ContributionRule(BaseModel):
    """Time-ranged monthly contribution (positive) or withdrawal (negative)."""

    model_config = ConfigDict(frozen=True)

    start_age: int = Field(default=0, ge=0, le=MAX_AGE, description="First age (inclusive)")
    end_age: int = Field(
        default=MAX_AGE, ge=0, le=MAX_AGE, description="Last age (inclusive)"
    )
    monthly_amount: float = Field(
        ..., description="Signed monthly cash flow; negative means withdrawal"
    )
    enabled: bool = Field(default=True, description="Whether the rule is active")

    def covers(self, age: int) -> bool:
        """Check whether the rule applies at the given age."""
        return self.enabled and self.start_age <= age <= self.end_age


class Goal(BaseModel):
    """A future objective at a given age."""

    model_config = ConfigDict(frozen=True)

    age: int = Field(..., ge=0, le=MAX_AGE, description="Age at which the goal occurs")
    amount: float = Field(..., ge=0, description="Goal amount in base currency")
    kind: Literal["impacting", "cosmetic"] = Field(
        default="impacting",
        description="Impacting goals reduce wealth; cosmetic goals are markers",
    )
    name: str = Field(default="Goal", description="Goal label")


class CashInEvent(BaseModel):
    """One-time external inflow applied at an age boundary."""

    model_config = ConfigDict(frozen=True)

    age: int = Field(..., ge=0, le=MAX_AGE, description="Age at which cash arrives")
    amount: float = Field(..., gt=0, description="Inflow amount in base currency")
    enabled: bool = Field(default=True, description="Whether the event applies")


class MacroAssumptions(BaseModel):
    """Economic assumptions, stored as fractions (0.10 == 10%)."""

    model_config = ConfigDict(frozen=True)

    nominal_return: float = Field(
        default=0.10, gt=-1, description="Nominal annual return for the profile"
    )
    inflation: float = Field(default=0.04, gt=-1, description="Annual inflation")
    profile: RiskProfile = Field(default="moderate", description="Risk profile")
    return_conservative: Optional[float] = Field(default=None)
    return_moderate: Optional[float] = Field(default=None)
    return_bold: Optional[float] = Field(default=None)

    @field_validator(
        "nominal_return",
        "inflation",
        "return_conservative",
        "return_moderate",
        "return_bold",
        mode="before",
    )
    @classmethod
    def normalize_rates(cls, v):
        """Accept percentages as well as fractions (10 == 0.10)."""
        if v is None:
            return v
        return normalize_rate(v, v)


class SuccessionCostConfig(BaseModel):
    """Per-scenario overrides of the jurisdiction succession rates."""

    model_config = ConfigDict(frozen=True)

    transfer_tax_rate: Optional[float] = Field(
        default=None, description="Transfer-tax (ITCMD) rate override"
    )
    legal_pct: Optional[float] = Field(default=None, description="Legal fee rate")
    fees_pct: Optional[float] = Field(
        default=None, description="Administrative fee rate"
    )
    fees_fixed: Optional[float] = Field(
        default=None, description="Fixed administrative fee"
    )


class WrapperSuccessionConfig(BaseModel):
    """Succession treatment of retirement-wrapper (previdência) assets."""

    model_config = ConfigDict(frozen=True)

    exclude_from_estate: bool = Field(
        default=True, description="Wrapper assets are paid outside the estate"
    )
    apply_transfer_tax: bool = Field(
        default=False, description="Charge transfer tax on wrapper assets anyway"
    )


class ScenarioInput(BaseModel):
    """Complete description of one client scenario."""

    model_config = ConfigDict(frozen=True)

    current_age: int = Field(default=30, description="Client age today")
    contribution_end_age: int = Field(
        default=60, description="Age after which the base contribution stops"
    )
    retirement_age: int = Field(default=60, description="Age income withdrawals start")
    life_expectancy: int = Field(default=90, description="Last simulated age")
    monthly_contribution: float = Field(
        default=0.0, description="Base monthly contribution"
    )
    desired_monthly_income: float = Field(
        default=0.0, ge=0, description="Desired monthly retirement income"
    )
    assumptions: MacroAssumptions = Field(default_factory=MacroAssumptions)
    fx_rates: Dict[str, float] = Field(
        default_factory=dict, description="FX table keyed like 'USD_BRL'"
    )
    assets: List[Asset] = Field(default_factory=list)
    contribution_rules: List[ContributionRule] = Field(default_factory=list)
    goals: List[Goal] = Field(default_factory=list)
    cash_in_events: List[CashInEvent] = Field(default_factory=list)
    state: str = Field(default="SP", description="Jurisdiction for succession costs")
    succession: SuccessionCostConfig = Field(default_factory=SuccessionCostConfig)
    wrapper_succession: WrapperSuccessionConfig = Field(
        default_factory=WrapperSuccessionConfig
    )

    @field_validator(
        "current_age", "contribution_end_age", "retirement_age", "life_expectancy"
    )
    @classmethod
    def clamp_age(cls, v: int) -> int:
        return max(0, min(MAX_AGE, v))

    @field_validator("fx_rates")
    @classmethod
    def normalize_fx_keys(cls, v: Dict[str, float]) -> Dict[str, float]:
        return {key.strip().upper(): rate for key, rate in v.items()}

    @field_validator("state")
    @classmethod
    def validate_state(cls, v: str) -> str:
        return (v or "SP").strip().upper()

    @property
    def impacting_goals(self) -> List[Goal]:
        return [g for g in self.goals if g.kind == "impacting"]


class TrackingRecord(BaseModel):
    """One month of actually-reported results for a scenario."""

    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1900, le=2200, description="Calendar year")
    month: int = Field(..., ge=1, le=12, description="Calendar month (1-12)")
    planned_contribution: float = Field(
        default=0.0, description="Contribution the plan called for"
    )
    actual_contribution: float = Field(
        default=0.0, description="Contribution actually made"
    )
    actual_monthly_return_pct: float = Field(
        default=0.0, description="Reported monthly return, in percent"
    )
    actual_monthly_inflation_pct: float = Field(
        default=0.0, description="Reported monthly inflation, in percent"
    )

    @property
    def period(self) -> int:
        """Sortable (year, month) key as a single integer."""
        return self.year * 12 + (self.month - 1)
