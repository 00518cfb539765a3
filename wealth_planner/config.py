"""Engine configuration management using Pydantic Settings."""

import logging
from typing import Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TRANSFER_TAX_BY_STATE: Dict[str, float] = {
    "SP": 0.04,
    "RJ": 0.08,
    "MG": 0.05,
    "RS": 0.06,
    "SC": 0.08,
    "PR": 0.04,
    "BA": 0.08,
    "PE": 0.08,
    "CE": 0.08,
    "GO": 0.08,
    "DF": 0.06,
}


class EngineSettings(BaseSettings):
    """Engine defaults, overridable through WEALTH_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="WEALTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Economic assumptions (fallbacks)
    default_nominal_return: float = Field(default=0.10)
    default_inflation: float = Field(default=0.04)

    # Stress test
    stress_inflation_add: float = Field(default=0.015)
    stress_return_sub: float = Field(default=0.02)
    stress_fx_shock_pct: float = Field(default=0.20)

    # Currency
    base_currency: str = Field(default="BRL")
    default_fx_rates: Dict[str, float] = Field(
        default_factory=lambda: {"USD_BRL": 5.0, "EUR_BRL": 5.5}
    )

    # Succession
    default_state: str = Field(default="SP")
    default_transfer_tax_rate: float = Field(default=0.04)
    transfer_tax_by_state: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_TRANSFER_TAX_BY_STATE)
    )
    default_legal_pct: float = Field(default=0.05)
    default_fees_pct: float = Field(default=0.02)
    default_fees_fixed: float = Field(default=0.0)
    succession_rate_cap: float = Field(default=0.20)

    # Logging Configuration
    log_level: str = Field(default="INFO")

    @field_validator(
        "stress_inflation_add",
        "stress_return_sub",
        "stress_fx_shock_pct",
        "default_legal_pct",
        "default_fees_pct",
        "default_fees_fixed",
        "succession_rate_cap",
    )
    @classmethod
    def validate_non_negative(cls, v):
        """Reject negative penalties, fees and caps."""
        if v < 0:
            raise ValueError("value must be non-negative")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v.upper()

    @field_validator("base_currency", "default_state")
    @classmethod
    def validate_code(cls, v):
        return v.strip().upper()

    def transfer_tax_rate_for(self, state: Optional[str]) -> float:
        """Default transfer-tax rate for a jurisdiction code."""
        key = (state or "").strip().upper()
        return self.transfer_tax_by_state.get(key, self.default_transfer_tax_rate)


def get_settings(env_file: Optional[str] = None) -> EngineSettings:
    """Get engine settings instance."""
    if env_file is not None:
        return EngineSettings(_env_file=env_file)
    return EngineSettings()


_settings: Optional[EngineSettings] = None


def get_global_settings() -> EngineSettings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings


def reset_global_settings() -> None:
    """Reset global settings instance (useful for testing)."""
    global _settings
    _settings = None


def configure_logging(settings: Optional[EngineSettings] = None) -> None:
    """Apply the configured log level to the root logger."""
    settings = settings or get_global_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("wealth_planner").setLevel(settings.log_level)
