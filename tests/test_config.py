"""Tests for engine configuration management."""

import logging
import os
import tempfile
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from wealth_planner.config import (
    DEFAULT_TRANSFER_TAX_BY_STATE,
    EngineSettings,
    configure_logging,
    get_global_settings,
    get_settings,
    reset_global_settings,
)


class TestEngineSettings:
    """Test cases for EngineSettings class."""

    def test_defaults(self, settings):
        """Test the built-in economic, stress and succession defaults."""
        assert settings.default_nominal_return == 0.10
        assert settings.default_inflation == 0.04
        assert settings.stress_inflation_add == 0.015
        assert settings.stress_return_sub == 0.02
        assert settings.stress_fx_shock_pct == 0.20
        assert settings.base_currency == "BRL"
        assert settings.default_fx_rates == {"USD_BRL": 5.0, "EUR_BRL": 5.5}
        assert settings.default_legal_pct == 0.05
        assert settings.default_fees_pct == 0.02
        assert settings.succession_rate_cap == 0.20
        assert settings.log_level == "INFO"

    def test_settings_loads_from_env_file(self):
        """Test that settings can load from a .env file."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".env", delete=False) as f:
            f.write("WEALTH_DEFAULT_INFLATION=0.05\n")
            f.write("WEALTH_DEFAULT_STATE=rj\n")
            f.write("WEALTH_LOG_LEVEL=debug\n")
            temp_env_file = f.name

        try:
            with patch.dict(os.environ, {}, clear=True):
                settings = get_settings(env_file=temp_env_file)

                assert settings.default_inflation == 0.05
                assert settings.default_state == "RJ"
                assert settings.log_level == "DEBUG"
        finally:
            os.unlink(temp_env_file)

    def test_environment_overrides(self):
        """Test WEALTH_* environment variables override defaults."""
        with patch.dict(
            os.environ,
            {"WEALTH_STRESS_RETURN_SUB": "0.03", "WEALTH_BASE_CURRENCY": "usd"},
            clear=True,
        ):
            settings = EngineSettings(_env_file=None)

            assert settings.stress_return_sub == 0.03
            assert settings.base_currency == "USD"

    def test_log_level_validation(self):
        """Test LOG_LEVEL validation."""
        with patch.dict(os.environ, {"WEALTH_LOG_LEVEL": "LOUD"}, clear=True):
            with pytest.raises(ValidationError) as exc_info:
                EngineSettings(_env_file=None)

            assert "LOG_LEVEL must be one of" in str(exc_info.value)

    def test_negative_penalty_rejected(self):
        """Test that stress penalties and fees must be non-negative."""
        with patch.dict(os.environ, {"WEALTH_STRESS_FX_SHOCK_PCT": "-0.1"}, clear=True):
            with pytest.raises(ValidationError):
                EngineSettings(_env_file=None)

    def test_settings_are_frozen(self, settings):
        """Test settings cannot be mutated after creation."""
        with pytest.raises(ValidationError):
            settings.default_inflation = 0.5


class TestTransferTaxTable:
    """Test jurisdiction rate lookup."""

    def test_known_states(self, settings):
        """Test each tabulated state returns its rate."""
        for state, rate in DEFAULT_TRANSFER_TAX_BY_STATE.items():
            assert settings.transfer_tax_rate_for(state) == rate

    def test_lookup_is_case_insensitive(self, settings):
        """Test lowercase and padded codes resolve."""
        assert settings.transfer_tax_rate_for(" rj ") == 0.08

    def test_unknown_state_uses_default(self, settings):
        """Test unknown or missing codes fall back to the default rate."""
        assert settings.transfer_tax_rate_for("XX") == settings.default_transfer_tax_rate
        assert settings.transfer_tax_rate_for(None) == settings.default_transfer_tax_rate


class TestGlobalSettings:
    """Test the cached global settings instance."""

    def test_global_settings_is_cached(self):
        """Test repeated calls return the same instance."""
        with patch.dict(os.environ, {}, clear=True):
            first = get_global_settings()
            assert get_global_settings() is first

    def test_reset_global_settings(self):
        """Test reset forces a reload from the environment."""
        with patch.dict(os.environ, {}, clear=True):
            first = get_global_settings()
            reset_global_settings()
            assert get_global_settings() is not first


class TestConfigureLogging:
    """Test logging setup from settings."""

    def test_package_logger_level(self):
        """Test the package logger follows the configured level."""
        with patch.dict(os.environ, {"WEALTH_LOG_LEVEL": "WARNING"}, clear=True):
            configure_logging(EngineSettings(_env_file=None))

        assert logging.getLogger("wealth_planner").level == logging.WARNING
