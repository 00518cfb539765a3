"""
Pytest configuration and shared fixtures for the wealth planner tests.
"""

import os
from unittest.mock import patch

import pytest

from wealth_planner.config import EngineSettings, reset_global_settings
from wealth_planner.models.scenario import Asset, MacroAssumptions, ScenarioInput
from wealth_planner.models.simulation.engine import WealthProjectionSimulator


@pytest.fixture
def settings():
    """Engine settings isolated from the process environment and .env files."""
    with patch.dict(os.environ, {}, clear=True):
        yield EngineSettings(_env_file=None)


@pytest.fixture(autouse=True)
def clean_global_settings():
    """Drop the cached global settings around each test."""
    reset_global_settings()
    yield
    reset_global_settings()


@pytest.fixture
def simulator(settings):
    """Projection simulator bound to the isolated settings."""
    return WealthProjectionSimulator(settings)


@pytest.fixture
def basic_scenario():
    """Client aged 30 retiring at 65, living to 90, with 200k invested."""
    return ScenarioInput(
        current_age=30,
        contribution_end_age=65,
        retirement_age=65,
        life_expectancy=90,
        monthly_contribution=5000.0,
        desired_monthly_income=15000.0,
        assumptions=MacroAssumptions(nominal_return=0.10, inflation=0.04),
        assets=[Asset(value=200000.0, description="Brokerage account")],
    )


@pytest.fixture
def zero_real_scenario():
    """Scenario whose nominal return equals inflation (zero real rate)."""
    return ScenarioInput(
        current_age=40,
        contribution_end_age=60,
        retirement_age=60,
        life_expectancy=80,
        monthly_contribution=1000.0,
        desired_monthly_income=0.0,
        assumptions=MacroAssumptions(nominal_return=0.05, inflation=0.05),
        assets=[Asset(value=100000.0)],
    )
