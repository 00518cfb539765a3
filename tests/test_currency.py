"""Tests for currency conversion and asset aggregation."""

import logging

import pytest

from wealth_planner.models.currency import (
    aggregate_assets,
    calculate_fx_exposure,
    convert_to_base,
    effective_fx_rate,
    fx_key,
    validate_asset_fx,
)
from wealth_planner.models.scenario import Asset


@pytest.fixture
def mixed_assets():
    """A portfolio with every bucket and a foreign-currency asset."""
    return [
        Asset(value=100000.0, description="CDB"),
        Asset(value=10000.0, currency="USD", description="US ETF"),
        Asset(value=500000.0, bucket="illiquid", asset_type="real_estate"),
        Asset(value=80000.0, bucket="wrapper", asset_type="previdencia", wrapper_subtype="PGBL"),
        Asset(value=20000.0, bucket="wrapper", asset_type="previdencia"),
    ]


class TestEffectiveFxRate:
    """Test FX rate resolution order."""

    def test_key_format(self):
        assert fx_key("usd") == "USD_BRL"

    def test_base_currency_is_one(self, settings):
        assert effective_fx_rate("BRL", {"BRL_BRL": 3.0}, settings) == 1.0

    def test_scenario_rate_wins(self, settings):
        assert effective_fx_rate("USD", {"USD_BRL": 5.2}, settings) == 5.2

    def test_default_table_fallback(self, settings):
        assert effective_fx_rate("EUR", {"EUR_BRL": 0}, settings) == 5.5

    def test_unknown_currency_converts_at_one(self, settings, caplog):
        with caplog.at_level(logging.WARNING):
            assert effective_fx_rate("JPY", {}, settings) == 1.0
        assert "JPY_BRL" in caplog.text

    def test_convert_to_base(self, settings):
        asset = Asset(value=100.0, currency="USD")
        assert convert_to_base(asset, {"USD_BRL": 5.0}, settings) == 500.0


class TestAggregateAssets:
    """Test bucketing into base-currency totals."""

    def test_totals(self, mixed_assets, settings):
        totals = aggregate_assets(mixed_assets, {"USD_BRL": 5.0}, settings)

        assert totals.financial_total == pytest.approx(150000.0)
        assert totals.illiquid_total == pytest.approx(500000.0)
        assert totals.wrapper_total == pytest.approx(100000.0)
        assert totals.wrapper_by_subtype == {"VGBL": 20000.0, "PGBL": 80000.0}
        assert totals.liquid_total == pytest.approx(250000.0)
        assert totals.grand_total == pytest.approx(750000.0)

    def test_each_asset_counted_once(self, mixed_assets, settings):
        totals = aggregate_assets(mixed_assets, {"USD_BRL": 1.0}, settings)
        assert totals.grand_total == pytest.approx(sum(a.value for a in mixed_assets))

    def test_empty(self, settings):
        totals = aggregate_assets([], None, settings)
        assert totals.grand_total == 0.0


class TestFxExposure:
    """Test currency exposure over investable assets."""

    def test_exposure_excludes_illiquid(self, mixed_assets, settings):
        exposure = calculate_fx_exposure(mixed_assets, {"USD_BRL": 5.0}, settings)

        assert exposure.total == pytest.approx(250000.0)
        assert exposure.by_currency["USD"] == pytest.approx(50000.0)
        assert exposure.percentages["USD"] == pytest.approx(20.0)
        assert exposure.percentages["BRL"] == pytest.approx(80.0)
        assert exposure.international_pct == pytest.approx(20.0)

    def test_empty_portfolio_is_fully_domestic(self, settings):
        exposure = calculate_fx_exposure([], None, settings)

        assert exposure.percentages == {"BRL": 100.0}
        assert exposure.international_pct == 0.0


class TestValidateAssetFx:
    """Test missing-rate warnings."""

    def test_domestic_asset(self, settings):
        assert validate_asset_fx(Asset(value=1.0), {}, settings) is None

    def test_foreign_asset_with_rate(self, settings):
        asset = Asset(value=1.0, currency="USD")
        assert validate_asset_fx(asset, {"USD_BRL": 5.0}, settings) is None

    def test_foreign_asset_without_rate(self, settings):
        asset = Asset(value=1.0, currency="USD")
        assert "USD" in validate_asset_fx(asset, {}, settings)
