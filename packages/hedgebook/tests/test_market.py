"""
Unit tests for market state and the default market universe
"""

import numpy as np
import pytest
from pydantic import ValidationError

from hedgebook.errors import UnknownAsset
from hedgebook.market import (
    COMMODITY_MARKET,
    FX_MARKET,
    AssetMarket,
    commodity_market,
    default_market_state,
    fx_market,
)


class TestAssetMarket:
    """Tests for AssetMarket."""

    def test_fx_carry_and_currencies(self, market):
        eur = market.get('EURUSD')

        assert eur.cost_of_carry == pytest.approx(0.02)
        assert (eur.base_currency, eur.quote_currency) == ('EUR', 'USD')

    def test_commodity_carry(self, market):
        wti = market.get('WTI')

        assert wti.cost_of_carry == pytest.approx(0.07)
        assert wti.base_currency is None

    def test_validation(self):
        with pytest.raises(ValidationError):
            AssetMarket(asset='WTI', asset_class='commodity', spot=0.0, volatility=0.3)
        with pytest.raises(ValidationError):
            AssetMarket(asset='WTI', asset_class='equity', spot=1.0, volatility=0.3)


class TestMarketState:
    """Tests for MarketState lookups and mutation."""

    def test_lookup_case_insensitive(self, market):
        assert 'wti' in market
        assert market.spot('wti') == 75.0
        assert market.volatility('COPPER') == 0.20

    def test_unknown_asset(self, market):
        assert 'GOLD' not in market
        with pytest.raises(UnknownAsset):
            market.get('GOLD')
        with pytest.raises(KeyError):
            market.spot('GOLD')

    def test_update_bumps_version(self, market):
        version = market.version

        updated = market.update('WTI', spot=80.0)

        assert updated.spot == 80.0
        assert market.spot('WTI') == 80.0
        assert market.version == version + 1

    def test_update_revalidates(self, market):
        with pytest.raises(ValidationError):
            market.update('WTI', volatility=-0.1)
        assert market.volatility('WTI') == 0.35

    def test_remove(self, market):
        version = market.version

        assert market.remove('copper')
        assert market.remove('COPPER') is False
        assert market.version == version + 1
        assert len(market) == 4

    def test_tick_bounded_by_vol_times_scale(self, market):
        before = {a: market.spot(a) for a in market}

        market.tick(np.random.default_rng(0), scale=0.01)

        for asset, spot in before.items():
            move = abs(market.spot(asset) / spot - 1)
            assert move <= market.volatility(asset) * 0.01
        assert any(market.spot(a) != s for a, s in before.items())

    def test_tick_reproducible_for_seed(self):
        first = default_market_state()
        second = default_market_state()

        first.tick(np.random.default_rng(42))
        second.tick(np.random.default_rng(42))

        assert [first.spot(a) for a in first] == [second.spot(a) for a in second]


class TestDefaults:
    """Tests for the default market universe."""

    def test_every_asset_present(self):
        state = default_market_state()

        assert len(state) == len(FX_MARKET) + len(COMMODITY_MARKET)
        assert all(pair in state for pair in FX_MARKET)

    def test_fx_rates_from_currencies(self):
        usdjpy = fx_market('USDJPY')

        assert usdjpy.rate == pytest.approx(-0.0010)
        assert usdjpy.foreign_rate == pytest.approx(0.0525)

    def test_commodity_category(self):
        corn = commodity_market('CORN')

        assert corn.category == 'agriculture'
        assert corn.basis < 0
