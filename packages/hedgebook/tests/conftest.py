"""
Shared test fixtures for the hedgebook test suite.

Provides consistent test data across all test modules:
- A small deterministic market (two FX pairs, three commodities)
- Settings with a fixed tick seed and a cheap Monte Carlo budget
- A fixed valuation date
- An empty HedgeBook wired to the above
"""

from datetime import date

import pytest

from hedgebook.book import HedgeBook
from hedgebook.config import Settings
from hedgebook.market.state import AssetMarket, MarketState

VALUATION_DATE = date(2025, 1, 2)


@pytest.fixture
def valuation_date():
    return VALUATION_DATE


@pytest.fixture
def settings():
    """Settings independent of the environment.

    Returns:
        Settings: fixed tick seed, 2000-path Monte Carlo
    """
    return Settings(
        _env_file=None,
        TICK_SEED=123,
        MC_PATHS=2000,
        MC_STEPS=50,
        MC_SEED=11,
    )


@pytest.fixture
def market():
    """Deterministic market state.

    EURUSD and USDJPY use flat round-number rates; COPPER and ALUMINUM share
    a 20% volatility so diversification tests can rely on the 0.80 table
    correlation between them.
    """
    entries = [
        AssetMarket(
            asset="EURUSD", asset_class="fx", spot=1.10, volatility=0.10,
            rate=0.05, foreign_rate=0.03,
        ),
        AssetMarket(
            asset="USDJPY", asset_class="fx", spot=150.0, volatility=0.12,
            rate=0.001, foreign_rate=0.05,
        ),
        AssetMarket(
            asset="WTI", asset_class="commodity", spot=75.0, volatility=0.35,
            rate=0.04, storage_cost=0.05, convenience_yield=0.02,
            category="energy", basis=1.5,
        ),
        AssetMarket(
            asset="COPPER", asset_class="commodity", spot=4.0, volatility=0.20,
            rate=0.04, storage_cost=0.02, convenience_yield=0.015,
            category="metals", basis=-0.8,
        ),
        AssetMarket(
            asset="ALUMINUM", asset_class="commodity", spot=2250.0, volatility=0.20,
            rate=0.04, storage_cost=0.025, convenience_yield=0.012,
            category="metals", basis=0.0,
        ),
    ]
    return MarketState({m.asset: m for m in entries})


@pytest.fixture
def book(market, settings, valuation_date):
    """Empty HedgeBook over the deterministic market."""
    return HedgeBook(market=market, settings=settings, valuation_date=valuation_date)
