"""
Market State

Per-asset spot, volatility, rate and carry inputs, plus the default
FX/commodity universe used to seed a book.
"""

from .state import AssetClass, AssetMarket, MarketState
from .defaults import (
    COMMODITY_MARKET,
    FX_MARKET,
    INTEREST_RATES,
    commodity_market,
    default_market_state,
    fx_market,
)

__all__ = [
    'AssetClass',
    'AssetMarket',
    'MarketState',
    'COMMODITY_MARKET',
    'FX_MARKET',
    'INTEREST_RATES',
    'commodity_market',
    'default_market_state',
    'fx_market',
]
