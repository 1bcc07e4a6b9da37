"""Default market universe.

Indicative levels for the FX majors and the main exchange-traded commodities,
used to seed a fresh book before live data arrives.  These are static
reference numbers, not calibrated market data.
"""

from __future__ import annotations

from typing import Dict

from hedgebook.market.state import AssetMarket, MarketState

INTEREST_RATES: Dict[str, float] = {
    "USD": 0.0525,
    "EUR": 0.0400,
    "GBP": 0.0525,
    "JPY": -0.0010,
    "CHF": 0.0175,
    "AUD": 0.0435,
    "CAD": 0.0500,
    "NZD": 0.0550,
}

# pair -> (spot, annualized vol)
FX_MARKET: Dict[str, tuple[float, float]] = {
    "EURUSD": (1.0856, 0.0875),
    "GBPUSD": (1.2734, 0.1125),
    "USDJPY": (161.85, 0.0945),
    "USDCHF": (0.9642, 0.0785),
    "AUDUSD": (0.6523, 0.1235),
    "USDCAD": (1.3845, 0.0695),
    "NZDUSD": (0.5987, 0.1345),
    "EURGBP": (0.8523, 0.0625),
    "EURJPY": (175.68, 0.0985),
    "EURCHF": (1.0468, 0.0545),
}

COMMODITY_RISK_FREE_RATE = 0.0475

# symbol -> (category, spot, vol, storage cost, convenience yield, basis %)
COMMODITY_MARKET: Dict[str, tuple[str, float, float, float, float, float]] = {
    "WTI": ("energy", 75.50, 0.35, 0.05, 0.02, 0.70),
    "BRENT": ("energy", 79.80, 0.33, 0.05, 0.02, 0.65),
    "NATGAS": ("energy", 2.85, 0.55, 0.08, 0.05, -2.5),
    "HEATING": ("energy", 2.45, 0.38, 0.04, 0.015, 0.0),
    "GASOLINE": ("energy", 2.25, 0.40, 0.04, 0.015, 0.0),
    "GOLD": ("metals", 1850.00, 0.15, 0.005, 0.005, 0.15),
    "SILVER": ("metals", 23.50, 0.25, 0.01, 0.008, 0.0),
    "PLATINUM": ("metals", 920.00, 0.20, 0.008, 0.01, 0.0),
    "COPPER": ("metals", 3.85, 0.25, 0.02, 0.015, 0.50),
    "ALUMINUM": ("metals", 2250.00, 0.22, 0.025, 0.012, 0.0),
    "NICKEL": ("metals", 16500.00, 0.42, 0.03, 0.02, 0.0),
    "CORN": ("agriculture", 4.85, 0.28, 0.06, 0.03, -1.2),
    "WHEAT": ("agriculture", 6.25, 0.32, 0.06, 0.03, 0.0),
    "SOYBEANS": ("agriculture", 13.50, 0.26, 0.06, 0.025, 0.0),
    "COFFEE": ("agriculture", 1.85, 0.35, 0.08, 0.04, 0.0),
    "SUGAR": ("agriculture", 0.18, 0.30, 0.07, 0.035, 0.0),
    "CATTLE": ("livestock", 165.00, 0.18, 0.12, 0.08, 0.0),
    "HOGS": ("livestock", 75.50, 0.30, 0.15, 0.10, 0.0),
}


def fx_market(pair: str) -> AssetMarket:
    """Build the default entry for an FX pair from FX_MARKET and INTEREST_RATES."""
    spot, vol = FX_MARKET[pair]
    base, quote = pair[:3], pair[3:]
    return AssetMarket(
        asset=pair,
        asset_class="fx",
        spot=spot,
        volatility=vol,
        rate=INTEREST_RATES.get(quote, 0.0),
        foreign_rate=INTEREST_RATES.get(base, 0.0),
    )


def commodity_market(symbol: str) -> AssetMarket:
    category, spot, vol, storage, convenience, basis = COMMODITY_MARKET[symbol]
    return AssetMarket(
        asset=symbol,
        asset_class="commodity",
        spot=spot,
        volatility=vol,
        rate=COMMODITY_RISK_FREE_RATE,
        storage_cost=storage,
        convenience_yield=convenience,
        category=category,
        basis=basis,
    )


def default_market_state() -> MarketState:
    """MarketState seeded with every default FX pair and commodity."""
    entries = [fx_market(pair) for pair in FX_MARKET]
    entries += [commodity_market(symbol) for symbol in COMMODITY_MARKET]
    return MarketState({m.asset: m for m in entries})
