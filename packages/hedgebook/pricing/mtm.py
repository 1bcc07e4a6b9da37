"""
Mark-to-Market Module

Values hedge instruments against the current MarketState.  Dispatch is on
the instrument model type; every kind shares the shape

    mtm = notional * unit_value - premium

where forwards and swaps have no premium and a discounted linear payoff.
Option models follow the asset class: Garman-Kohlhagen for FX, Black-76 on
the carry-implied forward for commodities.
"""

from datetime import date
from typing import Optional

import numpy as np
import structlog

from hedgebook.config import Settings, get_settings
from hedgebook.market.state import AssetMarket, MarketState
from hedgebook.models import (
    BarrierOption,
    DigitalOption,
    ForwardContract,
    SwapContract,
    VanillaOption,
)

from .exotics import barrier_price, digital_price
from .forwards import year_fraction
from .vanilla import black76_from_spot, garman_kohlhagen

logger = structlog.get_logger(__name__)


def option_price_for_asset(
    option_type: str,
    market: AssetMarket,
    strike: float,
    time_to_maturity: float,
    volatility: Optional[float] = None,
) -> float:
    """Unit premium of a European option on *market*'s asset.

    Args:
        option_type: 'call' or 'put'
        market: Market entry for the underlying
        strike: Absolute strike
        time_to_maturity: Years to expiry
        volatility: Overrides the market volatility when given

    Returns:
        Premium per unit of notional
    """
    vol = market.volatility if volatility is None else volatility

    if market.asset_class == 'fx':
        return garman_kohlhagen(
            option_type, market.spot, strike,
            market.rate, market.foreign_rate, vol, time_to_maturity,
        )
    return black76_from_spot(
        option_type, market.spot, strike,
        market.rate, market.cost_of_carry, vol, time_to_maturity,
    )


def mark_to_market(
    instrument,
    market_state: MarketState,
    valuation_date: date,
    settings: Optional[Settings] = None,
) -> float:
    """Current mark of one instrument.

    Raises:
        UnknownAsset: the instrument's asset has no market entry
        TypeError: unsupported instrument type
    """
    settings = settings or get_settings()
    market = market_state.get(instrument.asset)
    t = year_fraction(instrument.maturity, valuation_date)

    if isinstance(instrument, (ForwardContract, SwapContract)):
        discount = np.exp(-market.rate * t)
        return float(instrument.notional * (market.spot - instrument.strike) * discount)

    if isinstance(instrument, VanillaOption):
        unit = option_price_for_asset(instrument.option_type, market, instrument.strike, t)
        return float(instrument.notional * unit - instrument.premium)

    if isinstance(instrument, BarrierOption):
        unit = barrier_price(
            instrument.option_type,
            instrument.direction,
            market.spot,
            instrument.strike,
            instrument.barrier,
            market.rate,
            market.cost_of_carry,
            market.volatility,
            t,
            second_barrier=instrument.second_barrier,
            rebate=instrument.rebate,
        )
        return float(instrument.notional * unit - instrument.premium)

    if isinstance(instrument, DigitalOption):
        unit = digital_price(
            instrument.digital_type,
            market.spot,
            instrument.barrier,
            market.rate,
            market.cost_of_carry,
            market.volatility,
            t,
            second_barrier=instrument.second_barrier,
            payout=instrument.payout,
            n_paths=settings.MC_PATHS,
            n_steps=settings.MC_STEPS,
            seed=settings.MC_SEED,
        )
        return float(instrument.notional * unit - instrument.premium)

    raise TypeError(f"Unsupported instrument type: {type(instrument).__name__}")
