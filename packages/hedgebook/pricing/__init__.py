"""
Pricing Engine

Forward prices, closed-form option models, exotic pricers and instrument
mark-to-market.

Modules:
- forwards: Calendar conventions and cost-of-carry forwards
- vanilla: Garman-Kohlhagen, Black-76, Greeks, implied volatility
- exotics: Barrier (closed form) and digital (Monte Carlo) options and their Greeks
- mtm: Per-instrument mark-to-market dispatch
"""

from .forwards import (
    DAYS_PER_YEAR,
    WEEKS_PER_YEAR,
    cost_of_carry,
    forward_components,
    forward_price,
    tenor_to_years,
    year_fraction,
)

from .vanilla import (
    black76,
    black76_from_spot,
    garman_kohlhagen,
    generalized_black_scholes,
    greeks,
    implied_volatility,
    intrinsic_value,
    norm_cdf,
    norm_pdf,
)

from .exotics import (
    barrier_greeks,
    barrier_price,
    digital_greeks,
    digital_price,
    double_barrier_price,
    finite_difference_greeks,
    single_barrier_price,
)

from .mtm import mark_to_market, option_price_for_asset

__all__ = [
    # Forwards
    'DAYS_PER_YEAR',
    'WEEKS_PER_YEAR',
    'cost_of_carry',
    'forward_components',
    'forward_price',
    'tenor_to_years',
    'year_fraction',
    # Vanilla
    'black76',
    'black76_from_spot',
    'garman_kohlhagen',
    'generalized_black_scholes',
    'greeks',
    'implied_volatility',
    'intrinsic_value',
    'norm_cdf',
    'norm_pdf',
    # Exotics
    'barrier_greeks',
    'barrier_price',
    'digital_greeks',
    'digital_price',
    'double_barrier_price',
    'finite_difference_greeks',
    'single_barrier_price',
    # MTM
    'mark_to_market',
    'option_price_for_asset',
]
