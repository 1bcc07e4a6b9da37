"""
Vanilla Option Pricing Module

Closed-form European option prices: Garman-Kohlhagen for FX and Black-76 for
commodity forwards/futures, both expressed through the generalized
Black-Scholes formula with cost of carry b:

    call = S * e^((b-r)T) * N(d1) - K * e^(-rT) * N(d2)
    put  = K * e^(-rT) * N(-d2) - S * e^((b-r)T) * N(-d1)
    d1   = [ln(S/K) + (b + sigma^2/2) T] / (sigma * sqrt(T)),  d2 = d1 - sigma * sqrt(T)

Garman-Kohlhagen is b = r_d - r_f, r = r_d.  Black-76 on a forward F is
S = F, b = 0.  Zero volatility or zero time returns intrinsic value instead of
dividing by sigma * sqrt(T).
"""

from typing import Dict

import numpy as np
import structlog
from scipy import optimize, special, stats

from .forwards import forward_price

logger = structlog.get_logger(__name__)

MIN_IMPLIED_VOL = 0.01
MAX_IMPLIED_VOL = 5.0

_OPTION_TYPES = ('call', 'put')


def norm_cdf(x: float) -> float:
    """Standard normal CDF via the error function."""
    return float(0.5 * (1.0 + special.erf(x / np.sqrt(2.0))))


def norm_pdf(x: float) -> float:
    """Standard normal density."""
    return float(stats.norm.pdf(x))


def normalize_option_type(option_type: str) -> str:
    option_type = option_type.strip().lower()
    if option_type not in _OPTION_TYPES:
        raise ValueError(f"option_type must be 'call' or 'put', got {option_type!r}")
    return option_type


def intrinsic_value(option_type: str, underlying: float, strike: float) -> float:
    """max(S - K, 0) for a call, max(K - S, 0) for a put."""
    if normalize_option_type(option_type) == 'call':
        return float(max(underlying - strike, 0.0))
    return float(max(strike - underlying, 0.0))


def _validate_levels(underlying: float, strike: float) -> None:
    if underlying <= 0:
        raise ValueError(f"Underlying price must be positive, got {underlying}")
    if strike <= 0:
        raise ValueError(f"Strike must be positive, got {strike}")


def _is_degenerate(volatility: float, time_to_maturity: float) -> bool:
    return volatility <= 0 or time_to_maturity <= 0


def _clamp_premium(price: float, model: str, **context) -> float:
    if price < 0:
        logger.warning(
            f"{model}: negative premium clamped to zero",
            price=float(price),
            **context,
        )
        return 0.0
    return float(price)


def generalized_black_scholes(
    option_type: str,
    spot: float,
    strike: float,
    rate: float,
    carry: float,
    volatility: float,
    time_to_maturity: float,
) -> float:
    """Generalized Black-Scholes price with cost of carry (no degenerate guard)."""
    sqrt_t = np.sqrt(time_to_maturity)
    d1 = (np.log(spot / strike) + (carry + 0.5 * volatility ** 2) * time_to_maturity) / (
        volatility * sqrt_t
    )
    d2 = d1 - volatility * sqrt_t

    carry_df = np.exp((carry - rate) * time_to_maturity)
    discount = np.exp(-rate * time_to_maturity)

    if option_type == 'call':
        return float(spot * carry_df * norm_cdf(d1) - strike * discount * norm_cdf(d2))
    return float(strike * discount * norm_cdf(-d2) - spot * carry_df * norm_cdf(-d1))


def garman_kohlhagen(
    option_type: str,
    spot: float,
    strike: float,
    domestic_rate: float,
    foreign_rate: float,
    volatility: float,
    time_to_maturity: float,
) -> float:
    """Garman-Kohlhagen price of a European FX option.

    Args:
        option_type: 'call' or 'put'
        spot: Spot rate (quote currency per unit of base)
        strike: Strike rate
        domestic_rate: Quote-currency continuously compounded rate
        foreign_rate: Base-currency continuously compounded rate
        volatility: Annualized volatility
        time_to_maturity: Years to expiry

    Returns:
        Premium per unit of base-currency notional (non-negative)
    """
    option_type = normalize_option_type(option_type)
    _validate_levels(spot, strike)

    if _is_degenerate(volatility, time_to_maturity):
        logger.debug(
            "garman_kohlhagen: degenerate inputs, returning intrinsic value",
            volatility=volatility,
            time_to_maturity=time_to_maturity,
        )
        return intrinsic_value(option_type, spot, strike)

    price = generalized_black_scholes(
        option_type,
        spot,
        strike,
        rate=domestic_rate,
        carry=domestic_rate - foreign_rate,
        volatility=volatility,
        time_to_maturity=time_to_maturity,
    )
    return _clamp_premium(price, "garman_kohlhagen", option_type=option_type, spot=spot, strike=strike)


def black76(
    option_type: str,
    forward: float,
    strike: float,
    rate: float,
    volatility: float,
    time_to_maturity: float,
) -> float:
    """Black-76 price of a European option on a forward or future.

    call = e^(-rT) [F N(d1) - K N(d2)],  put = e^(-rT) [K N(-d2) - F N(-d1)]
    """
    option_type = normalize_option_type(option_type)
    _validate_levels(forward, strike)

    if _is_degenerate(volatility, time_to_maturity):
        logger.debug(
            "black76: degenerate inputs, returning intrinsic value",
            volatility=volatility,
            time_to_maturity=time_to_maturity,
        )
        return intrinsic_value(option_type, forward, strike)

    price = generalized_black_scholes(
        option_type,
        forward,
        strike,
        rate=rate,
        carry=0.0,
        volatility=volatility,
        time_to_maturity=time_to_maturity,
    )
    return _clamp_premium(price, "black76", option_type=option_type, forward=forward, strike=strike)


def black76_from_spot(
    option_type: str,
    spot: float,
    strike: float,
    rate: float,
    carry: float,
    volatility: float,
    time_to_maturity: float,
) -> float:
    """Black-76 with the forward derived from spot and cost of carry b."""
    forward = forward_price(spot, carry, time_to_maturity)
    return black76(option_type, forward, strike, rate, volatility, time_to_maturity)


def greeks(
    option_type: str,
    spot: float,
    strike: float,
    rate: float,
    carry: float,
    volatility: float,
    time_to_maturity: float,
) -> Dict[str, float]:
    """Sensitivities of the generalized Black-Scholes price.

    Theta is per year, vega per 1 vol point (0.01) and rho per 1 rate
    point (0.01).  Degenerate inputs return all zeros.

    Returns:
        Dict with delta, gamma, theta, vega, rho
    """
    option_type = normalize_option_type(option_type)
    _validate_levels(spot, strike)

    if _is_degenerate(volatility, time_to_maturity):
        return {'delta': 0.0, 'gamma': 0.0, 'theta': 0.0, 'vega': 0.0, 'rho': 0.0}

    t = time_to_maturity
    sqrt_t = np.sqrt(t)
    d1 = (np.log(spot / strike) + (carry + 0.5 * volatility ** 2) * t) / (volatility * sqrt_t)
    d2 = d1 - volatility * sqrt_t

    carry_df = np.exp((carry - rate) * t)
    discount = np.exp(-rate * t)
    pdf_d1 = norm_pdf(d1)

    gamma = carry_df * pdf_d1 / (spot * volatility * sqrt_t)
    vega = spot * carry_df * pdf_d1 * sqrt_t / 100
    decay = -spot * carry_df * pdf_d1 * volatility / (2 * sqrt_t)

    if option_type == 'call':
        delta = carry_df * norm_cdf(d1)
        theta = (
            decay
            - (carry - rate) * spot * carry_df * norm_cdf(d1)
            - rate * strike * discount * norm_cdf(d2)
        )
        rho = strike * t * discount * norm_cdf(d2) / 100
    else:
        delta = carry_df * (norm_cdf(d1) - 1)
        theta = (
            decay
            + (carry - rate) * spot * carry_df * norm_cdf(-d1)
            + rate * strike * discount * norm_cdf(-d2)
        )
        rho = -strike * t * discount * norm_cdf(-d2) / 100

    return {
        'delta': float(delta),
        'gamma': float(gamma),
        'theta': float(theta),
        'vega': float(vega),
        'rho': float(rho),
    }


def implied_volatility(
    option_type: str,
    market_price: float,
    spot: float,
    strike: float,
    rate: float,
    carry: float,
    time_to_maturity: float,
    tol: float = 1e-8,
) -> float:
    """Volatility that reproduces *market_price* under generalized Black-Scholes.

    Solved with Brent's method on [1%, 500%].  Prices outside the range
    attainable on that bracket return the nearest bound.
    """
    option_type = normalize_option_type(option_type)
    _validate_levels(spot, strike)

    if time_to_maturity <= 0:
        raise ValueError("Implied volatility is undefined at or after expiry")

    def objective(vol: float) -> float:
        return generalized_black_scholes(
            option_type, spot, strike, rate, carry, vol, time_to_maturity
        ) - market_price

    low, high = objective(MIN_IMPLIED_VOL), objective(MAX_IMPLIED_VOL)
    if low >= 0:
        logger.warning(
            "implied_volatility: price below attainable range, returning lower bound",
            market_price=market_price,
        )
        return MIN_IMPLIED_VOL
    if high <= 0:
        logger.warning(
            "implied_volatility: price above attainable range, returning upper bound",
            market_price=market_price,
        )
        return MAX_IMPLIED_VOL

    return float(optimize.brentq(objective, MIN_IMPLIED_VOL, MAX_IMPLIED_VOL, xtol=tol))
