"""
Forward Pricing Module

Calendar conventions and cost-of-carry forward prices.

Time to maturity uses Actual/365.25 on calendar dates.  Matured or past-dated
maturities collapse to zero time, so a forward at or past maturity is priced
at spot rather than extrapolated backwards.
"""

import re
from datetime import date, datetime
from typing import Dict, Union

import numpy as np
import structlog

logger = structlog.get_logger(__name__)

DAYS_PER_YEAR = 365.25
WEEKS_PER_YEAR = 52.18

_TENOR_RE = re.compile(r"^\s*(\d+)\s*([DWMY])\s*$", re.IGNORECASE)

DateLike = Union[date, datetime, str]


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def year_fraction(maturity: DateLike, valuation_date: DateLike) -> float:
    """Time to maturity in years (Actual/365.25), clamped at zero.

    A maturity before the valuation date is logged and treated as
    already matured.
    """
    days = (_as_date(maturity) - _as_date(valuation_date)).days
    if days < 0:
        logger.info(
            "year_fraction: maturity before valuation date, clamping to zero",
            maturity=str(maturity),
            valuation_date=str(valuation_date),
            days=days,
        )
        return 0.0
    return days / DAYS_PER_YEAR


def tenor_to_years(tenor: str) -> float:
    """Convert a tenor string such as ``"1M"``, ``"2W"`` or ``"0D"`` to years."""
    match = _TENOR_RE.match(tenor)
    if match is None:
        raise ValueError(f"Invalid tenor: {tenor!r}")

    value = int(match.group(1))
    unit = match.group(2).upper()

    if unit == "D":
        return value / DAYS_PER_YEAR
    if unit == "W":
        return value / WEEKS_PER_YEAR
    if unit == "M":
        return value / 12.0
    return float(value)


def cost_of_carry(
    rate: float,
    storage_cost: float = 0.0,
    convenience_yield: float = 0.0,
) -> float:
    """b = r + storage - convenience.

    For FX pass ``rate=r_domestic`` and ``convenience_yield=r_foreign``.
    """
    return rate + storage_cost - convenience_yield


def forward_price(spot: float, carry: float, time_to_maturity: float) -> float:
    """F = S * exp(b * T); spot itself when T <= 0."""
    if time_to_maturity <= 0:
        return float(spot)
    return float(spot * np.exp(carry * time_to_maturity))


def forward_components(
    spot: float,
    rate: float,
    storage_cost: float,
    convenience_yield: float,
    time_to_maturity: float,
) -> Dict[str, float]:
    """Forward price with its carry decomposition and basis (F - S)."""
    carry = cost_of_carry(rate, storage_cost, convenience_yield)
    forward = forward_price(spot, carry, time_to_maturity)
    basis = forward - spot

    return {
        'spot_price': float(spot),
        'forward_price': forward,
        'cost_of_carry': float(carry),
        'time_to_maturity': float(max(time_to_maturity, 0.0)),
        'storage_cost': float(storage_cost),
        'convenience_yield': float(convenience_yield),
        'basis': float(basis),
        'basis_pct': float(basis / spot * 100) if spot else 0.0,
    }
