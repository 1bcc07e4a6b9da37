"""
Stress Testing Module

Shock-vector stress scenarios for FX and commodity exposures.

A scenario is a mapping of asset -> fractional price shock.  Every
generator below only builds that mapping; all scenarios are valued the same
way, against the unhedged part of each live exposure:

    impact = sum((quantity - hedged_quantity) * unit_price * shock(asset))
"""

from typing import Dict, Iterable, List, Optional, Sequence

import structlog

from hedgebook.market.state import MarketState
from hedgebook.models import Exposure, ScenarioResult
from hedgebook.risk.exposures import live_exposures

logger = structlog.get_logger(__name__)

SAFE_HAVEN_CURRENCIES = ('USD', 'CHF', 'JPY')

# Fixed commodity shocks: scenario_key -> definition
COMMODITY_SHOCKS = {
    'oil_shock': {
        'name': 'Oil Price Shock',
        'description': 'Supply disruption lifting crude oil prices',
        'shocks': {
            'WTI': 0.30,
            'BRENT': 0.25,
        },
    },
    'precious_metals_rally': {
        'name': 'Precious Metals Rally',
        'description': 'Flight to safety driving up precious metals prices',
        'shocks': {
            'GOLD': 0.20,
            'SILVER': 0.15,
        },
    },
    'agricultural_decline': {
        'name': 'Agricultural Price Decline',
        'description': 'Bumper harvest leading to oversupply and price decline',
        'shocks': {
            'CORN': -0.15,
            'WHEAT': -0.10,
            'SOYBEANS': -0.12,
        },
    },
}


def scenario_contributions(
    exposures: Iterable[Exposure],
    shocks: Dict[str, float],
) -> Dict[str, float]:
    """Impact per asset of applying *shocks* to the unhedged part of live exposures."""
    contributions: Dict[str, float] = {}
    for exp in live_exposures(exposures):
        shock = shocks.get(exp.asset)
        if not shock:
            continue
        unhedged = exp.quantity - (exp.hedged_quantity or 0.0)
        contributions[exp.asset] = contributions.get(exp.asset, 0.0) + unhedged * exp.unit_price * shock
    return contributions


def scenario_impact(exposures: Iterable[Exposure], shocks: Dict[str, float]) -> float:
    """Total P&L of a shock vector; assets without a shock are unaffected."""
    return float(sum(scenario_contributions(exposures, shocks).values()))


def broad_rally(assets: Iterable[str], magnitude: float = 0.10) -> Dict[str, float]:
    """Same shock applied to every asset."""
    return {asset: magnitude for asset in assets}


def sector_shock(market: MarketState, category: str, magnitude: float) -> Dict[str, float]:
    """Shock every commodity in one sector (``energy``, ``metals``, ...)."""
    return {
        m.asset: magnitude
        for m in market.assets()
        if m.asset_class == 'commodity' and m.category == category
    }


def flight_to_quality(
    market: MarketState,
    magnitude: float = 0.05,
    safe_havens: Sequence[str] = SAFE_HAVEN_CURRENCIES,
) -> Dict[str, float]:
    """Safe-haven currencies strengthen against everything else.

    A pair quoted with the safe haven as base rises, one with the safe haven
    as quote falls; pairs between two safe havens or two risk currencies are
    left unshocked.
    """
    shocks = {}
    for m in market.assets():
        if m.asset_class != 'fx' or m.base_currency is None:
            continue
        base_safe = m.base_currency in safe_havens
        quote_safe = m.quote_currency in safe_havens
        if base_safe and not quote_safe:
            shocks[m.asset] = magnitude
        elif quote_safe and not base_safe:
            shocks[m.asset] = -magnitude
    return shocks


def usd_strength(market: MarketState, magnitude: float = 0.10) -> Dict[str, float]:
    """USD appreciates against every currency: XXXUSD falls, USDXXX rises."""
    return _currency_move(market, 'USD', magnitude)


def eur_crisis(market: MarketState, magnitude: float = 0.15) -> Dict[str, float]:
    """EUR depreciates against every currency."""
    return _currency_move(market, 'EUR', -magnitude)


def _currency_move(market: MarketState, currency: str, move: float) -> Dict[str, float]:
    shocks = {}
    for m in market.assets():
        if m.asset_class != 'fx':
            continue
        if m.base_currency == currency:
            shocks[m.asset] = move
        elif m.quote_currency == currency:
            shocks[m.asset] = -move
    return shocks


def default_scenarios(market: MarketState) -> Dict[str, Dict]:
    """Built-in scenarios restricted to assets present in *market*.

    Returns:
        Dict of scenario_key -> {'name', 'description', 'shocks'}; scenarios
        whose shock vector would be empty are left out.
    """
    scenarios = {
        'usd_strength': {
            'name': 'USD Strength',
            'description': '10% USD appreciation across all pairs',
            'shocks': usd_strength(market, 0.10),
        },
        'eur_crisis': {
            'name': 'EUR Crisis',
            'description': '15% EUR depreciation across all pairs',
            'shocks': eur_crisis(market, 0.15),
        },
        'risk_off': {
            'name': 'Risk-Off Sentiment',
            'description': 'Flight to safe havens (USD, CHF, JPY)',
            'shocks': flight_to_quality(market, 0.05),
        },
    }

    for key, definition in COMMODITY_SHOCKS.items():
        scenarios[key] = {
            'name': definition['name'],
            'description': definition['description'],
            'shocks': {a: s for a, s in definition['shocks'].items() if a in market},
        }

    scenarios['energy_selloff'] = {
        'name': 'Energy Sector Selloff',
        'description': '20% decline across energy commodities',
        'shocks': sector_shock(market, 'energy', -0.20),
    }
    scenarios['broad_commodity_rally'] = {
        'name': 'Broad Commodity Rally',
        'description': '10% increase across all commodities',
        'shocks': broad_rally(
            (m.asset for m in market.assets() if m.asset_class == 'commodity'), 0.10
        ),
    }

    return {key: s for key, s in scenarios.items() if s['shocks']}


def run_scenarios(
    exposures: Iterable[Exposure],
    scenarios: Dict[str, Dict],
    keys: Optional[List[str]] = None,
) -> List[ScenarioResult]:
    """Value each scenario against the book.

    Args:
        exposures: Exposure records (archived ones are ignored)
        scenarios: scenario_key -> {'name', 'description', 'shocks'}
        keys: Optional subset of scenario keys to run

    Returns:
        ScenarioResult per scenario that could be valued; a malformed
        scenario is logged and skipped.
    """
    exposures = list(exposures)
    results = []

    for key in keys or list(scenarios.keys()):
        try:
            definition = scenarios[key]
            shocks = {a.upper(): float(s) for a, s in definition['shocks'].items()}
            contributions = scenario_contributions(exposures, shocks)
            results.append(
                ScenarioResult(
                    key=key,
                    name=definition['name'],
                    description=definition.get('description', ''),
                    shocks=shocks,
                    impact=float(sum(contributions.values())),
                    contributions=contributions,
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error(
                "run_scenarios: scenario failed",
                scenario=key,
                error=str(e),
            )

    logger.info(
        "run_scenarios: complete",
        num_scenarios=len(results),
        worst_impact=min((r.impact for r in results), default=0.0),
    )

    return results
