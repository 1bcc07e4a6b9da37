"""
Correlation Lookup Module

Static cross-asset correlations for FX and commodity risk factors, a
category-based fallback for uncalibrated pairs, and an optional PSD repair
for the resulting matrix.

The table values are hand-specified reference numbers, not estimates from
return data.  Any pair missing from the table resolves to
``default_correlation`` so portfolio risk is always computable; callers that
need to know whether a value was resolved or defaulted use
``is_default_correlation``.

FX pairs are decomposed into signed currency legs against USD (``EURUSD``
is long EUR, ``USDCHF`` short CHF, ``EURGBP`` long EUR and short GBP).  The
table holds currency-to-currency correlations and a pair correlation is
built from its legs assuming equal leg volatilities.
"""

from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd
import structlog

from hedgebook.market.state import MarketState

logger = structlog.get_logger(__name__)

MAJOR_CURRENCIES = frozenset({'USD', 'EUR', 'GBP', 'JPY', 'CHF'})
COMMODITY_CURRENCIES = frozenset({'CAD', 'AUD', 'NZD'})
_KNOWN_CURRENCIES = MAJOR_CURRENCIES | COMMODITY_CURRENCIES

# Category fallbacks
COMMODITY_CURRENCY_DEFAULT = 0.65
MAJOR_DEFAULT = 0.15
MIXED_DEFAULT = -0.05
OTHER_DEFAULT = 0.25

_FX_CORRELATIONS = {
    ('EUR', 'GBP'): 0.73,
    ('EUR', 'CHF'): 0.92,
    ('EUR', 'JPY'): 0.35,
    ('EUR', 'CAD'): 0.62,
    ('EUR', 'AUD'): 0.58,
    ('EUR', 'NZD'): 0.51,
    ('USD', 'GBP'): -0.31,
    ('USD', 'CHF'): -0.85,
    ('USD', 'JPY'): -0.28,
    ('USD', 'CAD'): 0.82,
    ('USD', 'AUD'): -0.12,
    ('USD', 'NZD'): -0.08,
    ('GBP', 'CHF'): 0.65,
    ('GBP', 'JPY'): 0.42,
    ('GBP', 'CAD'): 0.38,
    ('GBP', 'AUD'): 0.68,
    ('GBP', 'NZD'): 0.71,
    ('CHF', 'JPY'): 0.45,
    ('CHF', 'CAD'): -0.52,
    ('CHF', 'AUD'): -0.48,
    ('CHF', 'NZD'): -0.41,
    ('JPY', 'CAD'): -0.18,
    ('JPY', 'AUD'): 0.25,
    ('JPY', 'NZD'): 0.31,
    ('CAD', 'AUD'): 0.77,
    ('CAD', 'NZD'): 0.71,
    ('AUD', 'NZD'): 0.89,
}

_COMMODITY_CORRELATIONS = {
    ('WTI', 'BRENT'): 0.95,
    ('WTI', 'NATGAS'): 0.35,
    ('WTI', 'GASOLINE'): 0.85,
    ('BRENT', 'GASOLINE'): 0.82,
    ('GOLD', 'SILVER'): 0.75,
    ('GOLD', 'PLATINUM'): 0.65,
    ('SILVER', 'PLATINUM'): 0.70,
    ('COPPER', 'ALUMINUM'): 0.80,
    ('COPPER', 'ZINC'): 0.75,
    ('COPPER', 'NICKEL'): 0.70,
    ('CORN', 'WHEAT'): 0.65,
    ('CORN', 'SOYBEANS'): 0.70,
    ('WHEAT', 'SOYBEANS'): 0.60,
    ('WTI', 'GOLD'): -0.15,
    ('WTI', 'COPPER'): 0.40,
    ('GOLD', 'COPPER'): 0.15,
    ('COPPER', 'CORN'): 0.25,
}


def _pair_key(a: str, b: str) -> Tuple[str, str]:
    return tuple(sorted((a, b)))


# Keys are stored sorted so (A, B) and (B, A) hit the same entry
CORRELATION_TABLE: Dict[Tuple[str, str], float] = {
    _pair_key(a, b): value
    for (a, b), value in {**_FX_CORRELATIONS, **_COMMODITY_CORRELATIONS}.items()
}


def _fx_legs(asset: str) -> Optional[Tuple[str, str]]:
    if len(asset) == 6:
        base, quote = asset[:3], asset[3:]
        if base != quote and base in _KNOWN_CURRENCIES and quote in _KNOWN_CURRENCIES:
            return base, quote
    return None


def risk_factors(asset: str) -> Dict[str, float]:
    """Signed factor loadings of *asset*'s return.

    FX factors are currencies measured against USD: ``EURUSD`` is
    ``{'EUR': +1}``, ``USDCHF`` is ``{'CHF': -1}`` and the cross ``EURGBP``
    is ``{'EUR': +1, 'GBP': -1}``.  Anything else is its own factor.
    """
    asset = asset.strip().upper()
    legs = _fx_legs(asset)
    if legs is None:
        return {asset: 1.0}
    base, quote = legs
    loadings = {}
    if base != 'USD':
        loadings[base] = 1.0
    if quote != 'USD':
        loadings[quote] = -1.0
    return loadings


def risk_factor(asset: str) -> Tuple[str, float]:
    """Primary factor and its sign: the non-USD leg, or the base leg of a cross."""
    factor, sign = next(iter(risk_factors(asset).items()))
    return factor, sign


def classify_asset(asset: str) -> str:
    """'major', 'commodity_currency' or 'other' (commodities and unknown ids)."""
    factor, _ = risk_factor(asset)
    if factor in MAJOR_CURRENCIES:
        return 'major'
    if factor in COMMODITY_CURRENCIES:
        return 'commodity_currency'
    return 'other'


def default_correlation(asset_a: str, asset_b: str) -> float:
    """Category fallback used when a pair has no table entry.

    This is a placeholder, not a calibrated value.
    """
    class_a, class_b = classify_asset(asset_a), classify_asset(asset_b)

    if class_a == class_b == 'commodity_currency':
        return COMMODITY_CURRENCY_DEFAULT
    if class_a == class_b == 'major':
        return MAJOR_DEFAULT
    if {class_a, class_b} == {'major', 'commodity_currency'}:
        return MIXED_DEFAULT
    return OTHER_DEFAULT


def _factor_correlation(factor_a: str, factor_b: str) -> Tuple[float, bool]:
    """(correlation, defaulted) between two factors."""
    if factor_a == factor_b:
        return 1.0, False
    value = CORRELATION_TABLE.get(_pair_key(factor_a, factor_b))
    if value is None:
        return default_correlation(factor_a, factor_b), True
    return value, False


def _loading_covariance(
    loadings_a: Dict[str, float],
    loadings_b: Dict[str, float],
) -> Tuple[float, bool]:
    total, defaulted = 0.0, False
    for factor_a, weight_a in loadings_a.items():
        for factor_b, weight_b in loadings_b.items():
            rho, fallback = _factor_correlation(factor_a, factor_b)
            total += weight_a * weight_b * rho
            defaulted = defaulted or fallback
    return total, defaulted


def _lookup(asset_a: str, asset_b: str) -> Tuple[float, bool]:
    # sorted so both argument orders sum in the same order
    asset_a, asset_b = sorted((asset_a.strip().upper(), asset_b.strip().upper()))
    loadings_a, loadings_b = risk_factors(asset_a), risk_factors(asset_b)

    # unit factor vols: a cross is the difference of its two legs
    cross, defaulted_ab = _loading_covariance(loadings_a, loadings_b)
    var_a, defaulted_a = _loading_covariance(loadings_a, loadings_a)
    var_b, defaulted_b = _loading_covariance(loadings_b, loadings_b)

    if var_a <= 0 or var_b <= 0:
        return default_correlation(asset_a, asset_b), True

    value = float(np.clip(cross / np.sqrt(var_a * var_b), -1.0, 1.0))
    return value, defaulted_ab or defaulted_a or defaulted_b


def is_default_correlation(asset_a: str, asset_b: str) -> bool:
    """True when ``correlation(a, b)`` uses the category fallback for any factor pair."""
    if asset_a.strip().upper() == asset_b.strip().upper():
        return False
    return _lookup(asset_a, asset_b)[1]


def correlation(asset_a: str, asset_b: str) -> float:
    """Symmetric correlation in [-1, 1]; 1.0 on the diagonal; never raises for unknown pairs."""
    if asset_a.strip().upper() == asset_b.strip().upper():
        return 1.0
    return _lookup(asset_a, asset_b)[0]


class CorrelationProvider:
    """Correlation and volatility lookups against a MarketState.

    Correlation degrades to a documented default; volatility does not, since
    it scales the risk number directly.
    """

    def __init__(self, market: MarketState):
        self.market = market

    def correlation(self, asset_a: str, asset_b: str) -> float:
        return correlation(asset_a, asset_b)

    def is_default(self, asset_a: str, asset_b: str) -> bool:
        return is_default_correlation(asset_a, asset_b)

    def volatility(self, asset: str) -> float:
        """Annualized volatility; raises UnknownAsset when there is no market entry."""
        return self.market.volatility(asset)


def correlation_matrix(assets: Iterable[str]) -> pd.DataFrame:
    """Labelled correlation matrix over *assets* (order preserved).

    Args:
        assets: Asset ids

    Returns:
        DataFrame with asset labels on both axes (N x N)
    """
    labels: List[str] = [a.strip().upper() for a in assets]
    n = len(labels)
    values = np.eye(n)
    for i in range(n):
        for j in range(i + 1, n):
            values[i, j] = values[j, i] = correlation(labels[i], labels[j])

    defaulted = sum(
        1 for i in range(n) for j in range(i + 1, n) if is_default_correlation(labels[i], labels[j])
    )
    logger.debug(
        "correlation_matrix: built",
        num_assets=n,
        defaulted_pairs=defaulted,
    )

    return pd.DataFrame(values, index=labels, columns=labels)


def min_eigenvalue(corr: pd.DataFrame) -> float:
    """Smallest eigenvalue; negative means the matrix is not PSD."""
    if corr.empty:
        return 0.0
    return float(np.min(np.linalg.eigvalsh(corr.values)))


def nearest_psd(corr: pd.DataFrame, floor: float = 0.0) -> pd.DataFrame:
    """Clamp negative eigenvalues and restore the unit diagonal.

    Args:
        corr: Symmetric correlation matrix
        floor: Smallest eigenvalue kept after clamping

    Returns:
        PSD correlation matrix with the same labels
    """
    if corr.empty:
        return corr.copy()

    eigenvalues, eigvecs = np.linalg.eigh(corr.values)
    if float(np.min(eigenvalues)) >= floor:
        return corr.copy()

    logger.warning(
        "nearest_psd: non-PSD correlation matrix, clamping negative eigenvalues",
        min_eigenvalue=float(np.min(eigenvalues)),
    )
    clamped = eigvecs @ np.diag(np.maximum(eigenvalues, floor)) @ eigvecs.T

    # Rescale back to unit diagonal
    scale = np.sqrt(np.clip(np.diag(clamped), 1e-12, None))
    repaired = clamped / np.outer(scale, scale)
    repaired = (repaired + repaired.T) / 2
    np.fill_diagonal(repaired, 1.0)

    return pd.DataFrame(repaired, index=corr.index, columns=corr.columns)
