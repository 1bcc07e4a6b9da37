"""
Risk Metrics Module

Parametric one-day VaR, Expected Shortfall and Euler VaR decomposition for a
book of net per-asset exposures.  Pure computation over pandas Series /
DataFrames labelled by asset id.

Covariance is implied from annualized volatilities and the static
correlation table: Cov(i, j) = vol_i * vol_j * rho_ij.  Exposures are money
amounts, so VaR comes out in the same currency units.
"""

from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd
import structlog
from scipy import stats

from hedgebook.errors import UnsupportedConfidence
from hedgebook.models import InconsistentHedgeState, RiskMetrics
from hedgebook.risk.correlation import CorrelationProvider, correlation_matrix, nearest_psd

logger = structlog.get_logger(__name__)

TRADING_DAYS = 252

# Only these two levels are supported; lookups are exact
Z_SCORES: Dict[float, float] = {
    0.95: 1.645,
    0.99: 2.326,
}

_ZERO_EXPOSURE = 1e-12


def z_score(confidence: float) -> float:
    """One-sided normal quantile for 0.95 or 0.99; anything else raises UnsupportedConfidence."""
    try:
        return Z_SCORES[confidence]
    except KeyError:
        raise UnsupportedConfidence(confidence) from None


def _horizon_scale(trading_days: int) -> float:
    if trading_days < 1:
        raise ValueError(f"trading_days must be >= 1, got {trading_days}")
    return float(np.sqrt(1.0 / trading_days))


def _align(exposures: pd.Series, cov: pd.DataFrame) -> np.ndarray:
    missing = [a for a in cov.index if a not in exposures.index]
    if missing or len(exposures) != len(cov):
        raise ValueError(
            f"Exposure labels {list(exposures.index)} don't match covariance {list(cov.index)}"
        )
    return exposures.loc[cov.index].to_numpy(dtype=float)


def active_exposures(net_values: pd.Series) -> pd.Series:
    """Drop assets with zero net exposure; they carry no covariance row."""
    return net_values[net_values.abs() > _ZERO_EXPOSURE].astype(float)


def build_covariance(
    assets: Iterable[str],
    provider: CorrelationProvider,
    repair: bool = False,
) -> pd.DataFrame:
    """Annualized covariance implied by market volatilities and static correlations.

    Args:
        assets: Asset ids (normally those with nonzero net exposure)
        provider: Correlation / volatility lookups
        repair: Clamp the correlation matrix to PSD before scaling

    Returns:
        Labelled covariance DataFrame (N x N)

    Raises:
        UnknownAsset: an asset has no market entry
    """
    corr = correlation_matrix(assets)
    if repair:
        corr = nearest_psd(corr)

    vols = np.array([provider.volatility(a) for a in corr.index], dtype=float)
    cov = corr.values * np.outer(vols, vols)

    return pd.DataFrame(cov, index=corr.index, columns=corr.columns)


def portfolio_variance(exposures: pd.Series, cov: pd.DataFrame) -> float:
    """e' * Cov * e over the covariance labels."""
    if cov.empty:
        return 0.0
    e = _align(exposures, cov)
    return float(e @ cov.values @ e)


def portfolio_std_dev(variance: float) -> float:
    """sqrt(|variance|).

    The absolute value is a lenient guard for hand-specified correlation
    tables that are not PSD; the resulting number is an approximation in
    that case, not a corrected one.
    """
    if variance < 0:
        logger.warning(
            "portfolio_std_dev: negative variance, using absolute value",
            variance=float(variance),
        )
    return float(np.sqrt(abs(variance)))


def parametric_var(
    exposures: pd.Series,
    cov: pd.DataFrame,
    confidence: float = 0.95,
    trading_days: int = TRADING_DAYS,
) -> float:
    """One-day parametric VaR.

    VaR = z * sigma * sqrt(1 / trading_days)

    Args:
        exposures: Net money exposure per asset
        cov: Annualized covariance matrix
        confidence: 0.95 or 0.99
        trading_days: Days per year used to scale to one day

    Returns:
        VaR as a positive loss amount
    """
    z = z_score(confidence)
    sigma = portfolio_std_dev(portfolio_variance(exposures, cov))
    return float(z * sigma * _horizon_scale(trading_days))


def expected_shortfall(var: float, confidence: float = 0.95) -> float:
    """ES = VaR * phi(z) / alpha with alpha = 1 - confidence.

    Derived from VaR with the same z so the two numbers stay consistent.
    """
    z = z_score(confidence)
    alpha = 1.0 - confidence
    phi_z = stats.norm.pdf(z)
    return float(var * phi_z / alpha)


def marginal_contributions(exposures: pd.Series, cov: pd.DataFrame) -> pd.Series:
    """Marginal contribution per asset: sum_j e_j * Cov(i, j)."""
    if cov.empty:
        return pd.Series(dtype=float)
    e = _align(exposures, cov)
    return pd.Series(cov.values @ e, index=cov.index)


def component_var(
    exposures: pd.Series,
    cov: pd.DataFrame,
    confidence: float = 0.95,
    trading_days: int = TRADING_DAYS,
) -> pd.Series:
    """Euler allocation of VaR per asset.

    component_i = e_i * marginal_i * z / sigma * sqrt(1 / trading_days)

    Uses signed exposure so the components sum to total VaR for any mix
    of long and short positions.  Hedging assets show up as negative
    components.
    """
    z = z_score(confidence)
    if cov.empty:
        return pd.Series(dtype=float)

    sigma = portfolio_std_dev(portfolio_variance(exposures, cov))
    if sigma == 0:
        logger.warning("component_var: zero portfolio volatility")
        return pd.Series(0.0, index=cov.index)

    e = _align(exposures, cov)
    marginal = marginal_contributions(exposures, cov).to_numpy()
    components = e * marginal * z / sigma * _horizon_scale(trading_days)

    return pd.Series(components, index=cov.index)


def standalone_var(
    exposure: float,
    volatility: float,
    confidence: float = 0.95,
    trading_days: int = TRADING_DAYS,
) -> float:
    """Single-asset VaR: |exposure| * vol * z * sqrt(1 / trading_days)."""
    return float(abs(exposure) * volatility * z_score(confidence) * _horizon_scale(trading_days))


def build_risk_metrics(
    net_values: pd.Series,
    provider: CorrelationProvider,
    total_exposure: float,
    hedged_amount: float,
    mtm_impact: float = 0.0,
    warnings: Optional[List[InconsistentHedgeState]] = None,
    failed_instruments: Optional[List[str]] = None,
    trading_days: int = TRADING_DAYS,
    repair_correlation: bool = False,
) -> RiskMetrics:
    """Assemble the portfolio RiskMetrics snapshot.

    Args:
        net_values: Net money exposure per asset (zeros are ignored)
        provider: Correlation / volatility lookups
        total_exposure: Gross money exposure across the book
        hedged_amount: Hedged money amount across the book
        mtm_impact: Sum of instrument marks
        warnings: Hedge-state warnings to pass through
        failed_instruments: Instrument ids whose mark could not be computed
        trading_days: Days per year used to scale to one day
        repair_correlation: Clamp the correlation matrix to PSD first

    Returns:
        RiskMetrics
    """
    active = active_exposures(net_values)
    cov = build_covariance(active.index, provider, repair=repair_correlation)

    var_95 = parametric_var(active, cov, 0.95, trading_days)
    var_99 = parametric_var(active, cov, 0.99, trading_days)

    hedge_ratio = hedged_amount / total_exposure * 100 if total_exposure > 0 else 0.0
    hedge_ratio = min(max(hedge_ratio, 0.0), 100.0)

    metrics = RiskMetrics(
        var_95=var_95,
        var_99=var_99,
        es_95=expected_shortfall(var_95, 0.95),
        es_99=expected_shortfall(var_99, 0.99),
        total_exposure=float(total_exposure),
        hedged_amount=float(hedged_amount),
        unhedged_risk=float(max(total_exposure - hedged_amount, 0.0)),
        hedge_ratio=float(hedge_ratio),
        mtm_impact=float(mtm_impact),
        warnings=list(warnings or []),
        failed_instruments=list(failed_instruments or []),
    )

    logger.info(
        "build_risk_metrics: metrics computed",
        num_assets=len(active),
        var_95=metrics.var_95,
        var_99=metrics.var_99,
        hedge_ratio=metrics.hedge_ratio,
        failed_instruments=len(metrics.failed_instruments),
    )

    return metrics
