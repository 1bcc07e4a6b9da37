"""
Risk Engine

Pure computation modules for hedging-book risk.

Modules:
- correlation: Static correlation lookups, category defaults, PSD repair
- metrics: Parametric VaR, ES, marginal and component VaR
- exposures: Per-asset aggregation, hedge matching, summary statistics
- stress: Shock-vector stress scenarios
"""

# Correlation module
from .correlation import (
    CorrelationProvider,
    classify_asset,
    correlation,
    correlation_matrix,
    default_correlation,
    is_default_correlation,
    min_eigenvalue,
    nearest_psd,
    risk_factor,
    risk_factors,
)

# Metrics module
from .metrics import (
    build_covariance,
    build_risk_metrics,
    component_var,
    expected_shortfall,
    marginal_contributions,
    parametric_var,
    portfolio_std_dev,
    portfolio_variance,
    standalone_var,
    z_score,
)

# Exposures module
from .exposures import (
    aggregate_exposures,
    check_hedge_state,
    filter_exposures,
    live_exposures,
    match_hedges,
    summary_statistics,
    validate_exposure,
)

# Stress testing module
from .stress import (
    COMMODITY_SHOCKS,
    broad_rally,
    default_scenarios,
    eur_crisis,
    flight_to_quality,
    run_scenarios,
    scenario_impact,
    sector_shock,
    usd_strength,
)

__all__ = [
    # Correlation
    'CorrelationProvider',
    'classify_asset',
    'correlation',
    'correlation_matrix',
    'default_correlation',
    'is_default_correlation',
    'min_eigenvalue',
    'nearest_psd',
    'risk_factor',
    'risk_factors',
    # Metrics
    'build_covariance',
    'build_risk_metrics',
    'component_var',
    'expected_shortfall',
    'marginal_contributions',
    'parametric_var',
    'portfolio_std_dev',
    'portfolio_variance',
    'standalone_var',
    'z_score',
    # Exposures
    'aggregate_exposures',
    'check_hedge_state',
    'filter_exposures',
    'live_exposures',
    'match_hedges',
    'summary_statistics',
    'validate_exposure',
    # Stress testing
    'COMMODITY_SHOCKS',
    'broad_rally',
    'default_scenarios',
    'eur_crisis',
    'flight_to_quality',
    'run_scenarios',
    'scenario_impact',
    'sector_shock',
    'usd_strength',
]
