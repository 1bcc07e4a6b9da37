"""Per-asset exposure aggregation.

Groups live (non-archived) exposures by asset into gross / net / hedged
quantities and money values, joins hedge instruments onto exposures by asset
and maturity, and classifies trend and curve shape from the stored basis.

Trend and curve shape are threshold heuristics on a basis number, not
forecasts.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Any, Iterable, Mapping, Optional, Sequence

import structlog

from hedgebook.market.state import MarketState
from hedgebook.models import (
    Exposure,
    InconsistentHedgeState,
    PerAssetExposure,
    SummaryStatistics,
)

logger = structlog.get_logger(__name__)

TREND_THRESHOLD = 1.0  # basis % beyond which a trend is reported
CURVE_THRESHOLD = 0.5  # basis % beyond which contango / backwardation is reported

HEDGE_CONSISTENCY_TOLERANCE = 0.01  # fraction of |quantity|


def live_exposures(exposures: Iterable[Exposure]) -> list[Exposure]:
    """Exposures that are not archived."""
    return [e for e in exposures if not e.archived]


def trend_from_basis(basis: float) -> str:
    if basis > TREND_THRESHOLD:
        return "up"
    if basis < -TREND_THRESHOLD:
        return "down"
    return "stable"


def curve_shape_from_basis(basis: float, asset_class: Optional[str]) -> Optional[str]:
    """Contango / backwardation flag; ``None`` for anything but commodities."""
    if asset_class != "commodity":
        return None
    if basis > CURVE_THRESHOLD:
        return "contango"
    if basis < -CURVE_THRESHOLD:
        return "backwardation"
    return "neutral"


def match_hedges(
    exposures: Iterable[Exposure],
    instruments: Iterable[Any],
    tolerance_days: int = 31,
) -> dict[str, list[str]]:
    """Join instruments onto exposures by asset and maturity.

    An instrument hedges an exposure when both reference the same asset and
    their maturities are at most *tolerance_days* apart.  The join is
    recomputed on every call; neither record stores a reference to the other.

    Returns a mapping of exposure id to the ids of matching instruments.
    """
    by_asset: dict[str, list[Any]] = defaultdict(list)
    for inst in instruments:
        by_asset[inst.asset].append(inst)

    matches: dict[str, list[str]] = {}
    for exp in exposures:
        matches[exp.id] = [
            inst.id
            for inst in by_asset.get(exp.asset, [])
            if abs((inst.maturity - exp.maturity).days) <= tolerance_days
        ]
    return matches


def check_hedge_state(exposure: Exposure) -> Optional[InconsistentHedgeState]:
    """Report a sign mismatch or over-hedge; returns None when consistent."""
    hedged = exposure.hedged_quantity or 0.0
    quantity = exposure.quantity

    reason = None
    if hedged != 0 and quantity != 0 and (hedged > 0) != (quantity > 0):
        reason = "sign_mismatch"
    elif abs(hedged) > abs(quantity):
        reason = "over_hedged"

    if reason is None:
        return None

    logger.warning(
        "check_hedge_state: inconsistent hedge",
        exposure_id=exposure.id,
        asset=exposure.asset,
        reason=reason,
    )
    return InconsistentHedgeState(
        exposure_id=exposure.id,
        asset=exposure.asset,
        reason=reason,
        quantity=quantity,
        hedged_quantity=hedged,
    )


def aggregate_exposures(
    exposures: Iterable[Exposure],
    market: Optional[MarketState] = None,
    instruments: Sequence[Any] = (),
    tolerance_days: int = 31,
    standalone: Optional[Mapping[str, float]] = None,
    contributions: Optional[Mapping[str, float]] = None,
) -> list[PerAssetExposure]:
    """Per-asset aggregates over live exposures.

    Args:
        exposures: Exposure records (archived ones are skipped)
        market: Source of asset class and basis; trend defaults to stable without it
        instruments: Live instruments, joined by asset + maturity
        tolerance_days: Maturity tolerance for the instrument join
        standalone: Optional standalone VaR per asset
        contributions: Optional component VaR per asset

    Returns:
        List of PerAssetExposure sorted by asset id
    """
    live = live_exposures(exposures)

    buckets: dict[str, dict[str, float]] = defaultdict(
        lambda: {"gross": 0.0, "net": 0.0, "hedged": 0.0, "gross_value": 0.0, "net_value": 0.0}
    )
    for exp in live:
        bucket = buckets[exp.asset]
        bucket["gross"] += abs(exp.quantity)
        bucket["net"] += exp.quantity
        bucket["hedged"] += abs(exp.hedged_quantity or 0.0)
        bucket["gross_value"] += abs(exp.value)
        bucket["net_value"] += exp.value

    matched = match_hedges(live, instruments, tolerance_days)
    notional_by_id = {inst.id: inst.notional for inst in instruments}
    instrument_notional: dict[str, float] = defaultdict(float)
    seen: set[str] = set()
    for exp in live:
        for inst_id in matched.get(exp.id, []):
            # an instrument matching several exposures counts once
            if inst_id not in seen:
                seen.add(inst_id)
                instrument_notional[exp.asset] += notional_by_id[inst_id]

    results = []
    for asset in sorted(buckets):
        bucket = buckets[asset]
        gross = bucket["gross"]
        ratio = bucket["hedged"] / gross * 100 if gross > 0 else 0.0

        asset_class = None
        basis = 0.0
        if market is not None and asset in market:
            entry = market.get(asset)
            asset_class = entry.asset_class
            basis = entry.basis

        results.append(
            PerAssetExposure(
                asset=asset,
                asset_class=asset_class,
                gross_exposure=gross,
                net_exposure=bucket["net"],
                hedged_amount=bucket["hedged"],
                hedge_ratio=min(max(ratio, 0.0), 100.0),
                gross_value=bucket["gross_value"],
                net_value=bucket["net_value"],
                instrument_notional=instrument_notional.get(asset, 0.0),
                var_95=(standalone or {}).get(asset, 0.0),
                var_contribution=(contributions or {}).get(asset, 0.0),
                trend=trend_from_basis(basis),
                curve_shape=curve_shape_from_basis(basis, asset_class),
            )
        )

    logger.debug("aggregate_exposures: aggregated", num_assets=len(results), num_exposures=len(live))
    return results


def validate_exposure(exposure: Exposure, today: Optional[date] = None) -> list[str]:
    """Business checks that pydantic validation does not cover.

    Returns a list of human-readable problems; empty when the exposure is
    acceptable for booking.
    """
    today = today or date.today()
    errors = []

    if exposure.quantity == 0:
        errors.append("Quantity must be non-zero")
    if not exposure.description.strip():
        errors.append("Description is required")
    if exposure.maturity <= today:
        errors.append("Maturity date must be in the future")

    expected = (exposure.hedge_ratio or 0.0) / 100 * exposure.quantity
    tolerance = abs(exposure.quantity) * HEDGE_CONSISTENCY_TOLERANCE
    if abs((exposure.hedged_quantity or 0.0) - expected) > tolerance:
        errors.append("Hedged quantity is inconsistent with hedge ratio")

    return errors


def filter_exposures(
    exposures: Iterable[Exposure],
    asset: Optional[str] = None,
    subsidiary: Optional[str] = None,
    maturity_from: Optional[date] = None,
    maturity_to: Optional[date] = None,
    include_archived: bool = False,
) -> list[Exposure]:
    """Select exposures by asset, subsidiary and maturity window (inclusive)."""
    selected = []
    for exp in exposures:
        if exp.archived and not include_archived:
            continue
        if asset is not None and exp.asset != asset.strip().upper():
            continue
        if subsidiary is not None and exp.subsidiary != subsidiary:
            continue
        if maturity_from is not None and exp.maturity < maturity_from:
            continue
        if maturity_to is not None and exp.maturity > maturity_to:
            continue
        selected.append(exp)
    return selected


def summary_statistics(exposures: Iterable[Exposure], today: Optional[date] = None) -> SummaryStatistics:
    """Book-level counts and totals in money terms.

    Receivables are positive values, payables negative.  The average hedge
    ratio is weighted by |value|.  Maturities are bucketed at 30 and 90 days
    from *today*.
    """
    today = today or date.today()
    live = live_exposures(exposures)

    receivables = payables = hedged = weighted_ratio = total = 0.0
    breakdown: dict[str, dict[str, float]] = {}
    maturities = {"next_30_days": 0, "next_90_days": 0, "beyond_90_days": 0}

    for exp in live:
        value = exp.value
        amount = abs(value)
        total += amount
        hedged += abs(exp.hedged_quantity or 0.0) * exp.unit_price
        weighted_ratio += (exp.hedge_ratio or 0.0) * amount

        row = breakdown.setdefault(exp.asset, {"receivables": 0.0, "payables": 0.0, "net": 0.0})
        if value >= 0:
            receivables += amount
            row["receivables"] += amount
        else:
            payables += amount
            row["payables"] += amount
        row["net"] += value

        days = (exp.maturity - today).days
        if days <= 30:
            maturities["next_30_days"] += 1
        elif days <= 90:
            maturities["next_90_days"] += 1
        else:
            maturities["beyond_90_days"] += 1

    return SummaryStatistics(
        total_exposures=len(live),
        total_receivables=receivables,
        total_payables=payables,
        total_hedged=hedged,
        average_hedge_ratio=weighted_ratio / total if total > 0 else 0.0,
        asset_breakdown=breakdown,
        maturity_breakdown=maturities,
    )
