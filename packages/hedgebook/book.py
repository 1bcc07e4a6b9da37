"""Hedging book facade.

``HedgeBook`` owns the mutable state (exposures, instruments and market
state) and exposes the synchronous API.  Every public call takes the same
re-entrant lock, so a reader always sees exposures, instruments and market
data from one consistent point in time.

Instrument marks are cached per instrument and keyed on the market version,
the instrument revision and the valuation date.  ``tick`` and instrument
edits recompute the affected marks before returning; any other market change
is caught on read because it bumps the market version.
"""

from __future__ import annotations

import threading
import uuid
from datetime import date
from typing import Any, Optional, Union

import numpy as np
import pandas as pd
import structlog
from pydantic import BaseModel, TypeAdapter

from hedgebook.config import Settings, get_settings
from hedgebook.errors import ExposureArchived, InstrumentPricingError, UnknownAsset
from hedgebook.market.defaults import default_market_state
from hedgebook.market.state import AssetMarket, MarketState
from hedgebook.models import (
    Exposure,
    InconsistentHedgeState,
    Instrument,
    PerAssetExposure,
    RiskMetrics,
    ScenarioResult,
    SummaryStatistics,
)
from hedgebook.pricing.forwards import forward_price, tenor_to_years
from hedgebook.pricing.mtm import mark_to_market, option_price_for_asset
from hedgebook.risk.correlation import CorrelationProvider
from hedgebook.risk.exposures import (
    aggregate_exposures,
    check_hedge_state,
    live_exposures,
    match_hedges,
    summary_statistics,
)
from hedgebook.risk.metrics import (
    active_exposures,
    build_covariance,
    build_risk_metrics,
    component_var,
    standalone_var,
)
from hedgebook.risk.stress import default_scenarios, run_scenarios

logger = structlog.get_logger(__name__)

_INSTRUMENT_ADAPTER = TypeAdapter(Instrument)


def _new_id() -> str:
    return uuid.uuid4().hex


class HedgeBook:
    """In-memory FX / commodity hedging book with pricing and risk queries."""

    def __init__(
        self,
        market: Optional[MarketState] = None,
        settings: Optional[Settings] = None,
        valuation_date: Optional[date] = None,
    ):
        self.settings = settings or get_settings()
        self.market = market if market is not None else default_market_state()
        self._valuation_date = valuation_date
        self._provider = CorrelationProvider(self.market)
        self._rng = np.random.default_rng(self.settings.TICK_SEED)
        self._lock = threading.RLock()

        self._exposures: dict[str, Exposure] = {}
        self._instruments: dict[str, Any] = {}
        self._revisions: dict[str, int] = {}
        # instrument id -> (cache key, mark or None when pricing failed)
        self._marks: dict[str, tuple[tuple, Optional[float]]] = {}

    @property
    def valuation_date(self) -> date:
        return self._valuation_date or date.today()

    # ------------------------------------------------------------------
    # Exposures
    # ------------------------------------------------------------------

    def add_exposure(self, exposure: Union[Exposure, dict]) -> str:
        """Book an exposure and return its id.

        Raises:
            UnknownAsset: the asset has no market entry
            ValueError: the quantity is zero
        """
        if not isinstance(exposure, Exposure):
            exposure = Exposure.model_validate(exposure)
        if exposure.quantity == 0:
            raise ValueError("Exposure quantity must be non-zero")

        with self._lock:
            self._require_asset(exposure.asset)
            exposure_id = exposure.id or _new_id()
            if exposure_id in self._exposures:
                raise ValueError(f"Exposure {exposure_id} already exists")
            exposure = exposure.model_copy(update={"id": exposure_id})
            self._exposures[exposure_id] = exposure
            check_hedge_state(exposure)

        logger.info("add_exposure: added", exposure_id=exposure_id, asset=exposure.asset)
        return exposure_id

    def update_exposure(self, exposure_id: str, **changes) -> bool:
        """Apply field changes; returns False when the id is unknown.

        Changing ``quantity`` or ``hedge_ratio`` without an explicit
        ``hedged_quantity`` re-derives the hedged quantity from the ratio.

        Raises:
            ExposureArchived: the exposure is archived
            ValueError: unknown field, zero or sign-flipped quantity, or an id change
        """
        with self._lock:
            current = self._exposures.get(exposure_id)
            if current is None:
                return False
            if current.archived:
                raise ExposureArchived(exposure_id)
            unknown = set(changes) - set(Exposure.model_fields)
            if unknown:
                raise ValueError(f"Unknown exposure fields: {sorted(unknown)}")
            if "id" in changes and changes["id"] != exposure_id:
                raise ValueError("Exposure id cannot be changed")

            new_quantity = changes.get("quantity", current.quantity)
            if new_quantity == 0:
                raise ValueError("Exposure quantity must be non-zero")
            if (new_quantity > 0) != (current.quantity > 0):
                raise ValueError("Exposure sign is fixed at creation")

            data = current.model_dump()
            data.update(changes)
            if "hedged_quantity" not in changes and ("quantity" in changes or "hedge_ratio" in changes):
                data["hedged_quantity"] = None
            elif "hedged_quantity" in changes and "hedge_ratio" not in changes:
                data["hedge_ratio"] = None

            updated = Exposure.model_validate(data)
            self._require_asset(updated.asset)
            self._exposures[exposure_id] = updated
            check_hedge_state(updated)

        logger.info("update_exposure: updated", exposure_id=exposure_id, fields=sorted(changes))
        return True

    def delete_exposure(self, exposure_id: str) -> bool:
        with self._lock:
            removed = self._exposures.pop(exposure_id, None) is not None
        if removed:
            logger.info("delete_exposure: deleted", exposure_id=exposure_id)
        return removed

    def archive_exposure(self, exposure_id: str) -> bool:
        """Freeze an exposure and drop it from every aggregate."""
        with self._lock:
            current = self._exposures.get(exposure_id)
            if current is None:
                return False
            if not current.archived:
                self._exposures[exposure_id] = current.model_copy(update={"archived": True})
        logger.info("archive_exposure: archived", exposure_id=exposure_id)
        return True

    def get_exposure(self, exposure_id: str) -> Optional[Exposure]:
        with self._lock:
            return self._exposures.get(exposure_id)

    def exposures(self, include_archived: bool = True) -> list[Exposure]:
        with self._lock:
            items = list(self._exposures.values())
        return items if include_archived else live_exposures(items)

    # ------------------------------------------------------------------
    # Instruments
    # ------------------------------------------------------------------

    def add_instrument(
        self,
        instrument: Union[BaseModel, dict],
        strike_pct_of_spot: Optional[float] = None,
    ) -> str:
        """Book a hedge instrument, mark it, and return its id.

        Args:
            instrument: Instrument model or dict tagged with ``kind``
            strike_pct_of_spot: Strike as a percentage of current spot;
                converted to an absolute strike now and never re-based

        Raises:
            UnknownAsset: the asset has no market entry
        """
        data = instrument.model_dump() if isinstance(instrument, BaseModel) else dict(instrument)

        with self._lock:
            if strike_pct_of_spot is not None:
                if data.get("kind") == "digital":
                    raise ValueError("Digital options have no strike")
                spot = self.market.spot(str(data.get("asset", "")))
                data["strike"] = spot * strike_pct_of_spot / 100.0

            parsed = _INSTRUMENT_ADAPTER.validate_python(data)
            self._require_asset(parsed.asset)
            instrument_id = parsed.id or _new_id()
            if instrument_id in self._instruments:
                raise ValueError(f"Instrument {instrument_id} already exists")

            self._instruments[instrument_id] = parsed.model_copy(update={"id": instrument_id})
            self._revisions[instrument_id] = 0
            mark = self._revalue(instrument_id)

        logger.info(
            "add_instrument: added",
            instrument_id=instrument_id,
            kind=parsed.kind,
            asset=parsed.asset,
            mtm=mark,
        )
        return instrument_id

    def update_instrument(self, instrument_id: str, **changes) -> bool:
        """Apply field changes and re-mark; returns False when the id is unknown."""
        with self._lock:
            current = self._instruments.get(instrument_id)
            if current is None:
                return False
            unknown = set(changes) - set(type(current).model_fields)
            if unknown:
                raise ValueError(f"Unknown instrument fields: {sorted(unknown)}")
            if "id" in changes and changes["id"] != instrument_id:
                raise ValueError("Instrument id cannot be changed")

            data = current.model_dump()
            data.update(changes)
            updated = _INSTRUMENT_ADAPTER.validate_python(data)
            self._require_asset(updated.asset)

            self._instruments[instrument_id] = updated
            self._revisions[instrument_id] += 1
            self._revalue(instrument_id)

        logger.info("update_instrument: updated", instrument_id=instrument_id, fields=sorted(changes))
        return True

    def delete_instrument(self, instrument_id: str) -> bool:
        with self._lock:
            removed = self._instruments.pop(instrument_id, None) is not None
            self._revisions.pop(instrument_id, None)
            self._marks.pop(instrument_id, None)
        if removed:
            logger.info("delete_instrument: deleted", instrument_id=instrument_id)
        return removed

    def get_instrument(self, instrument_id: str):
        with self._lock:
            return self._instruments.get(instrument_id)

    def instruments(self) -> list:
        with self._lock:
            return list(self._instruments.values())

    def mtm(self, instrument_id: str) -> float:
        """Current mark of one instrument.

        Raises:
            KeyError: unknown instrument id
            InstrumentPricingError: the instrument cannot be priced
        """
        with self._lock:
            if instrument_id not in self._instruments:
                raise KeyError(instrument_id)
            mark = self._current_mark(instrument_id)
        if mark is None:
            raise InstrumentPricingError(instrument_id, "mark-to-market failed, see logs")
        return mark

    def matched_instruments(self, exposure_id: str) -> list:
        """Instruments hedging an exposure, matched on asset and maturity."""
        with self._lock:
            exposure = self._exposures.get(exposure_id)
            if exposure is None:
                raise KeyError(exposure_id)
            ids = match_hedges(
                [exposure],
                self._instruments.values(),
                self.settings.HEDGE_MATCH_TOLERANCE_DAYS,
            )[exposure_id]
            return [self._instruments[i] for i in ids]

    # ------------------------------------------------------------------
    # Market
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """Perturb every spot and re-mark all instruments."""
        with self._lock:
            self.market.tick(self._rng, self.settings.TICK_SHOCK_SCALE)
            failed = [i for i in list(self._instruments) if self._revalue(i) is None]

        logger.info(
            "tick: market updated",
            market_version=self.market.version,
            instruments=len(self._instruments),
            failed=len(failed),
        )

    def set_market(self, market: Union[MarketState, AssetMarket]) -> None:
        """Replace the whole market state, or insert / replace one asset entry."""
        with self._lock:
            if isinstance(market, MarketState):
                self.market = market
                self._provider = CorrelationProvider(market)
                self._marks.clear()
            else:
                self.market.set(market)
            for instrument_id in list(self._instruments):
                self._revalue(instrument_id)

    def forward_price(self, asset: str, tenor: str) -> float:
        """Cost-of-carry forward for a tenor such as ``"3M"``; ``"0D"`` returns spot."""
        with self._lock:
            market = self.market.get(asset)
            return forward_price(market.spot, market.cost_of_carry, tenor_to_years(tenor))

    def option_price(
        self,
        option_type: str,
        asset: str,
        strike: float,
        time_to_maturity: float,
        volatility: Optional[float] = None,
    ) -> float:
        """Unit premium: Garman-Kohlhagen for FX, Black-76 for commodities."""
        with self._lock:
            market = self.market.get(asset)
            return option_price_for_asset(option_type, market, strike, time_to_maturity, volatility)

    # ------------------------------------------------------------------
    # Risk
    # ------------------------------------------------------------------

    def risk_metrics(self) -> RiskMetrics:
        """Portfolio VaR / ES and hedge totals; always produced, even when some marks fail."""
        with self._lock:
            live = live_exposures(self._exposures.values())
            marks, failed = self._all_marks()

            total_exposure = sum(abs(e.value) for e in live)
            hedged_amount = sum(abs(e.hedged_quantity or 0.0) * e.unit_price for e in live)

            return build_risk_metrics(
                self._priced_net_values(live),
                self._provider,
                total_exposure=total_exposure,
                hedged_amount=hedged_amount,
                mtm_impact=sum(marks.values()),
                warnings=self._warnings(live),
                failed_instruments=failed,
                trading_days=self.settings.TRADING_DAYS,
                repair_correlation=self.settings.REPAIR_CORRELATION,
            )

    def per_asset_exposures(self) -> list[PerAssetExposure]:
        with self._lock:
            live = live_exposures(self._exposures.values())
            net_values = self._priced_net_values(live)
            standalone = {
                asset: standalone_var(
                    value, self.market.volatility(asset), 0.95, self.settings.TRADING_DAYS
                )
                for asset, value in net_values.items()
            }
            return aggregate_exposures(
                live,
                market=self.market,
                instruments=list(self._instruments.values()),
                tolerance_days=self.settings.HEDGE_MATCH_TOLERANCE_DAYS,
                standalone=standalone,
                contributions=self._component_var(net_values),
            )

    def var_contributions(self) -> dict[str, float]:
        """Component VaR (95%) per asset; sums to the portfolio VaR."""
        with self._lock:
            live = live_exposures(self._exposures.values())
            return self._component_var(self._priced_net_values(live))

    def stress_scenarios(self) -> list[ScenarioResult]:
        with self._lock:
            return run_scenarios(
                live_exposures(self._exposures.values()),
                default_scenarios(self.market),
            )

    def summary_statistics(self) -> SummaryStatistics:
        with self._lock:
            return summary_statistics(self._exposures.values(), today=self.valuation_date)

    def hedge_warnings(self) -> list[InconsistentHedgeState]:
        with self._lock:
            return self._warnings(live_exposures(self._exposures.values()))

    # ------------------------------------------------------------------
    # Internals (callers hold the lock)
    # ------------------------------------------------------------------

    def _require_asset(self, asset: str) -> None:
        if asset not in self.market:
            raise UnknownAsset(asset)

    def _cache_key(self, instrument_id: str) -> tuple:
        return (self.market.version, self._revisions[instrument_id], self.valuation_date)

    def _revalue(self, instrument_id: str) -> Optional[float]:
        instrument = self._instruments[instrument_id]
        try:
            mark: Optional[float] = mark_to_market(
                instrument, self.market, self.valuation_date, self.settings
            )
        except (UnknownAsset, ValueError, TypeError, ArithmeticError) as e:
            logger.error(
                "mark_to_market: instrument skipped",
                instrument_id=instrument_id,
                kind=getattr(instrument, "kind", None),
                error=str(e),
            )
            mark = None
        self._marks[instrument_id] = (self._cache_key(instrument_id), mark)
        return mark

    def _current_mark(self, instrument_id: str) -> Optional[float]:
        cached = self._marks.get(instrument_id)
        if cached is not None and cached[0] == self._cache_key(instrument_id):
            return cached[1]
        return self._revalue(instrument_id)

    def _all_marks(self) -> tuple[dict[str, float], list[str]]:
        marks, failed = {}, []
        for instrument_id in self._instruments:
            mark = self._current_mark(instrument_id)
            if mark is None:
                failed.append(instrument_id)
            else:
                marks[instrument_id] = mark
        return marks, failed

    def _priced_net_values(self, live: list[Exposure]) -> pd.Series:
        net: dict[str, float] = {}
        for exp in live:
            if exp.asset not in self.market:
                logger.warning(
                    "risk: exposure asset missing from market, excluded from VaR",
                    exposure_id=exp.id,
                    asset=exp.asset,
                )
                continue
            net[exp.asset] = net.get(exp.asset, 0.0) + exp.value
        return pd.Series(net, dtype=float)

    def _component_var(self, net_values: pd.Series) -> dict[str, float]:
        active = active_exposures(net_values)
        cov = build_covariance(active.index, self._provider, repair=self.settings.REPAIR_CORRELATION)
        components = component_var(active, cov, 0.95, self.settings.TRADING_DAYS)
        return {asset: float(value) for asset, value in components.items()}

    def _warnings(self, live: list[Exposure]) -> list[InconsistentHedgeState]:
        return [w for w in (check_hedge_state(e) for e in live) if w is not None]
