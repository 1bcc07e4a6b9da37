"""Per-asset market state.

A single ``MarketState`` holds spot, volatility, rates and carry inputs for
every asset the book references.  It is mutated only through ``update`` and
``tick``; every mutation bumps ``version`` so cached valuations can tell
whether they are stale.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterator, Literal, Optional

import numpy as np
import structlog
from pydantic import BaseModel, Field, field_validator

from hedgebook.errors import UnknownAsset

logger = structlog.get_logger(__name__)

AssetClass = Literal["fx", "commodity"]


class AssetMarket(BaseModel):
    """Market inputs for one asset.

    For FX pairs (``EURUSD``) ``rate`` is the quote-currency (domestic) rate
    and ``foreign_rate`` the base-currency rate.  For commodities ``rate`` is
    the risk-free rate and carry comes from storage cost and convenience
    yield.  ``basis`` is the stored curve-shape indicator in percent
    (forward premium over spot); positive means contango.
    """

    asset: str
    asset_class: AssetClass
    spot: float = Field(gt=0)
    volatility: float = Field(ge=0)
    rate: float = 0.0
    foreign_rate: float = 0.0
    storage_cost: float = 0.0
    convenience_yield: float = 0.0
    category: Optional[str] = None
    basis: float = 0.0

    @field_validator("asset")
    @classmethod
    def _normalize_asset(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("asset must be non-empty")
        return value

    @property
    def cost_of_carry(self) -> float:
        """Net carry rate b used in F = S * exp(b * T)."""
        if self.asset_class == "fx":
            return self.rate - self.foreign_rate
        return self.rate + self.storage_cost - self.convenience_yield

    @property
    def base_currency(self) -> Optional[str]:
        if self.asset_class != "fx" or len(self.asset) != 6:
            return None
        return self.asset[:3]

    @property
    def quote_currency(self) -> Optional[str]:
        if self.asset_class != "fx" or len(self.asset) != 6:
            return None
        return self.asset[3:]


class MarketState:
    """Mutable collection of ``AssetMarket`` entries keyed by asset id."""

    def __init__(self, assets: Optional[Dict[str, AssetMarket]] = None):
        self._assets: Dict[str, AssetMarket] = {}
        for market in (assets or {}).values():
            self._assets[market.asset] = market
        self.version = 0
        self.last_updated = datetime.now(timezone.utc)

    def __contains__(self, asset: object) -> bool:
        return isinstance(asset, str) and asset.upper() in self._assets

    def __iter__(self) -> Iterator[str]:
        return iter(self._assets)

    def __len__(self) -> int:
        return len(self._assets)

    def get(self, asset: str) -> AssetMarket:
        """Return the market entry for *asset*; raise UnknownAsset if missing."""
        try:
            return self._assets[asset.upper()]
        except KeyError:
            raise UnknownAsset(asset) from None

    def spot(self, asset: str) -> float:
        return self.get(asset).spot

    def volatility(self, asset: str) -> float:
        return self.get(asset).volatility

    def assets(self) -> list[AssetMarket]:
        return list(self._assets.values())

    def set(self, market: AssetMarket) -> None:
        """Insert or replace the entry for ``market.asset``."""
        self._assets[market.asset] = market
        self._touch()

    def update(self, asset: str, **changes) -> AssetMarket:
        """Replace fields of an existing entry, re-running validation."""
        current = self.get(asset)
        data = current.model_dump()
        data.update(changes)
        updated = AssetMarket.model_validate(data)
        self._assets[updated.asset] = updated
        self._touch()
        return updated

    def remove(self, asset: str) -> bool:
        removed = self._assets.pop(asset.upper(), None) is not None
        if removed:
            self._touch()
        return removed

    def tick(self, rng: np.random.Generator, scale: float = 0.01) -> None:
        """Perturb every spot by a uniform shock of up to ``vol * scale``."""
        if not self._assets:
            return
        shocks = rng.uniform(-1.0, 1.0, len(self._assets))
        for shock, (asset, market) in zip(shocks, list(self._assets.items())):
            factor = 1.0 + float(shock) * market.volatility * scale
            self._assets[asset] = market.model_copy(update={"spot": market.spot * factor})
        self._touch()
        logger.debug("market_tick: applied", assets=len(self._assets), version=self.version)

    def _touch(self) -> None:
        self.version += 1
        self.last_updated = datetime.now(timezone.utc)
