"""Pydantic models for book records and derived risk snapshots.

Exposures and instruments are the only records the book owns.  Every other
model here is a derived value: recomputed on demand, never stored.  Dates
serialize as ISO-8601 calendar dates and amounts as plain numbers.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

OptionType = Literal["call", "put"]


class Exposure(BaseModel):
    """An underlying commercial exposure in one asset.

    ``quantity`` is signed: long / receivable positive, short / payable
    negative.  ``unit_price`` converts quantity into money (1.0 for FX
    exposures booked as currency amounts).  ``hedged_quantity`` defaults to
    ``hedge_ratio`` percent of ``quantity``; when only ``hedged_quantity`` is
    given the ratio is derived from it.
    """

    id: Optional[str] = None
    asset: str
    quantity: float
    unit_price: float = Field(default=1.0, gt=0)
    maturity: date
    hedge_ratio: Optional[float] = Field(default=None, ge=0, le=100)
    hedged_quantity: Optional[float] = None
    description: str = ""
    subsidiary: Optional[str] = None
    archived: bool = False

    @field_validator("asset")
    @classmethod
    def _normalize_asset(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("asset must be non-empty")
        return value

    @model_validator(mode="after")
    def _fill_hedge_fields(self) -> "Exposure":
        if self.hedged_quantity is None:
            ratio = self.hedge_ratio if self.hedge_ratio is not None else 0.0
            self.hedge_ratio = ratio
            self.hedged_quantity = ratio / 100.0 * self.quantity
        elif self.hedge_ratio is None:
            if self.quantity == 0:
                self.hedge_ratio = 0.0
            else:
                self.hedge_ratio = min(abs(self.hedged_quantity) / abs(self.quantity) * 100.0, 100.0)
        return self

    @property
    def value(self) -> float:
        """Signed money amount (quantity * unit price)."""
        return self.quantity * self.unit_price

    @property
    def unhedged_quantity(self) -> float:
        return self.quantity - (self.hedged_quantity or 0.0)


class _InstrumentBase(BaseModel):
    """Fields every hedging instrument carries.

    ``notional`` is signed in units of the underlying (positive = bought).
    ``strike`` is absolute; percentage strikes are converted against spot
    once, when the instrument is booked.
    """

    id: Optional[str] = None
    asset: str
    notional: float
    maturity: date
    counterparty: str = ""
    hedge_accounting: bool = False

    @field_validator("asset")
    @classmethod
    def _normalize_asset(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("asset must be non-empty")
        return value


class ForwardContract(_InstrumentBase):
    kind: Literal["forward"] = "forward"
    strike: float = Field(gt=0)


class SwapContract(_InstrumentBase):
    kind: Literal["swap"] = "swap"
    strike: float = Field(gt=0)


class VanillaOption(_InstrumentBase):
    """European call or put.  ``premium`` is the cash paid at entry (negative if received)."""

    kind: Literal["vanilla"] = "vanilla"
    option_type: OptionType
    strike: float = Field(gt=0)
    premium: float = 0.0


class BarrierOption(_InstrumentBase):
    """Knock-in / knock-out option; a second barrier makes it a double barrier."""

    kind: Literal["barrier"] = "barrier"
    option_type: OptionType
    direction: Literal["knock_in", "knock_out"]
    strike: float = Field(gt=0)
    barrier: float = Field(gt=0)
    second_barrier: Optional[float] = Field(default=None, gt=0)
    rebate: float = 0.0
    premium: float = 0.0


class DigitalOption(_InstrumentBase):
    """Touch / range digital paying ``payout`` per unit of notional."""

    kind: Literal["digital"] = "digital"
    digital_type: Literal["one_touch", "no_touch", "range"]
    barrier: float = Field(gt=0)
    second_barrier: Optional[float] = Field(default=None, gt=0)
    payout: float = Field(default=1.0, ge=0)
    premium: float = 0.0

    @model_validator(mode="after")
    def _range_needs_two_barriers(self) -> "DigitalOption":
        if self.digital_type == "range" and self.second_barrier is None:
            raise ValueError("range digitals need a second_barrier")
        return self


Instrument = Annotated[
    Union[ForwardContract, SwapContract, VanillaOption, BarrierOption, DigitalOption],
    Field(discriminator="kind"),
]

INSTRUMENT_TYPES = (ForwardContract, SwapContract, VanillaOption, BarrierOption, DigitalOption)


class InconsistentHedgeState(BaseModel):
    """Soft-invariant violation on an exposure's hedge fields.

    Reported alongside results, never raised: desks sometimes over-hedge.
    """

    exposure_id: Optional[str]
    asset: str
    reason: Literal["sign_mismatch", "over_hedged"]
    quantity: float
    hedged_quantity: float


class RiskMetrics(BaseModel):
    """Portfolio risk snapshot.  No identity, no lifecycle."""

    var_95: float
    var_99: float
    es_95: float
    es_99: float
    total_exposure: float
    hedged_amount: float
    unhedged_risk: float
    hedge_ratio: float
    mtm_impact: float
    warnings: list[InconsistentHedgeState] = Field(default_factory=list)
    failed_instruments: list[str] = Field(default_factory=list)


class PerAssetExposure(BaseModel):
    """Per-asset aggregate, recomputed from exposures and instruments on every read."""

    asset: str
    asset_class: Optional[str] = None
    gross_exposure: float
    net_exposure: float
    hedged_amount: float
    hedge_ratio: float
    gross_value: float
    net_value: float
    instrument_notional: float = 0.0
    var_95: float = 0.0
    var_contribution: float = 0.0
    trend: Literal["up", "down", "stable"] = "stable"
    curve_shape: Optional[Literal["contango", "backwardation", "neutral"]] = None


class ScenarioResult(BaseModel):
    key: str
    name: str
    description: str
    shocks: dict[str, float]
    impact: float
    contributions: dict[str, float] = Field(default_factory=dict)


class SummaryStatistics(BaseModel):
    total_exposures: int
    total_receivables: float
    total_payables: float
    total_hedged: float
    average_hedge_ratio: float
    asset_breakdown: dict[str, dict[str, float]]
    maturity_breakdown: dict[str, int]
