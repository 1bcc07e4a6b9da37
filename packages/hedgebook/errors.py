"""Exception types raised by the pricing and risk core.

Time-to-maturity and degenerate option inputs are recovered where they occur
and only show up as log events; hedge-state inconsistencies are returned as
warning records (see ``hedgebook.models.InconsistentHedgeState``).
"""

from __future__ import annotations


class HedgeBookError(Exception):
    """Base class for all hedgebook errors."""


class UnknownAsset(HedgeBookError, KeyError):
    """An asset has no MarketState entry."""

    def __init__(self, asset: str):
        self.asset = asset
        super().__init__(f"Unknown asset: {asset}")

    def __str__(self) -> str:
        return f"Unknown asset: {self.asset}"


class UnsupportedConfidence(HedgeBookError, ValueError):
    """Confidence level other than 0.95 or 0.99."""

    def __init__(self, confidence: float):
        self.confidence = confidence
        super().__init__(
            f"Unsupported confidence level {confidence}; expected 0.95 or 0.99"
        )


class ExposureArchived(HedgeBookError):
    """Attempt to edit an archived exposure."""

    def __init__(self, exposure_id: str):
        self.exposure_id = exposure_id
        super().__init__(f"Exposure {exposure_id} is archived and cannot be modified")


class InstrumentPricingError(HedgeBookError):
    """Mark-to-market of a single instrument failed."""

    def __init__(self, instrument_id: str | None, reason: str):
        self.instrument_id = instrument_id
        self.reason = reason
        super().__init__(f"Cannot price instrument {instrument_id}: {reason}")
