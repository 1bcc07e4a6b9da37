"""
Hedgebook

Pricing and risk core for FX and commodity hedging books.

Packages:
- market: per-asset market state and the default market universe
- pricing: cost-of-carry forwards, Garman-Kohlhagen, Black-76, exotics, MTM
- risk: correlation lookup, exposure aggregation, VaR/ES, stress scenarios
- models: exposure, instrument and risk snapshot records
- book: the HedgeBook facade

The library never configures logging on import. An embedding application
calls ``configure_logging()`` once at startup to install the structlog
pipeline.
"""

__version__ = "0.1.0"

from hedgebook.book import HedgeBook
from hedgebook.logging_config import configure_logging

__all__ = ["HedgeBook", "configure_logging", "__version__"]
