"""Configuration for the pricing and risk core loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Hedgebook configuration.

    All fields are loaded from ``HEDGEBOOK_``-prefixed environment variables
    (or a local ``.env``).  Every field has a default suitable for a desk
    running the engine in-process.
    """

    TRADING_DAYS: int = 252
    TICK_SHOCK_SCALE: float = 0.01  # tick moves spot by up to vol * scale
    TICK_SEED: int | None = None
    HEDGE_MATCH_TOLERANCE_DAYS: int = 31
    MC_PATHS: int = 10000
    MC_STEPS: int = 100
    MC_SEED: int = 7
    REPAIR_CORRELATION: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = {
        "env_prefix": "HEDGEBOOK_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
