"""
RentMatch: Application Configuration

Loads all configuration from environment variables (and an optional .env file)
using Pydantic Settings.  A cached ``get_settings()`` helper is provided so that
FastAPI dependency-injection (and any other call-site) always receives the same
validated instance without re-parsing the environment on every request.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Dict

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the RentMatch service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # Database
    # ------------------------------------------------------------------ #
    DATABASE_URL: str
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 5

    # ------------------------------------------------------------------ #
    # Redis – ranked match-list cache
    # ------------------------------------------------------------------ #
    REDIS_URL: str
    MATCH_CACHE_TTL_SECONDS: int = 300

    # ------------------------------------------------------------------ #
    # Runtime environment
    # ------------------------------------------------------------------ #
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    # ------------------------------------------------------------------ #
    # CORS
    # ------------------------------------------------------------------ #
    ALLOWED_ORIGINS: str = "*"

    # ------------------------------------------------------------------ #
    # Preference completeness weights (tier -> weight)
    # ------------------------------------------------------------------ #
    COMPLETENESS_TIER_WEIGHTS: Dict[str, float] = {
        "essential": 3.0,
        "important": 2.0,
        "useful": 1.5,
        "optional": 1.0,
    }

    # ------------------------------------------------------------------ #
    # Property match category weights
    # ------------------------------------------------------------------ #
    MATCH_CATEGORY_WEIGHTS: Dict[str, float] = {
        "price": 25.0,
        "location": 15.0,
        "bedrooms": 20.0,
        "bathrooms": 5.0,
        "lifestyle": 15.0,
        "property_type": 10.0,
        "furnishing": 5.0,
        "availability": 3.0,
        "let_duration": 2.0,
    }

    PRICE_OVER_TOLERANCE: float = 0.10   # fraction over max_price still given partial credit
    PRICE_UNDER_TOLERANCE: float = 0.20  # fraction under min_price still given partial credit

    # ------------------------------------------------------------------ #
    # Matching orchestration
    # ------------------------------------------------------------------ #
    CATALOG_LIMIT: int = 500
    DEFAULT_MATCH_LIMIT: int = 20
    RECOMMENDATION_MIN_SCORE: int = 60

    # ------------------------------------------------------------------ #
    # Derived helpers
    # ------------------------------------------------------------------ #
    @property
    def allowed_origins_list(self) -> list[str]:
        """Return ALLOWED_ORIGINS as a list split on commas."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @field_validator("LOG_LEVEL")
    @classmethod
    def _log_level_must_be_known(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown LOG_LEVEL {v!r}")
        return level

    @field_validator("COMPLETENESS_TIER_WEIGHTS", "MATCH_CATEGORY_WEIGHTS")
    @classmethod
    def _weights_must_be_non_negative(cls, v: Dict[str, float]) -> Dict[str, float]:
        for name, weight in v.items():
            if weight < 0:
                raise ValueError(f"Weight for {name!r} must be non-negative, got {weight}")
        return v

    @field_validator("PRICE_OVER_TOLERANCE", "PRICE_UNDER_TOLERANCE")
    @classmethod
    def _tolerance_must_be_between_0_and_1(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"Tolerance must be between 0 and 1, got {v}")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached, validated ``Settings`` instance.

    Using ``@lru_cache`` guarantees the .env file is read and validated
    exactly once per process lifetime.  Import this function anywhere you
    need access to configuration::

        from app.config import get_settings
        settings = get_settings()
    """
    return Settings()  # type: ignore[call-arg]
