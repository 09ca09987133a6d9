"""
Spark — Application Configuration

Loads all configuration from environment variables (and an optional .env file)
using Pydantic Settings.  A cached ``get_settings()`` helper is provided so that
FastAPI dependency-injection (and any other call-site) always receives the same
validated instance without re-parsing the environment on every request.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the Spark backend."""

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
    # Runtime environment
    # ------------------------------------------------------------------ #
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    # ------------------------------------------------------------------ #
    # CORS
    # ------------------------------------------------------------------ #
    ALLOWED_ORIGINS: str = "*"

    # ------------------------------------------------------------------ #
    # Discovery feed
    # ------------------------------------------------------------------ #
    DISCOVERY_DEFAULT_LIMIT: int = 10
    DISCOVERY_MAX_LIMIT: int = 50
    # When coordinates are missing, show a random plausible distance
    # (flagged as an estimate) instead of nothing.
    DISCOVERY_PLACEHOLDER_DISTANCE: bool = True
    DISCOVERY_PLACEHOLDER_MAX_KM: int = 25

    # ------------------------------------------------------------------ #
    # VIP plans (amounts in minor currency units)
    # ------------------------------------------------------------------ #
    VIP_MONTHLY_PRICE_CENTS: int = 1500
    VIP_YEARLY_PRICE_CENTS: int = 12000
    VIP_CURRENCY: str = "USD"

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

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    @field_validator(
        "DISCOVERY_DEFAULT_LIMIT",
        "DISCOVERY_MAX_LIMIT",
        "DISCOVERY_PLACEHOLDER_MAX_KM",
    )
    @classmethod
    def _must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Value must be a positive integer, got {v}")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached, validated ``Settings`` instance.

    Using ``@lru_cache`` guarantees the .env file is read and validated
    exactly once per process lifetime.  Import this function anywhere you
    need access to configuration::

        from spark.config import get_settings
        settings = get_settings()
    """
    return Settings()  # type: ignore[call-arg]
