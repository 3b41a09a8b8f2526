"""
Ledger configuration.

Settings are a pydantic model so that values read from the environment
are type-checked and range-checked in one place. Environment variables
use the ``LEDGER_`` prefix, e.g. ``LEDGER_QUOTE_CACHE_TTL_SECONDS=15``.
"""

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from portfolio_ledger.core.constants import (
    DEFAULT_QUOTE_CACHE_SIZE,
    DEFAULT_QUOTE_CACHE_TTL_SECONDS,
    DEFAULT_QUOTE_RATE_LIMIT,
    DEFAULT_QUOTE_RATE_LIMIT_WINDOW_SECONDS,
    DEFAULT_QUOTE_TIMEOUT_SECONDS,
    DEFAULT_QUOTE_WORKERS,
)
from portfolio_ledger.core.enums import CommissionPolicy
from portfolio_ledger.core.exceptions import ConfigurationError
from portfolio_ledger.core.types import COST_BASIS_DECIMALS

ENV_PREFIX = "LEDGER_"

_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


class LedgerSettings(BaseModel):
    """Runtime settings for the ledger engine, quote provider, and API."""

    model_config = ConfigDict(frozen=True)

    commission_policy: CommissionPolicy = CommissionPolicy.EXCLUDE_FROM_COST_BASIS
    cost_basis_decimals: int = Field(default=COST_BASIS_DECIMALS, ge=0, le=8)
    quote_cache_ttl_seconds: float = Field(default=DEFAULT_QUOTE_CACHE_TTL_SECONDS, gt=0)
    quote_cache_size: int = Field(default=DEFAULT_QUOTE_CACHE_SIZE, gt=0)
    quote_rate_limit: int = Field(default=DEFAULT_QUOTE_RATE_LIMIT, gt=0)
    quote_rate_limit_window_seconds: float = Field(
        default=DEFAULT_QUOTE_RATE_LIMIT_WINDOW_SECONDS, gt=0
    )
    quote_timeout_seconds: float = Field(default=DEFAULT_QUOTE_TIMEOUT_SECONDS, gt=0)
    quote_workers: int = Field(default=DEFAULT_QUOTE_WORKERS, ge=1, le=32)
    log_level: str = "INFO"
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:8080"]
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate the log level is one loguru knows."""
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level {v}. Supported: {', '.join(sorted(_LOG_LEVELS))}")
        return level

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, v: object) -> object:
        """Accept a comma-separated string for CORS origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "LedgerSettings":
        """Build settings from ``LEDGER_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            Validated settings

        Raises:
            ConfigurationError: If any variable has an invalid value
        """
        source = os.environ if environ is None else environ
        values = {
            name: source[ENV_PREFIX + name.upper()]
            for name in cls.model_fields
            if ENV_PREFIX + name.upper() in source
        }
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid ledger configuration: {e}") from e
