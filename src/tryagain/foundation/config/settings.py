"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated defaults for retry policies and logging.
Supports .env files and nested configuration.

Example:
    >>> from tryagain.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.retry.max_attempts
    5
    
    # Or with environment variables:
    # TRYAGAIN_RETRY_MAX_ATTEMPTS=8
    # TRYAGAIN_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, NonNegativeFloat, PositiveFloat, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetrySettings(BaseSettings):
    """Default retry policy configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="TRYAGAIN_RETRY_",
        extra="ignore",
    )
    
    strategy: Literal["exponential", "fixed", "linear"] = "exponential"
    base_delay: NonNegativeFloat = Field(default=1.0, description="First wait in seconds")
    multiplier: Annotated[float, Field(ge=1.0)] = Field(default=2.0, description="Exponential growth factor")
    increment: NonNegativeFloat = Field(default=1.0, description="Per-failure increase for linear backoff")
    max_delay: PositiveFloat = Field(default=30.0, description="Cap for any single wait in seconds")
    max_attempts: Annotated[int, Field(ge=1, le=10_000)] | None = Field(
        default=5, description="Total attempts before giving up",
    )
    max_elapsed: PositiveFloat | None = Field(
        default=None, description="Seconds since the first failure before giving up",
    )
    
    @model_validator(mode="after")
    def _require_bound(self) -> RetrySettings:
        """A retry policy without any bound would never give up."""
        if self.max_attempts is None and self.max_elapsed is None:
            raise ValueError("set max_attempts, max_elapsed, or both")
        return self


class LoggingSettings(BaseSettings):
    """Logging configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="TRYAGAIN_LOG_",
        extra="ignore",
    )
    
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"


class TryAgainSettings(BaseSettings):
    """Root settings for tryagain.
    
    Loads configuration from environment variables with TRYAGAIN_ prefix.
    
    Example environment variables:
        TRYAGAIN_SINK_TIMEOUT=2.5
        TRYAGAIN_RETRY_STRATEGY=fixed
        TRYAGAIN_RETRY_BASE_DELAY=0.1
        TRYAGAIN_LOG_FORMAT=json
    """
    
    model_config = SettingsConfigDict(
        env_prefix="TRYAGAIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )
    
    sink_timeout: PositiveFloat | None = Field(
        default=5.0, description="Max seconds to wait on an async failure sink",
    )
    
    retry: RetrySettings = Field(default_factory=RetrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> TryAgainSettings:
    """Get the global settings instance (cached)."""
    return TryAgainSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).
    
    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()


