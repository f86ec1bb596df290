"""Configuration management using pydantic-settings."""

from .settings import (
    LoggingSettings,
    RetrySettings,
    TryAgainSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "LoggingSettings",
    "RetrySettings",
    "TryAgainSettings",
    "clear_settings_cache",
    "get_settings",
]
