"""
Configuration Module
====================

Centralized configuration management using Pydantic Settings.
Loads from environment variables with type validation and defaults.

Usage:
    from shared.config import settings

    print(settings.environment)
    print(settings.pool.tree_height)
"""

from shared.config.settings import (
    Environment,
    JWTSettings,
    LedgerMode,
    LogLevel,
    PoolSettings,
    Settings,
    get_settings,
)


# Global settings instance (singleton)
settings = get_settings()

__all__ = [
    "Settings",
    "PoolSettings",
    "JWTSettings",
    "get_settings",
    "settings",
    "Environment",
    "LogLevel",
    "LedgerMode",
]
