"""
Configuration module for the analytics backend.

Provides settings management using pydantic-settings plus the fixed
constants the analytics services rely on.
"""

from .settings import Settings, get_settings, reset_settings
from .analytics_config import (
    COMPOSITE_WEIGHTS,
    NEUTRAL_SCORE,
    UNKNOWN_REGIME,
    UNKNOWN_STRATEGY,
)

__all__ = [
    "Settings",
    "get_settings",
    "reset_settings",
    "COMPOSITE_WEIGHTS",
    "NEUTRAL_SCORE",
    "UNKNOWN_REGIME",
    "UNKNOWN_STRATEGY",
]
