"""
Configuration management for the matchmaking engine.

This module provides a fast-fail configuration system: every key is defined
in a schema, resolved from environment overrides, supplied values or schema
defaults, and validated when the loader is created.

Usage:
    from matchmaking.config import ConfigLoader, ConfigError

    loader = ConfigLoader({"matchmaker.grudge_window.weeks": 6})

    # Typed accessors
    bonus = loader.get_float("matchmaker.bonus.category_match")

    # Frozen snapshot handed to the engine
    settings = loader.settings()
"""

from __future__ import annotations

from .errors import (
    ConfigError,
    MissingKeyError,
    UnknownKeyError,
    ValidationError,
)
from .loader import ConfigLoader
from .schema import CONFIG_SCHEMA, get_all_required_keys, get_schema_key, preference_key, validate_key
from .settings import MatchmakingSettings
from .types import ConfigKey, ConfigType

__all__ = [
    # Main loader
    "ConfigLoader",
    "MatchmakingSettings",
    # Error classes
    "ConfigError",
    "MissingKeyError",
    "ValidationError",
    "UnknownKeyError",
    # Schema
    "CONFIG_SCHEMA",
    "ConfigKey",
    "ConfigType",
    "get_schema_key",
    "get_all_required_keys",
    "preference_key",
    "validate_key",
]
