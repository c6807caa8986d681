"""Configuration errors.

Every error names the offending key when there is one, so callers can point
at the exact setting that needs fixing.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base class for configuration problems."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class MissingKeyError(ConfigError):
    """A required key resolved to no value and has no default."""


class ValidationError(ConfigError):
    """A value could not be converted to its type or broke a schema rule."""


class UnknownKeyError(ConfigError):
    """A key that is not in the schema was requested or supplied."""
