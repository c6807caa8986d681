"""
ConfigLoader - fail-fast configuration for the matchmaker.

Values come from three places, highest priority first: CONFIG_* environment
overrides, the mapping handed to the loader (usually the caller's persisted
settings), and the schema defaults. Every key is checked when the loader is
built, so a bad value stops the caller before any matching starts.
"""

from __future__ import annotations

import json
import logging
import math
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, cast

from matchmaking.constants import Category

from .errors import ConfigError, MissingKeyError, UnknownKeyError, ValidationError
from .schema import CONFIG_SCHEMA, get_all_required_keys, preference_key
from .settings import SETTINGS_KEYS, MatchmakingSettings
from .types import ConfigKey, ConfigType

logger = logging.getLogger(__name__)


class ConfigLoader:
    """
    Resolves and validates matchmaker configuration.

    Usage:
        loader = ConfigLoader({"matchmaker.bonus.category_match": 12})

        window = loader.get_int("matchmaker.grudge_window.weeks")
        fallbacks = loader.get_preferences(Category.AMBER)

        # Frozen snapshot for the engine
        settings = loader.settings()
    """

    def __init__(
        self,
        values: Mapping[str, Any] | None = None,
        validate_on_init: bool = True,
        env: Mapping[str, str] | None = None,
    ):
        """
        Args:
            values: Raw values keyed by dot-notation key
            validate_on_init: Resolve and check every key now
            env: Where overrides are read from; os.environ when omitted

        Raises:
            UnknownKeyError: If values names a key the schema does not define
            ValidationError: If validate_on_init is set and a value is bad
        """
        self._values: dict[str, Any] = dict(values or {})
        self._env = os.environ if env is None else env
        self._cache: dict[str, Any] = {}
        self._validated = False

        unknown = sorted(set(self._values) - set(CONFIG_SCHEMA))
        if unknown:
            raise UnknownKeyError(f"Unknown config keys: {unknown}", key=unknown[0])

        if validate_on_init:
            self.validate()

    @classmethod
    def from_json_file(cls, path: str | Path, validate_on_init: bool = True) -> ConfigLoader:
        """
        Build a loader from a JSON file holding one flat object of dot-notation keys.

        Raises:
            ConfigError: If the file is unreadable, malformed or not an object
        """
        file_path = Path(path)
        try:
            data = json.loads(file_path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to read config file {file_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {file_path} must contain a JSON object, got {type(data).__name__}")

        logger.info(f"Loaded {len(data)} config values from {file_path}")
        return cls(data, validate_on_init=validate_on_init)

    def validate(self) -> None:
        """
        Resolve every required key and report all problems at once.

        Raises:
            ValidationError: Listing each missing or invalid key
        """
        problems: list[str] = []
        for key in get_all_required_keys():
            try:
                self.get(key)
            except (MissingKeyError, ValidationError) as e:
                problems.append(f"  - {e}")

        if problems:
            raise ValidationError(
                f"Configuration validation failed ({len(problems)} problems):\n" + "\n".join(problems)
            )

        self._validated = True
        logger.debug(f"Validated {len(CONFIG_SCHEMA)} config keys")

    def get(self, key: str) -> Any:
        """
        Resolve one key to its typed, validated value.

        Raises:
            UnknownKeyError: If the key is not in the schema
            MissingKeyError: If nothing provides a value
            ValidationError: If the value cannot be converted or breaks a rule
        """
        schema = CONFIG_SCHEMA.get(key)
        if schema is None:
            raise UnknownKeyError(f"Unknown config key: '{key}'", key=key)

        if key in self._cache:
            return self._cache[key]

        raw_value, source = self._resolve_raw(schema)
        if raw_value is None:
            raise MissingKeyError(f"Required config key '{key}' has no value and no default", key=key)

        try:
            value = self._convert_type(raw_value, schema.config_type)
        except (ValueError, TypeError) as e:
            raise ValidationError(f"{source} is not a valid {schema.config_type.value}: {e}", key=key) from e

        error = schema.validate(value)
        if error:
            raise ValidationError(f"{source}: {error}", key=key)

        self._cache[key] = value
        return value

    def _resolve_raw(self, schema: ConfigKey) -> tuple[Any, str]:
        """Raw value for a key and a description of where it came from."""
        if schema.env_var in self._env:
            return self._env[schema.env_var], f"environment variable {schema.env_var}"
        if self._values.get(schema.key) is not None:
            return self._values[schema.key], f"config key '{schema.key}'"
        return schema.default, f"default for '{schema.key}'"

    def get_int(self, key: str) -> int:
        return cast(int, self.get(key))

    def get_float(self, key: str) -> float:
        return cast(float, self.get(key))

    def get_bool(self, key: str) -> bool:
        return cast(bool, self.get(key))

    def get_str(self, key: str) -> str:
        return cast(str, self.get(key))

    def get_categories(self, key: str) -> list[Category]:
        return cast(list[Category], self.get(key))

    def get_preferences(self, category: Category) -> list[Category]:
        """Ranked fallback categories for personas of the given category."""
        return self.get_categories(preference_key(category))

    def _convert_type(self, value: Any, config_type: ConfigType) -> Any:
        if config_type == ConfigType.INT:
            if isinstance(value, bool):
                raise TypeError(f"expected an integer, got {value!r}")
            if isinstance(value, float) and not (math.isfinite(value) and value.is_integer()):
                raise ValueError(f"expected an integer, got {value!r}")
            return int(value)
        if config_type == ConfigType.FLOAT:
            if isinstance(value, bool):
                raise TypeError(f"expected a number, got {value!r}")
            number = float(value)
            if not math.isfinite(number):
                raise ValueError(f"expected a finite number, got {value!r}")
            return number
        if config_type == ConfigType.BOOL:
            if isinstance(value, str):
                return value.strip().lower() in ("true", "1", "yes", "on")
            return bool(value)
        if config_type == ConfigType.STRING:
            return str(value)
        if config_type == ConfigType.CATEGORY_LIST:
            return self._parse_category_list(value)
        return value

    def _parse_category_list(self, value: Any) -> list[Category]:
        """Accepts a sequence of names or the bracketed "[GARNET, OPAL]" form."""
        if isinstance(value, str):
            inner = value.strip().removeprefix("[").removesuffix("]").strip()
            items: list[Any] = [part.strip() for part in inner.split(",")] if inner else []
        elif isinstance(value, (list, tuple)):
            items = list(value)
        else:
            raise TypeError(f"expected a list of categories, got {type(value).__name__}")

        return [Category.parse(item) for item in items]

    def settings(self) -> MatchmakingSettings:
        """Frozen settings snapshot with every value resolved."""
        fields: dict[str, Any] = {name: self.get(key) for name, key in SETTINGS_KEYS.items()}
        fields["preferences"] = {category: tuple(self.get_preferences(category)) for category in Category}
        return MatchmakingSettings(**fields)

    def invalidate_cache(self, key: str | None = None) -> None:
        """Forget resolved values so the next get() re-reads its sources."""
        if key is None:
            self._cache.clear()
        else:
            self._cache.pop(key, None)

    def health_check(self) -> dict[str, Any]:
        """
        Re-validate and report the state of the configuration.

        Returns:
            Dict with status ("healthy" or "unhealthy"), validated flag,
            counts of supplied and cached keys, and any issues found
        """
        issues: list[str] = []
        try:
            self.validate()
        except ConfigError as e:
            issues.append(str(e))

        return {
            "status": "unhealthy" if issues else "healthy",
            "validated": self._validated,
            "supplied_keys": len(self._values),
            "cached_keys": len(self._cache),
            "issues": issues,
        }
