"""Configuration key definitions.

A ConfigKey describes one setting: its value type, its default and the rules
a resolved value must satisfy.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ConfigType(Enum):
    """Value types a config key can hold."""

    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    STRING = "string"
    CATEGORY_LIST = "category_list"

    @property
    def is_numeric(self) -> bool:
        return self in (ConfigType.INT, ConfigType.FLOAT)


@dataclass(frozen=True)
class ConfigKey:
    """
    One entry of the configuration schema.

    Attributes:
        key: Dot-notation name, e.g. "matchmaker.bonus.category_match"
        config_type: Type the raw value is converted to
        default: Used when neither the environment nor the supplied values set the key
        required: Whether a value (or default) must resolve
        description: Shown in health reports and docs
        min_value / max_value: Inclusive bounds for numeric keys
        allowed_values: Closed set of accepted values
        validator: Extra predicate on the converted value
    """

    key: str
    config_type: ConfigType
    default: Any = None
    required: bool = True
    description: str = ""
    min_value: float | None = None
    max_value: float | None = None
    allowed_values: list[Any] | None = None
    validator: Callable[[Any], bool] | None = None

    @property
    def env_var(self) -> str:
        """Environment override name: matchmaker.bonus.avoid -> CONFIG_MATCHMAKER_BONUS_AVOID."""
        return "CONFIG_" + self.key.upper().replace(".", "_")

    def validate(self, value: Any) -> str | None:
        """
        Check a converted value against the rules of this key.

        Returns:
            None when the value is acceptable, otherwise the reason it is not
        """
        if self.config_type.is_numeric:
            if self.min_value is not None and value < self.min_value:
                return f"{value} is below the minimum of {self.min_value}"
            if self.max_value is not None and value > self.max_value:
                return f"{value} is above the maximum of {self.max_value}"

        if self.allowed_values is not None and value not in self.allowed_values:
            return f"{value!r} is not one of {self.allowed_values}"

        if self.validator is not None and not self.validator(value):
            return f"{value!r} was rejected by the {self.config_type.value} validator"

        return None
