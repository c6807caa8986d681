"""Configuration schema registry.

Defines all valid configuration keys with their types and validation rules.
This is the single source of truth for configuration structure.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from matchmaking.constants import Category

from .types import ConfigKey, ConfigType

SWAP_POLICIES = ["first_improvement", "best_improvement"]

# Fallback preferences per category, best alternative first
DEFAULT_PREFERENCES: dict[Category, list[Category]] = {
    Category.AMBER: [Category.GARNET, Category.OPAL, Category.AVENTURINE],
    Category.AVENTURINE: [Category.OPAL, Category.GARNET, Category.AMBER],
    Category.GARNET: [Category.AMBER, Category.AVENTURINE, Category.OPAL],
    Category.OPAL: [Category.AVENTURINE, Category.AMBER, Category.GARNET],
}


def preference_key(category: Category) -> str:
    """Config key holding the fallback preferences of a category."""
    return f"matchmaker.preferences.{category.value.lower()}"


def _valid_preference_list(category: Category) -> Callable[[Any], bool]:
    """Build a validator rejecting self-references and duplicates."""

    def validator(value: Any) -> bool:
        return category not in value and len(set(value)) == len(value)

    return validator


# =============================================================================
# CONFIGURATION SCHEMA REGISTRY
#
# All configuration keys must be defined here. Unknown keys will be rejected.
# Every key carries a default so an empty source is a valid configuration.
# =============================================================================

CONFIG_SCHEMA: dict[str, ConfigKey] = {
    # =========================================================================
    # CATEGORY AFFINITY
    # =========================================================================
    "matchmaker.bonus.category_match": ConfigKey(
        key="matchmaker.bonus.category_match",
        config_type=ConfigType.FLOAT,
        default=10.0,
        description="Score for a persona whose category is one of the group themes",
        min_value=0.0,
    ),
    "matchmaker.multiplier.second_choice": ConfigKey(
        key="matchmaker.multiplier.second_choice",
        config_type=ConfigType.FLOAT,
        default=0.75,
        description="Fraction of the match bonus for the first fallback category",
        min_value=0.0,
    ),
    "matchmaker.multiplier.third_choice": ConfigKey(
        key="matchmaker.multiplier.third_choice",
        config_type=ConfigType.FLOAT,
        default=0.5,
        description="Fraction of the match bonus for the second fallback category",
        min_value=0.0,
    ),
    "matchmaker.multiplier.fourth_choice": ConfigKey(
        key="matchmaker.multiplier.fourth_choice",
        config_type=ConfigType.FLOAT,
        default=0.25,
        description="Fraction of the match bonus for the third fallback category",
        min_value=0.0,
    ),
    "matchmaker.multiplier.primary_persona": ConfigKey(
        key="matchmaker.multiplier.primary_persona",
        config_type=ConfigType.FLOAT,
        default=2.0,
        description="Added to a persona's score when it is the attendee's primary persona",
        min_value=0.0,
    ),
    # =========================================================================
    # SOCIAL SCORE
    # =========================================================================
    "matchmaker.bonus.avoid": ConfigKey(
        key="matchmaker.bonus.avoid",
        config_type=ConfigType.FLOAT,
        default=-20.0,
        description="Added for each avoid-list hit inside a group (must be zero or negative)",
        max_value=0.0,
    ),
    "matchmaker.bonus.preferred_partner": ConfigKey(
        key="matchmaker.bonus.preferred_partner",
        config_type=ConfigType.FLOAT,
        default=3.0,
        description="Added when either attendee of a pair prefers the other",
        min_value=0.0,
    ),
    "matchmaker.bonus.max_reunion": ConfigKey(
        key="matchmaker.bonus.max_reunion",
        config_type=ConfigType.FLOAT,
        default=2.0,
        description="Reunion score for pairs who have not shared a group within the grudge window",
        min_value=0.0,
    ),
    "matchmaker.grudge_window.weeks": ConfigKey(
        key="matchmaker.grudge_window.weeks",
        config_type=ConfigType.INT,
        default=4,
        description="Weeks over which the reunion score recovers after a shared group",
        min_value=0,
        max_value=104,
    ),
    # =========================================================================
    # SEARCH LIMITS
    # =========================================================================
    "matchmaker.theme_search.max_groups": ConfigKey(
        key="matchmaker.theme_search.max_groups",
        config_type=ConfigType.INT,
        default=6,
        description="Largest group count the theme selector will search exhaustively",
        min_value=1,
        max_value=12,
    ),
    "matchmaker.refiner.max_swaps": ConfigKey(
        key="matchmaker.refiner.max_swaps",
        config_type=ConfigType.INT,
        default=10000,
        description="Upper bound on accepted swaps in one refinement",
        min_value=1,
    ),
    "matchmaker.refiner.policy": ConfigKey(
        key="matchmaker.refiner.policy",
        config_type=ConfigType.STRING,
        default="first_improvement",
        description="Swap selection policy used by the refiner",
        allowed_values=SWAP_POLICIES,
    ),
    # =========================================================================
    # INPUT VALIDATION
    # =========================================================================
    "matchmaker.validation.require_personas": ConfigKey(
        key="matchmaker.validation.require_personas",
        config_type=ConfigType.BOOL,
        default=False,
        description="Reject attendees without an active persona instead of using the default affinity",
    ),
}

# =========================================================================
# CATEGORY PREFERENCES - one ranked list per category
# =========================================================================
for _category, _fallbacks in DEFAULT_PREFERENCES.items():
    CONFIG_SCHEMA[preference_key(_category)] = ConfigKey(
        key=preference_key(_category),
        config_type=ConfigType.CATEGORY_LIST,
        default=list(_fallbacks),
        description=f"Acceptable 2nd/3rd/4th choice themes for {_category.display_name} personas",
        validator=_valid_preference_list(_category),
    )


def get_schema_key(key: str) -> ConfigKey | None:
    """
    Get the schema definition for a config key.

    Args:
        key: The dot-notation config key

    Returns:
        ConfigKey if found, None if unknown
    """
    return CONFIG_SCHEMA.get(key)


def get_all_required_keys() -> list[str]:
    """
    Get all required configuration keys.

    Returns:
        List of key names that must resolve to a value
    """
    return [key for key, schema in CONFIG_SCHEMA.items() if schema.required]


def validate_key(key: str, value: Any) -> str | None:
    """
    Validate a value against its schema.

    Args:
        key: The config key
        value: The value to validate

    Returns:
        None if valid, error message if invalid
    """
    schema = CONFIG_SCHEMA.get(key)
    if schema is None:
        return f"Unknown config key: {key}"
    return schema.validate(value)
