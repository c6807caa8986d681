"""Immutable settings snapshot handed to the engine.

The loader resolves and validates raw values; the engine only ever sees this
frozen model, so configuration cannot change in the middle of a run.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from matchmaking.constants import Category

from .schema import CONFIG_SCHEMA, DEFAULT_PREFERENCES

# Settings field -> config key
SETTINGS_KEYS: dict[str, str] = {
    "category_match_bonus": "matchmaker.bonus.category_match",
    "second_choice_multiplier": "matchmaker.multiplier.second_choice",
    "third_choice_multiplier": "matchmaker.multiplier.third_choice",
    "fourth_choice_multiplier": "matchmaker.multiplier.fourth_choice",
    "primary_persona_multiplier": "matchmaker.multiplier.primary_persona",
    "avoid_penalty": "matchmaker.bonus.avoid",
    "preferred_partner_bonus": "matchmaker.bonus.preferred_partner",
    "max_reunion_bonus": "matchmaker.bonus.max_reunion",
    "grudge_window_weeks": "matchmaker.grudge_window.weeks",
    "theme_search_max_groups": "matchmaker.theme_search.max_groups",
    "refiner_max_swaps": "matchmaker.refiner.max_swaps",
    "refiner_policy": "matchmaker.refiner.policy",
    "require_personas": "matchmaker.validation.require_personas",
}


def _default(field_name: str) -> object:
    return CONFIG_SCHEMA[SETTINGS_KEYS[field_name]].default


class MatchmakingSettings(BaseModel):
    """Read-only scoring weights and search limits for one engine instance."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    category_match_bonus: float = Field(default=_default("category_match_bonus"), ge=0)
    second_choice_multiplier: float = Field(default=_default("second_choice_multiplier"), ge=0)
    third_choice_multiplier: float = Field(default=_default("third_choice_multiplier"), ge=0)
    fourth_choice_multiplier: float = Field(default=_default("fourth_choice_multiplier"), ge=0)
    primary_persona_multiplier: float = Field(default=_default("primary_persona_multiplier"), ge=0)
    avoid_penalty: float = Field(default=_default("avoid_penalty"), le=0)
    preferred_partner_bonus: float = Field(default=_default("preferred_partner_bonus"), ge=0)
    max_reunion_bonus: float = Field(default=_default("max_reunion_bonus"), ge=0)
    grudge_window_weeks: int = Field(default=_default("grudge_window_weeks"), ge=0)
    theme_search_max_groups: int = Field(default=_default("theme_search_max_groups"), ge=1)
    refiner_max_swaps: int = Field(default=_default("refiner_max_swaps"), ge=1)
    refiner_policy: Literal["first_improvement", "best_improvement"] = "first_improvement"
    require_personas: bool = _default("require_personas")  # type: ignore[assignment]

    # category -> fallback categories, best first
    preferences: dict[Category, tuple[Category, ...]] = Field(
        default_factory=lambda: {category: tuple(fallbacks) for category, fallbacks in DEFAULT_PREFERENCES.items()}
    )

    @property
    def choice_multipliers(self) -> tuple[float, float, float]:
        """Multipliers for fallback ranks 0, 1 and 2."""
        return (
            self.second_choice_multiplier,
            self.third_choice_multiplier,
            self.fourth_choice_multiplier,
        )

    def fallbacks_for(self, category: Category) -> tuple[Category, ...]:
        """Ranked fallback categories for a persona category (empty if none configured)."""
        return self.preferences.get(category, ())
