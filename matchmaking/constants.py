"""Shared constants for the matchmaking engine."""

from __future__ import annotations

from enum import Enum


class Category(str, Enum):
    """Closed set of themes used by personas and groups."""

    AMBER = "AMBER"
    AVENTURINE = "AVENTURINE"
    GARNET = "GARNET"
    OPAL = "OPAL"

    @classmethod
    def parse(cls, value: str | Category) -> Category:
        """Parse a category from its name, case-insensitively.

        Raises:
            ValueError: If the name is not a known category
        """
        if isinstance(value, cls):
            return value
        name = str(value).strip().upper()
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Unknown category: '{value}'") from None

    @property
    def display_name(self) -> str:
        """Title-cased name for display (e.g. "Aventurine")."""
        return self.value.replace("_", " ").capitalize()


# Personas an attendee may have in play at once
MAX_ACTIVE_PERSONAS = 2

# Affinity used when no persona or preference applies
DEFAULT_AFFINITY = 1.0
