"""
Matchmaking - assigns attendees to facilitator-led session groups.

This package contains:
- models: Domain models (Attendee, Persona, Group)
- config: Schema-validated configuration and the settings snapshot
- engine: Scoring, assignment solver, refiner and theme selection
- logging_config: Shared log line format
"""

from matchmaking.config import ConfigLoader, MatchmakingSettings
from matchmaking.constants import Category
from matchmaking.engine import (
    InvalidInputError,
    Matchmaker,
    MatchmakingError,
    MatchOutput,
    SolverError,
)
from matchmaking.models import Attendee, Group, Persona

__all__ = [
    "Attendee",
    "Category",
    "ConfigLoader",
    "Group",
    "InvalidInputError",
    "MatchOutput",
    "Matchmaker",
    "MatchmakingError",
    "MatchmakingSettings",
    "Persona",
    "SolverError",
]
