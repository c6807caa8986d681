"""Error types raised by the matchmaking engine."""

from __future__ import annotations


class MatchmakingError(Exception):
    """Base exception for matchmaking failures."""

    pass


class InvalidInputError(MatchmakingError):
    """The run cannot proceed with the given attendees, groups or limits."""

    pass


class SolverError(MatchmakingError):
    """The assignment solver did not report an optimal solution."""

    def __init__(self, status: str, message: str | None = None):
        self.status = status
        super().__init__(message or f"Assignment solver finished with status {status}")
