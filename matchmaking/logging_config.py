"""
Shared log line format for processes that embed the matchmaker.

Every line reads: 2026-01-06T14:05:52Z [source] LEVEL message

LOG_LEVEL selects the verbosity when configure_logging() is not given one:
    INFO   run summaries (default)
    DEBUG  capacities, assignment costs and accepted swaps
    TRACE  every theme combination the selector evaluates

Usage:
    from matchmaking.logging_config import configure_logging, get_logger

    configure_logging(source="matchmaker")
    logger = get_logger(__name__)
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import UTC, datetime

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_ENV_LEVELS = {"TRACE": TRACE, "DEBUG": logging.DEBUG, "INFO": logging.INFO}


def _trace(self: logging.Logger, message: object, *args: object, **kw: object) -> None:
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, **kw)  # type: ignore[arg-type]


logging.Logger.trace = _trace  # type: ignore[attr-defined]


class ISO8601Formatter(logging.Formatter):
    """Prefixes each message with a UTC second-resolution timestamp and a source tag."""

    def __init__(self, source: str = "matchmaker"):
        super().__init__()
        self.source = source

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return f"{timestamp} [{self.source}] {record.levelname} {message}"


def _resolve_level(debug: bool | None) -> int:
    """LOG_LEVEL wins; otherwise the debug flag, otherwise INFO."""
    env_level = _ENV_LEVELS.get(os.getenv("LOG_LEVEL", "").strip().upper())
    if env_level is not None and env_level != logging.INFO:
        return env_level
    return logging.DEBUG if debug else logging.INFO


def configure_logging(
    source: str = "matchmaker",
    level: int | None = None,
    debug: bool | None = None,
) -> logging.Logger:
    """
    Route all logging to stdout in the shared format.

    Args:
        source: Tag shown in brackets on every line
        level: Explicit level; LOG_LEVEL and debug are ignored when given
        debug: Use DEBUG unless LOG_LEVEL asks for something else

    Returns:
        The configured root logger
    """
    if level is None:
        level = _resolve_level(debug)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ISO8601Formatter(source=source))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # absl comes in with OR-Tools
    logging.getLogger("absl").setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Module logger; use with __name__."""
    return logging.getLogger(name)
