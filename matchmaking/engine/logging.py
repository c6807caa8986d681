"""
Match Logger - Logging infrastructure for one matchmaking run.

Tracks phase progress, accepted swaps and data-quality warnings.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def debug_mode_from_env() -> bool:
    """True when MATCHMAKER_LOG_LEVEL asks for debug output."""
    return os.getenv("MATCHMAKER_LOG_LEVEL", "").upper() == "DEBUG"


class MatchLogger:
    """Collects what happened during a run so callers can inspect or persist it."""

    def __init__(self, debug_mode: bool | None = None) -> None:
        self.debug_mode = debug_mode_from_env() if debug_mode is None else debug_mode
        self.data_quality_warnings: list[str] = []
        self.swaps: list[dict[str, Any]] = []
        self.progress: list[str] = []

    def log_data_quality_warning(self, warning: str) -> None:
        """Record a tolerated input problem."""
        self.data_quality_warnings.append(warning)
        logger.warning(f"[DATA QUALITY] {warning}")

    def log_swap(self, details: dict[str, Any]) -> None:
        """Record an accepted refinement swap."""
        self.swaps.append(details)
        if self.debug_mode:
            logger.debug(f"[SWAP] {details}")

    def log_progress(self, message: str) -> None:
        """Log matchmaking progress."""
        self.progress.append(message)
        if self.debug_mode:
            logger.debug(f"[MATCHMAKER] {message}")

    def get_summary(self) -> dict[str, Any]:
        """Get summary of all logged information."""
        return {
            "data_quality_warnings": self.data_quality_warnings,
            "swaps": len(self.swaps),
            "progress": self.progress,
        }

    def save_to_file(self, run_id: str | None = None, logs_dir: str | Path = "logs/matchmaker") -> str:
        """Save logs to a file and return the file path."""
        directory = Path(logs_dir)
        directory.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        run_id_suffix = f"_{run_id}" if run_id else ""
        filepath = directory / f"match_log_{timestamp}{run_id_suffix}.json"

        log_data = {
            "timestamp": datetime.now().isoformat(),
            "run_id": run_id,
            "debug_mode": self.debug_mode,
            "summary": self.get_summary(),
            "detailed_logs": {
                "data_quality_warnings": self.data_quality_warnings,
                "swaps": self.swaps,
                "progress": self.progress,
            },
        }

        with open(filepath, "w") as f:
            json.dump(log_data, f, indent=2, default=str)

        logger.info(f"Match logs saved to {filepath}")
        return str(filepath)
