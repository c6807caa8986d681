"""
Pre-run data checks for the matchmaker.

Flags input problems the engine tolerates with safe defaults, so they show
up in the run log instead of silently skewing the result.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from .errors import InvalidInputError

if TYPE_CHECKING:
    from matchmaking.config.settings import MatchmakingSettings
    from matchmaking.models import Attendee, Group

    from .logging import MatchLogger

logger = logging.getLogger(__name__)


def check_data_quality(
    attendees: Sequence[Attendee],
    groups: Sequence[Group],
    settings: MatchmakingSettings,
    run_logger: MatchLogger,
) -> None:
    """Perform pre-run data checks and log warnings.

    Args:
        attendees: Placeable attendees (facilitators already removed)
        groups: Groups about to be filled
        settings: Settings snapshot for the run
        run_logger: Run logger collecting the warnings

    Raises:
        InvalidInputError: If require_personas is set and an attendee has no active persona
    """
    logger.info("=== Pre-run Data Check ===")

    # 1. Attendees without personas score the default affinity everywhere
    without_personas = [a for a in attendees if not a.has_personas()]
    if without_personas and settings.require_personas:
        names = ", ".join(sorted(a.name for a in without_personas))
        raise InvalidInputError(f"Attendees without an active persona: {names}")
    for attendee in without_personas:
        run_logger.log_data_quality_warning(
            f"{attendee.name} has no active personas; using the default category affinity"
        )

    # 2. Group frames
    for index, group in enumerate(groups):
        label = _group_label(group, index)
        if group.facilitator is None:
            run_logger.log_data_quality_warning(f"{label} has no facilitator; facilitator-avoid terms are skipped")
        if not group.categories:
            run_logger.log_data_quality_warning(f"{label} has no themes; every member scores by fallback only")
        if group.members:
            run_logger.log_data_quality_warning(
                f"{label} already has {len(group.members)} members; they will be replaced"
            )

    # 3. Capacity summary
    if groups:
        base, remainder = divmod(len(attendees), len(groups))
        logger.info(
            f"Placing {len(attendees)} attendees into {len(groups)} groups "
            f"({remainder} of size {base + 1}, {len(groups) - remainder} of size {base})"
        )


def _group_label(group: Group, index: int) -> str:
    if group.facilitator is not None:
        return f"Group {index} ({group.facilitator.name})"
    return f"Group {index}"
