"""
Matchmaker - public entry point of the matchmaking engine.

Two-phase pipeline:
1. Initial assignment: category-optimal placement via min-cost matching.
2. Refinement: greedy pairwise swaps over the full social score.

Groups are only written in a final commit step, so a run that fails leaves
every input group exactly as it was.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, Field

from matchmaking.config.loader import ConfigLoader
from matchmaking.config.settings import MatchmakingSettings
from matchmaking.constants import Category
from matchmaking.models import Attendee, Group

from .assignment import InitialAssignmentSolver
from .feasibility import check_data_quality
from .logging import MatchLogger
from .refiner import LocalSearchRefiner, Placement, SwapPolicy, SwapRecord, swap_policy_for
from .scoring import ScoringModel
from .solution import analyze_grouping
from .themes import ThemeCombinationSelector, ThemeSuggestion

logger = logging.getLogger(__name__)


class MatchOutput(BaseModel):
    """Result of a matchmaking run."""

    groups: list[Group]
    swaps: list[SwapRecord] = Field(default_factory=list)
    initial_cost: float = 0.0  # assignment cost in score units
    stats: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    analysis: dict[str, Any] | None = None


class Matchmaker:
    """Assigns attendees to facilitator-led session groups."""

    def __init__(self, settings: MatchmakingSettings, swap_policy: SwapPolicy | None = None) -> None:
        """
        Initialize the engine with a settings snapshot.

        Args:
            settings: Immutable settings for every run of this instance
            swap_policy: Refiner swap selection; defaults to the configured policy
        """
        self.settings = settings
        self.scoring = ScoringModel(settings)
        self.solver = InitialAssignmentSolver(self.scoring)
        self.swap_policy = swap_policy if swap_policy is not None else swap_policy_for(settings.refiner_policy)

    @classmethod
    def from_loader(cls, loader: ConfigLoader, swap_policy: SwapPolicy | None = None) -> Matchmaker:
        return cls(loader.settings(), swap_policy=swap_policy)

    def match(self, groups: list[Group], attendees_by_id: Mapping[str, Attendee]) -> list[Group]:
        """
        Fill the groups with the placeable attendees.

        Args:
            groups: Groups with facilitator and themes set
            attendees_by_id: Every attendee of the session, facilitators included

        Returns:
            The same group list with member lists populated

        Raises:
            InvalidInputError: If the attendees cannot be placed
            SolverError: If the assignment solver fails
        """
        self.run(groups, attendees_by_id)
        return groups

    def run(self, groups: Sequence[Group], attendees_by_id: Mapping[str, Attendee]) -> MatchOutput:
        """Run the full pipeline and return the populated groups with diagnostics."""
        run_logger = MatchLogger()
        start_time = time.perf_counter()

        placeable = self._placeable_attendees(groups, attendees_by_id)
        if not groups or not placeable:
            logger.info(f"Nothing to match ({len(groups)} groups, {len(placeable)} placeable attendees)")
            return MatchOutput(groups=list(groups))

        logger.info(f"Matching {len(placeable)} attendees into {len(groups)} groups")
        check_data_quality(placeable, groups, self.settings, run_logger)

        run_logger.log_progress("Solving initial assignment...")
        assignment = self.solver.solve(placeable, groups)
        placement = Placement.from_assignment(groups, assignment.placement)
        initial_score = placement.score(self.scoring)
        run_logger.log_progress(
            f"Initial assignment cost {assignment.total_cost:.3f}, social score {initial_score:.3f}"
        )

        run_logger.log_progress(f"Refining with {self.swap_policy.name}...")
        refiner = LocalSearchRefiner(self.scoring, policy=self.swap_policy, run_logger=run_logger)
        refinement = refiner.refine(placement)
        final_score = placement.score(self.scoring)
        if not refinement.converged:
            run_logger.log_progress(f"Refinement hit the swap cap of {refiner.max_swaps}")

        # Commit
        for group, members in zip(groups, placement.members, strict=True):
            group.members = members
        run_logger.log_progress("Groups committed")

        elapsed = time.perf_counter() - start_time
        stats = {
            "attendees": len(placeable),
            "groups": len(groups),
            "capacities": assignment.capacities,
            "initial_cost": assignment.total_cost,
            "initial_social_score": round(initial_score, 6),
            "final_social_score": round(final_score, 6),
            "swaps": len(refinement.swaps),
            "passes": refinement.passes,
            "converged": refinement.converged,
            "swap_policy": self.swap_policy.name,
            "elapsed_seconds": round(elapsed, 4),
        }
        logger.info(
            f"Matching complete: {stats['swaps']} swaps, social score {initial_score:.3f} -> {final_score:.3f} "
            f"in {elapsed:.2f}s"
        )

        analysis = analyze_grouping(groups, self.scoring)
        analysis["run_summary"] = run_logger.get_summary()
        return MatchOutput(
            groups=list(groups),
            swaps=refinement.swaps,
            initial_cost=assignment.total_cost,
            stats=stats,
            warnings=list(run_logger.data_quality_warnings),
            analysis=analysis,
        )

    def suggest(self, attendees_by_id: Mapping[str, Attendee], number_of_groups: int | None = None) -> ThemeSuggestion:
        """Theme search with diagnostics; see ThemeCombinationSelector.select."""
        selector = ThemeCombinationSelector(self.scoring)
        return selector.select(list(attendees_by_id.values()), number_of_groups)

    def suggest_themes(
        self, attendees_by_id: Mapping[str, Attendee], number_of_groups: int | None = None
    ) -> list[Category]:
        """
        Suggest one theme per group, in group order.

        Args:
            attendees_by_id: Session attendees, facilitators included
            number_of_groups: Groups to theme; defaults to the number of facilitators

        Returns:
            Categories in group order, empty when there is nothing to theme
        """
        return self.suggest(attendees_by_id, number_of_groups).themes

    @staticmethod
    def _placeable_attendees(groups: Sequence[Group], attendees_by_id: Mapping[str, Attendee]) -> list[Attendee]:
        """Attendees who are neither flagged facilitators nor leading one of the groups."""
        facilitator_ids = {g.facilitator.id for g in groups if g.facilitator is not None}
        return [a for a in attendees_by_id.values() if not a.is_facilitator and a.id not in facilitator_ids]
