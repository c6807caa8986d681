"""Local-Search Refiner - pairwise swap improvement of a placement.

After the initial assignment, the refiner repeatedly looks for two attendees
in different groups whose exchange raises the combined social score of their
two groups, applies it, and scans again until no improving swap is left.

Trial swaps are evaluated with ScoringModel.swap_delta, so no group or
member list is built for a trial. The refiner works on a Placement (member
lists per group) and never touches Group objects unless asked to through
refine_groups().
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from matchmaking.models import Attendee, Group

from .errors import InvalidInputError
from .logging import MatchLogger
from .scoring import GroupFrame, ScoringModel

logger = logging.getLogger(__name__)

# Deltas at or below this are treated as float noise, not improvements
SCORE_TOLERANCE = 1e-9


@dataclass
class Placement:
    """Member lists per group index plus the frames needed to score them."""

    frames: list[GroupFrame]
    members: list[list[Attendee]]

    @classmethod
    def from_groups(cls, groups: Sequence[Group]) -> Placement:
        return cls(
            frames=[GroupFrame.from_group(group) for group in groups],
            members=[list(group.members) for group in groups],
        )

    @classmethod
    def from_assignment(cls, groups: Sequence[Group], members: Sequence[Sequence[Attendee]]) -> Placement:
        if len(groups) != len(members):
            raise InvalidInputError(f"Got member lists for {len(members)} groups, expected {len(groups)}")
        return cls(
            frames=[GroupFrame.from_group(group) for group in groups],
            members=[list(group_members) for group_members in members],
        )

    def __len__(self) -> int:
        return len(self.frames)

    def copy(self) -> Placement:
        """Structural copy: new lists, same attendee objects."""
        return Placement(frames=list(self.frames), members=[list(m) for m in self.members])

    def swap(self, group_a: int, index_a: int, group_b: int, index_b: int) -> None:
        a = self.members[group_a][index_a]
        self.members[group_a][index_a] = self.members[group_b][index_b]
        self.members[group_b][index_b] = a

    def member_ids(self) -> list[list[str]]:
        return [[attendee.id for attendee in members] for members in self.members]

    def score(self, scoring: ScoringModel) -> float:
        """Total social score over every group."""
        return sum(scoring.score_members(members, frame) for members, frame in zip(self.members, self.frames))


@dataclass(frozen=True)
class SwapCandidate:
    """A trial exchange of members[group_a][index_a] with members[group_b][index_b]."""

    group_a: int
    index_a: int
    group_b: int
    index_b: int
    delta: float


@dataclass(frozen=True)
class SwapRecord:
    """An accepted swap."""

    group_a: int
    group_b: int
    attendee_a_id: str  # moved from group_a to group_b
    attendee_b_id: str  # moved from group_b to group_a
    gain: float


def iter_swap_candidates(placement: Placement, scoring: ScoringModel) -> Iterator[SwapCandidate]:
    """
    Yield every cross-group swap in scan order.

    Group pairs (i, j) with i < j, then members of i in order, then members
    of j in order.
    """
    group_count = len(placement)
    for i in range(group_count):
        for j in range(i + 1, group_count):
            members_a = placement.members[i]
            members_b = placement.members[j]
            for index_a, a in enumerate(members_a):
                for index_b, b in enumerate(members_b):
                    delta = scoring.swap_delta(members_a, members_b, a, b, placement.frames[i], placement.frames[j])
                    yield SwapCandidate(group_a=i, index_a=index_a, group_b=j, index_b=index_b, delta=delta)


class SwapPolicy(Protocol):
    """Chooses the next swap to apply, or None when the placement is converged."""

    name: str

    def find_swap(self, placement: Placement, scoring: ScoringModel) -> SwapCandidate | None: ...


class FirstImprovementPolicy:
    """Take the first improving swap in scan order; the next scan restarts from the first group pair."""

    name = "first_improvement"

    def find_swap(self, placement: Placement, scoring: ScoringModel) -> SwapCandidate | None:
        for candidate in iter_swap_candidates(placement, scoring):
            if candidate.delta > SCORE_TOLERANCE:
                return candidate
        return None


class BestImprovementPolicy:
    """Scan every swap and take the largest improvement (first found on ties)."""

    name = "best_improvement"

    def find_swap(self, placement: Placement, scoring: ScoringModel) -> SwapCandidate | None:
        best: SwapCandidate | None = None
        for candidate in iter_swap_candidates(placement, scoring):
            if candidate.delta > SCORE_TOLERANCE and (best is None or candidate.delta > best.delta):
                best = candidate
        return best


SWAP_POLICIES: dict[str, type[FirstImprovementPolicy] | type[BestImprovementPolicy]] = {
    FirstImprovementPolicy.name: FirstImprovementPolicy,
    BestImprovementPolicy.name: BestImprovementPolicy,
}


def swap_policy_for(name: str) -> SwapPolicy:
    """Instantiate a swap policy by its configured name."""
    try:
        return SWAP_POLICIES[name]()
    except KeyError:
        raise InvalidInputError(f"Unknown swap policy '{name}'. Available: {sorted(SWAP_POLICIES)}") from None


@dataclass
class RefinementResult:
    swaps: list[SwapRecord] = field(default_factory=list)
    passes: int = 0
    converged: bool = True

    @property
    def total_gain(self) -> float:
        return sum(swap.gain for swap in self.swaps)


class LocalSearchRefiner:
    """Greedy pairwise-swap refinement over the social score."""

    def __init__(
        self,
        scoring: ScoringModel,
        policy: SwapPolicy | None = None,
        max_swaps: int | None = None,
        run_logger: MatchLogger | None = None,
    ) -> None:
        self.scoring = scoring
        self.policy = policy if policy is not None else FirstImprovementPolicy()
        self.max_swaps = max_swaps if max_swaps is not None else scoring.settings.refiner_max_swaps
        self.run_logger = run_logger

    def refine(self, placement: Placement) -> RefinementResult:
        """
        Apply improving swaps to the placement until none is left.

        The placement is modified in place. Every accepted swap strictly
        raises the total social score, so the loop terminates; max_swaps is
        a safety net on top of that.

        Returns:
            RefinementResult with the accepted swaps in order
        """
        result = RefinementResult()

        while True:
            result.passes += 1
            candidate = self.policy.find_swap(placement, self.scoring)
            if candidate is None:
                break

            if len(result.swaps) >= self.max_swaps:
                logger.warning(f"Refiner stopped after {self.max_swaps} swaps without converging")
                result.converged = False
                break

            a = placement.members[candidate.group_a][candidate.index_a]
            b = placement.members[candidate.group_b][candidate.index_b]
            placement.swap(candidate.group_a, candidate.index_a, candidate.group_b, candidate.index_b)

            record = SwapRecord(
                group_a=candidate.group_a,
                group_b=candidate.group_b,
                attendee_a_id=a.id,
                attendee_b_id=b.id,
                gain=candidate.delta,
            )
            result.swaps.append(record)
            logger.debug(
                f"Swapped {a.name} (group {candidate.group_a}) with {b.name} (group {candidate.group_b}), "
                f"gain {candidate.delta:.3f}"
            )
            if self.run_logger is not None:
                self.run_logger.log_swap(
                    {
                        "group_a": record.group_a,
                        "group_b": record.group_b,
                        "attendee_a": a.name,
                        "attendee_b": b.name,
                        "gain": round(record.gain, 6),
                    }
                )

        logger.info(
            f"Refinement ({self.policy.name}) finished: {len(result.swaps)} swaps, "
            f"{result.passes} passes, gain {result.total_gain:.3f}"
        )
        return result

    def refine_groups(self, groups: Sequence[Group]) -> RefinementResult:
        """Refine populated groups directly, rewriting their member lists."""
        placement = Placement.from_groups(groups)
        result = self.refine(placement)
        for group, members in zip(groups, placement.members, strict=True):
            group.members = members
        return result
