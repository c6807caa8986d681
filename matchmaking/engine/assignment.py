"""Initial Assignment Solver - category-optimal placement of attendees.

Splits attendees into near-equal group capacities, expands each group into
one slot per seat, and solves the attendee-to-slot problem as a min-cost
bipartite matching with OR-Tools' linear sum assignment.

Costs are `best - affinity`, where `best` is the attendee's own highest
reachable affinity, scaled to integers (OR-Tools requires integer arc
costs); reported totals are converted back to score units.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from ortools.graph.python import linear_sum_assignment

from matchmaking.constants import Category
from matchmaking.models import Attendee, Group

from .errors import InvalidInputError, SolverError
from .scoring import ScoringModel

logger = logging.getLogger(__name__)

# Scores are floats; arc costs must be integers
COST_SCALE = 1000


def compute_group_capacities(number_of_attendees: int, number_of_groups: int) -> list[int]:
    """
    Near-equal capacities with the remainder going to the first groups.

    Args:
        number_of_attendees: Placeable attendees (facilitators excluded)
        number_of_groups: Groups to fill

    Returns:
        Capacity per group index; the first `n % g` groups get one extra seat

    Raises:
        InvalidInputError: If attendees exist but there are no groups
    """
    if number_of_attendees < 0 or number_of_groups < 0:
        raise InvalidInputError("Attendee and group counts must not be negative")
    if number_of_groups == 0:
        if number_of_attendees > 0:
            raise InvalidInputError(f"Cannot place {number_of_attendees} attendees into zero groups")
        return []

    base, remainder = divmod(number_of_attendees, number_of_groups)
    return [base + 1 if index < remainder else base for index in range(number_of_groups)]


def build_slot_map(capacities: Sequence[int]) -> list[int]:
    """Flatten capacities into one entry per seat holding its group index."""
    return [group_index for group_index, capacity in enumerate(capacities) for _ in range(capacity)]


def expand_to_slots(group_costs: Sequence[Sequence[int]], slot_map: Sequence[int]) -> list[list[int]]:
    """Turn per-group costs (one row per attendee) into per-slot cost rows."""
    return [[row[group_index] for group_index in slot_map] for row in group_costs]


class AssignmentCostModel:
    """Integer attendee-vs-group costs derived from category affinity."""

    def __init__(self, scoring: ScoringModel) -> None:
        self.scoring = scoring
        self.max_score = scoring.max_affinity

    def cost(self, affinity: float, zero_point: float | None = None) -> int:
        """Scaled shortfall of affinity below zero_point (max_affinity when omitted)."""
        best = self.max_score if zero_point is None else zero_point
        return max(0, round((best - affinity) * COST_SCALE))

    def to_score_units(self, cost: int) -> float:
        return cost / COST_SCALE

    def best_affinity(self, attendee: Attendee) -> float:
        """Highest affinity the attendee reaches in any group; no group scores above its best single theme."""
        candidates: list[tuple[Category, ...]] = [(category,) for category in Category]
        candidates.append(())
        return max(self.scoring.affinity_for_categories(attendee, themes) for themes in candidates)

    def group_costs(self, attendee: Attendee, categories_by_group: Sequence[Sequence[Category]]) -> list[int]:
        """
        Cost of the attendee in each group, by group index.

        Each attendee's own best affinity is their zero point, so an exact
        match by any persona costs 0. Shifting a whole row by a constant
        leaves the optimal assignment unchanged.
        """
        best = self.best_affinity(attendee)
        return [
            self.cost(self.scoring.affinity_for_categories(attendee, themes), zero_point=best)
            for themes in categories_by_group
        ]

    def build_cost_matrix(
        self,
        attendees: Sequence[Attendee],
        categories_by_group: Sequence[Sequence[Category]],
        capacities: Sequence[int],
    ) -> list[list[int]]:
        """
        Build the attendee x slot cost matrix.

        Args:
            attendees: Placeable attendees, one row each
            categories_by_group: Themes of each group, by group index
            capacities: Seats per group, by group index

        Returns:
            Row per attendee, column per slot
        """
        per_group = [self.group_costs(attendee, categories_by_group) for attendee in attendees]
        return expand_to_slots(per_group, build_slot_map(capacities))


def solve_assignment(cost_matrix: Sequence[Sequence[int]]) -> tuple[list[int], int]:
    """
    Solve the min-cost attendee-to-slot matching.

    Rows are padded with zero-cost dummy attendees when there are more slots
    than attendees, so every real attendee gets exactly one slot.

    Args:
        cost_matrix: Integer costs, row per attendee and column per slot

    Returns:
        Tuple of (slot index per attendee row, total integer cost)

    Raises:
        InvalidInputError: If the matrix is ragged or attendees outnumber slots
        SolverError: If OR-Tools does not report an optimal assignment
    """
    num_rows = len(cost_matrix)
    if num_rows == 0:
        return [], 0

    num_slots = len(cost_matrix[0])
    if any(len(row) != num_slots for row in cost_matrix):
        raise InvalidInputError("Cost matrix rows must all have one entry per slot")
    if num_rows > num_slots:
        raise InvalidInputError(f"{num_rows} attendees do not fit into {num_slots} slots")

    assignment = linear_sum_assignment.SimpleLinearSumAssignment()
    for row_index in range(num_slots):
        row = cost_matrix[row_index] if row_index < num_rows else None
        for slot_index in range(num_slots):
            cost = row[slot_index] if row is not None else 0
            assignment.add_arc_with_cost(row_index, slot_index, cost)

    status = assignment.solve()
    if status != assignment.OPTIMAL:
        status_name = getattr(status, "name", str(status))
        logger.error(f"Assignment solve failed with status {status_name} ({num_rows}x{num_slots})")
        raise SolverError(status_name)

    slots = [assignment.right_mate(row_index) for row_index in range(num_rows)]
    total = sum(cost_matrix[row_index][slot] for row_index, slot in enumerate(slots))
    return slots, total


@dataclass
class AssignmentResult:
    """Outcome of an initial assignment, before anything is written to groups."""

    placement: list[list[Attendee]]  # members per group index
    total_cost: float
    capacities: list[int] = field(default_factory=list)


class InitialAssignmentSolver:
    """Places attendees into groups maximising total category affinity."""

    def __init__(self, scoring: ScoringModel) -> None:
        self.scoring = scoring
        self.cost_model = AssignmentCostModel(scoring)

    def solve(
        self,
        attendees: Sequence[Attendee],
        groups: Sequence[Group],
        capacities: Sequence[int] | None = None,
    ) -> AssignmentResult:
        """
        Compute the category-optimal placement without mutating any group.

        Args:
            attendees: Placeable attendees (no facilitators)
            groups: Groups in order; their themes drive the costs
            capacities: Seats per group; defaults to the near-equal split

        Returns:
            AssignmentResult with member lists per group index

        Raises:
            InvalidInputError: If the attendees cannot be seated
            SolverError: If the solver does not reach optimality
        """
        if capacities is None:
            capacities = compute_group_capacities(len(attendees), len(groups))
        elif len(capacities) != len(groups):
            raise InvalidInputError(f"Got {len(capacities)} capacities for {len(groups)} groups")
        capacities = list(capacities)

        placement: list[list[Attendee]] = [[] for _ in groups]
        if not attendees:
            return AssignmentResult(placement=placement, total_cost=0.0, capacities=capacities)

        logger.debug(f"Solving assignment of {len(attendees)} attendees into capacities {capacities}")

        slot_map = build_slot_map(capacities)
        cost_matrix = self.cost_model.build_cost_matrix(attendees, [g.categories for g in groups], capacities)
        slots, total = solve_assignment(cost_matrix)

        for attendee, slot in zip(attendees, slots, strict=True):
            placement[slot_map[slot]].append(attendee)

        total_cost = self.cost_model.to_score_units(total)
        logger.debug(f"Initial assignment cost {total_cost:.3f}, sizes {[len(m) for m in placement]}")
        return AssignmentResult(placement=placement, total_cost=total_cost, capacities=capacities)
