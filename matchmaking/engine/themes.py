"""Theme Combination Selector - pick a theme per group before placement.

Tries every ordered combination (with repetition) of categories over the
groups, scores each with the assignment cost model, and returns the cheapest.
The search space is |categories| ** groups, which is why the group count is
capped by `matchmaker.theme_search.max_groups`.

Two things keep it affordable:
- attendee-vs-category costs are computed once per call, not per combination;
- combinations that only permute themes among equal-capacity groups have the
  same optimal cost, so each equivalence class is solved once.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from itertools import product

from matchmaking.constants import Category
from matchmaking.logging_config import TRACE
from matchmaking.models import Attendee

from .assignment import AssignmentCostModel, build_slot_map, compute_group_capacities, expand_to_slots, solve_assignment
from .errors import InvalidInputError
from .scoring import ScoringModel

logger = logging.getLogger(__name__)


class ThemeCombinations:
    """Lazy, restartable sequence of theme tuples of a fixed length.

    Iterating twice yields the same combinations in the same order.
    """

    def __init__(self, categories: Sequence[Category], length: int) -> None:
        if length < 0:
            raise ValueError(f"Combination length must not be negative, got {length}")
        self.categories = tuple(categories)
        self.length = length

    def __iter__(self) -> Iterator[tuple[Category, ...]]:
        return product(self.categories, repeat=self.length)

    def __len__(self) -> int:
        return len(self.categories) ** self.length


@dataclass
class ThemeSuggestion:
    themes: list[Category] = field(default_factory=list)  # one per group, in group order
    total_cost: float = 0.0
    combinations_evaluated: int = 0
    combinations_total: int = 0


def canonical_theme_key(themes: Sequence[Category], capacities: Sequence[int]) -> tuple:
    """Key shared by theme tuples that differ only among equal-capacity groups."""
    by_capacity: dict[int, list[Category]] = defaultdict(list)
    for theme, capacity in zip(themes, capacities, strict=True):
        by_capacity[capacity].append(theme)
    return tuple(sorted((capacity, tuple(sorted(group_themes))) for capacity, group_themes in by_capacity.items()))


class ThemeCombinationSelector:
    """Exhaustive search for the cheapest theme per group."""

    def __init__(
        self,
        scoring: ScoringModel,
        categories: Sequence[Category] | None = None,
        max_groups: int | None = None,
    ) -> None:
        self.scoring = scoring
        self.cost_model = AssignmentCostModel(scoring)
        self.categories = tuple(categories) if categories is not None else tuple(Category)
        self.max_groups = max_groups if max_groups is not None else scoring.settings.theme_search_max_groups

    def select(self, attendees: Sequence[Attendee], number_of_groups: int | None = None) -> ThemeSuggestion:
        """
        Find the theme combination with the lowest best-case placement cost.

        Args:
            attendees: Candidate attendees; facilitators are never placed
            number_of_groups: Groups to theme; defaults to the number of facilitators

        Returns:
            ThemeSuggestion, empty when there is nothing to theme or place

        Raises:
            InvalidInputError: If number_of_groups exceeds the configured cap
        """
        placeable = [a for a in attendees if not a.is_facilitator]
        if number_of_groups is None:
            number_of_groups = sum(1 for a in attendees if a.is_facilitator)

        if number_of_groups <= 0 or not placeable or not self.categories:
            logger.info("Theme search skipped: no groups or no placeable attendees")
            return ThemeSuggestion()

        if number_of_groups > self.max_groups:
            raise InvalidInputError(
                f"Theme search over {number_of_groups} groups needs {len(self.categories)}^{number_of_groups} "
                f"combinations; the limit is {self.max_groups} groups"
            )

        combinations = ThemeCombinations(self.categories, number_of_groups)
        logger.info(
            f"Searching {len(combinations)} theme combinations for {number_of_groups} groups "
            f"and {len(placeable)} attendees"
        )

        capacities = compute_group_capacities(len(placeable), number_of_groups)
        slot_map = build_slot_map(capacities)
        cost_table = [self.cost_model.group_costs(attendee, [(c,) for c in self.categories]) for attendee in placeable]
        column = {category: index for index, category in enumerate(self.categories)}

        solved: dict[tuple, int] = {}
        best_themes: tuple[Category, ...] | None = None
        best_cost: int | None = None
        evaluated = 0

        for themes in combinations:
            evaluated += 1
            key = canonical_theme_key(themes, capacities)
            cost = solved.get(key)
            if cost is None:
                group_costs = [[row[column[theme]] for theme in themes] for row in cost_table]
                _, cost = solve_assignment(expand_to_slots(group_costs, slot_map))
                solved[key] = cost
                logger.log(TRACE, f"Themes {[t.value for t in themes]} cost {cost}")

            if best_cost is None or cost < best_cost:
                best_themes, best_cost = themes, cost
            if best_cost == 0:
                logger.debug(f"Zero-cost themes found after {evaluated} combinations")
                break

        if best_themes is None or best_cost is None:
            raise InvalidInputError("Theme search evaluated no combinations")
        suggestion = ThemeSuggestion(
            themes=list(best_themes),
            total_cost=self.cost_model.to_score_units(best_cost),
            combinations_evaluated=evaluated,
            combinations_total=len(combinations),
        )
        logger.info(
            f"Suggested themes {[t.display_name for t in suggestion.themes]} "
            f"(cost {suggestion.total_cost:.3f}, {len(solved)} distinct solves)"
        )
        return suggestion
