"""Solution Analysis - Pure functions for analyzing matchmaking results.

All functions are pure - they take explicit parameters and have no side
effects - so they can be used on any grouping, not only fresh engine output.
"""

from __future__ import annotations

from collections.abc import Sequence
from itertools import combinations
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from matchmaking.models import Group

    from .scoring import ScoringModel


def calculate_group_sizes(groups: Sequence[Group]) -> dict[str, Any]:
    """Calculate group size statistics.

    Returns:
        Dict with sizes by group index, min, max and spread
    """
    sizes = [len(group.members) for group in groups]
    if not sizes:
        return {"sizes": [], "min": 0, "max": 0, "spread": 0}
    return {"sizes": sizes, "min": min(sizes), "max": max(sizes), "spread": max(sizes) - min(sizes)}


def find_avoid_conflicts(group: Group) -> list[tuple[str, str]]:
    """Pairs of members (by name) placed together although one avoids the other."""
    conflicts = []
    for a, b in combinations(group.members, 2):
        if b.id in a.avoid_ids or a.id in b.avoid_ids:
            conflicts.append((a.name, b.name))
    return conflicts


def find_preferred_pairs(group: Group) -> list[tuple[str, str]]:
    """Pairs of members (by name) placed together where one prefers the other."""
    pairs = []
    for a, b in combinations(group.members, 2):
        if b.id in a.preferred_partner_ids or a.id in b.preferred_partner_ids:
            pairs.append((a.name, b.name))
    return pairs


def find_facilitator_conflicts(group: Group) -> list[str]:
    """Members who avoid this group's facilitator as facilitator."""
    if group.facilitator is None:
        return []
    return [m.name for m in group.members if group.facilitator.id in m.avoid_as_facilitator_ids]


def count_theme_matches(group: Group) -> int:
    """Members with an active persona whose category is one of the group themes."""
    themes = set(group.categories)
    return sum(1 for m in group.members if any(p.category in themes for p in m.active_personas))


def analyze_grouping(groups: Sequence[Group], scoring: ScoringModel) -> dict[str, Any]:
    """Analyze a finished grouping.

    Args:
        groups: Populated groups
        scoring: Scoring model used for the social score

    Returns:
        Dict with per-group details and totals
    """
    per_group = []
    for index, group in enumerate(groups):
        avoid_conflicts = find_avoid_conflicts(group)
        per_group.append(
            {
                "index": index,
                "facilitator": group.facilitator.name if group.facilitator is not None else None,
                "themes": [category.value for category in group.categories],
                "size": len(group.members),
                "social_score": round(scoring.group_social_score(group), 6),
                "theme_matches": count_theme_matches(group),
                "preferred_pairs": find_preferred_pairs(group),
                "avoid_conflicts": avoid_conflicts,
                "facilitator_conflicts": find_facilitator_conflicts(group),
            }
        )

    total_members = sum(g["size"] for g in per_group)
    total_matches = sum(g["theme_matches"] for g in per_group)
    return {
        "groups": per_group,
        "group_sizes": calculate_group_sizes(groups),
        "total_social_score": round(sum(g["social_score"] for g in per_group), 6),
        "theme_match_rate": total_matches / total_members if total_members else 0.0,
        "total_avoid_conflicts": sum(len(g["avoid_conflicts"]) for g in per_group),
        "total_preferred_pairs": sum(len(g["preferred_pairs"]) for g in per_group),
    }
