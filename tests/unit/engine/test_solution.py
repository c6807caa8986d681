"""
Unit tests for solution analysis helpers.
"""

from __future__ import annotations

import pytest

from matchmaking.constants import Category
from matchmaking.engine.scoring import ScoringModel
from matchmaking.engine.solution import (
    analyze_grouping,
    calculate_group_sizes,
    count_theme_matches,
    find_avoid_conflicts,
    find_facilitator_conflicts,
    find_preferred_pairs,
)
from tests.fixtures.factories import create_attendee, create_group


class TestGroupSizes:
    def test_sizes_and_spread(self):
        groups = [
            create_group(members=[create_attendee("Ana"), create_attendee("Ben"), create_attendee("Cid")]),
            create_group(members=[create_attendee("Dee")]),
        ]

        sizes = calculate_group_sizes(groups)

        assert sizes == {"sizes": [3, 1], "min": 1, "max": 3, "spread": 2}

    def test_no_groups(self):
        assert calculate_group_sizes([]) == {"sizes": [], "min": 0, "max": 0, "spread": 0}


class TestPairFinders:
    def test_avoid_conflicts_in_either_direction(self):
        ana, ben, cid = create_attendee("Ana"), create_attendee("Ben"), create_attendee("Cid")
        cid.avoid_ids.add(ana.id)
        group = create_group(members=[ana, ben, cid])

        assert find_avoid_conflicts(group) == [("Ana", "Cid")]

    def test_preferred_pairs(self):
        ana, ben, cid = create_attendee("Ana"), create_attendee("Ben"), create_attendee("Cid")
        ben.prefer(cid)
        group = create_group(members=[ana, ben, cid])

        assert find_preferred_pairs(group) == [("Ben", "Cid")]

    def test_facilitator_conflicts(self):
        fay = create_attendee("Fay", is_facilitator=True)
        ana, ben = create_attendee("Ana"), create_attendee("Ben")
        ben.avoid_as_facilitator(fay)

        assert find_facilitator_conflicts(create_group(facilitator=fay, members=[ana, ben])) == ["Ben"]
        assert find_facilitator_conflicts(create_group(members=[ana, ben])) == []

    def test_theme_matches_count_any_active_persona(self):
        ana = create_attendee("Ana", [Category.OPAL, Category.AMBER])
        ben = create_attendee("Ben", [Category.GARNET])
        cid = create_attendee("Cid")
        group = create_group(categories=[Category.AMBER], members=[ana, ben, cid])

        assert count_theme_matches(group) == 1


class TestAnalyzeGrouping:
    def test_totals(self, settings):
        scoring = ScoringModel(settings)
        ana, ben, cid, dee = (create_attendee(name, [Category.AMBER]) for name in ("Ana", "Ben", "Cid", "Dee"))
        ana.avoid(ben)
        cid.prefer(dee)
        groups = [
            create_group(categories=[Category.AMBER], members=[ana, ben]),
            create_group(categories=[Category.OPAL], members=[cid, dee]),
        ]

        analysis = analyze_grouping(groups, scoring)

        assert analysis["total_avoid_conflicts"] == 1
        assert analysis["total_preferred_pairs"] == 1
        assert analysis["theme_match_rate"] == pytest.approx(0.5)
        assert analysis["group_sizes"]["spread"] == 0
        assert [g["themes"] for g in analysis["groups"]] == [["AMBER"], ["OPAL"]]
        assert analysis["total_social_score"] == pytest.approx(
            scoring.group_social_score(groups[0]) + scoring.group_social_score(groups[1])
        )

    def test_empty_groups(self, settings):
        analysis = analyze_grouping([create_group()], ScoringModel(settings))

        assert analysis["theme_match_rate"] == 0.0
        assert analysis["groups"][0]["facilitator"] is None
        assert analysis["groups"][0]["size"] == 0
