"""
Unit tests for the scoring model.

Defaults under test: match bonus 10, fallback multipliers 0.75/0.5/0.25,
primary +2, avoid -20, preferred +3, max reunion 2, grudge window 4 weeks.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from matchmaking.constants import DEFAULT_AFFINITY, Category
from matchmaking.engine.scoring import GroupFrame, ScoringModel
from tests.fixtures.factories import SESSION_DATE, create_attendee, create_group, create_persona, create_settings


@pytest.fixture
def scoring(settings) -> ScoringModel:
    return ScoringModel(settings)


class TestPersonaAffinity:
    """Test the tiered per-persona category score."""

    def test_exact_match_scores_full_bonus(self, scoring):
        persona = create_persona(category=Category.AMBER)
        assert scoring.persona_affinity(persona, [Category.AMBER]) == 10.0

    def test_primary_adds_multiplier(self, scoring):
        persona = create_persona(category=Category.AMBER, is_primary=True)
        assert scoring.persona_affinity(persona, [Category.AMBER]) == 12.0

    @pytest.mark.parametrize(
        ("theme", "expected"),
        [
            (Category.GARNET, 7.5),  # rank 0
            (Category.OPAL, 5.0),  # rank 1
            (Category.AVENTURINE, 2.5),  # rank 2
        ],
    )
    def test_fallback_ranks(self, scoring, theme, expected):
        persona = create_persona(category=Category.AMBER)
        assert scoring.persona_affinity(persona, [theme]) == pytest.approx(expected)

    def test_best_ranked_theme_wins(self, scoring):
        persona = create_persona(category=Category.AMBER)
        assert scoring.persona_affinity(persona, [Category.AVENTURINE, Category.GARNET]) == pytest.approx(7.5)

    def test_exact_match_beats_fallback_in_multi_theme_group(self, scoring):
        persona = create_persona(category=Category.AMBER)
        assert scoring.persona_affinity(persona, [Category.GARNET, Category.AMBER]) == 10.0

    def test_no_fallback_configured_scores_default(self):
        scoring = ScoringModel(create_settings(preferences={}))
        persona = create_persona(category=Category.AMBER)
        assert scoring.persona_affinity(persona, [Category.OPAL]) == DEFAULT_AFFINITY

    def test_no_themes_scores_default(self, scoring):
        persona = create_persona(category=Category.AMBER, is_primary=True)
        assert scoring.persona_affinity(persona, []) == DEFAULT_AFFINITY + 2.0


class TestAttendeeAffinity:
    """Test the attendee-level maximum over personas."""

    def test_zero_personas_returns_default(self, scoring):
        attendee = create_attendee("Ana")
        group = create_group(categories=[Category.AMBER])

        assert scoring.category_affinity(attendee, group) == 1.0

    def test_only_retired_personas_returns_default(self, scoring):
        attendee = create_attendee("Ana", [Category.AMBER])
        attendee.retire_persona(attendee.personas[0].id)

        assert scoring.affinity_for_categories(attendee, [Category.AMBER]) == 1.0

    def test_maximum_over_personas(self, scoring):
        # Primary OPAL persona falls back to rank 1 for AMBER (5 + 2); AMBER persona matches (10)
        attendee = create_attendee("Ana", [Category.OPAL, Category.AMBER])
        assert scoring.affinity_for_categories(attendee, [Category.AMBER]) == 10.0

    def test_max_affinity(self, scoring):
        assert scoring.max_affinity == 12.0

    def test_max_affinity_respects_large_multiplier(self):
        scoring = ScoringModel(create_settings(second_choice_multiplier=1.5))
        assert scoring.max_affinity == pytest.approx(17.0)


class TestReunionTerm:
    """Test the time-decayed reunion term."""

    def test_never_played_together_scores_maximum(self, scoring):
        a, b = create_attendee("Ana"), create_attendee("Ben")
        assert scoring.reunion_term(a, b, SESSION_DATE) == 2.0

    def test_played_this_week_scores_zero(self, scoring):
        a, b = create_attendee("Ana"), create_attendee("Ben")
        a.history[b.id] = SESSION_DATE
        assert scoring.reunion_term(a, b, SESSION_DATE) == 0.0

    def test_whole_current_week_scores_zero(self, scoring):
        a, b = create_attendee("Ana"), create_attendee("Ben")
        a.history[b.id] = SESSION_DATE - timedelta(days=6)
        assert scoring.reunion_term(a, b, SESSION_DATE) == 0.0

    def test_counts_whole_weeks_only(self, scoring):
        a, b = create_attendee("Ana"), create_attendee("Ben")
        a.history[b.id] = SESSION_DATE - timedelta(days=13)
        assert scoring.reunion_term(a, b, SESSION_DATE) == pytest.approx(0.5)

    def test_linear_inside_window(self, scoring):
        a, b = create_attendee("Ana"), create_attendee("Ben")
        a.history[b.id] = SESSION_DATE - timedelta(weeks=2)
        assert scoring.reunion_term(a, b, SESSION_DATE) == pytest.approx(1.0)

    def test_edge_of_window_scores_maximum(self, scoring):
        a, b = create_attendee("Ana"), create_attendee("Ben")
        a.history[b.id] = SESSION_DATE - timedelta(weeks=4)
        assert scoring.reunion_term(a, b, SESSION_DATE) == 2.0

    def test_outside_window_scores_maximum(self, scoring):
        a, b = create_attendee("Ana"), create_attendee("Ben")
        a.history[b.id] = SESSION_DATE - timedelta(weeks=30)
        assert scoring.reunion_term(a, b, SESSION_DATE) == 2.0

    def test_future_date_clamped_to_zero(self, scoring):
        a, b = create_attendee("Ana"), create_attendee("Ben")
        a.history[b.id] = SESSION_DATE + timedelta(days=3)
        assert scoring.reunion_term(a, b, SESSION_DATE) == 0.0

    def test_most_recent_date_from_either_side(self, scoring):
        a, b = create_attendee("Ana"), create_attendee("Ben")
        a.history[b.id] = SESSION_DATE - timedelta(weeks=20)
        b.history[a.id] = SESSION_DATE - timedelta(weeks=1)

        assert scoring.reunion_term(a, b, SESSION_DATE) == pytest.approx(0.5)
        assert scoring.reunion_term(b, a, SESSION_DATE) == pytest.approx(0.5)

    def test_zero_week_window_always_maximum(self):
        scoring = ScoringModel(create_settings(grudge_window_weeks=0))
        a, b = create_attendee("Ana"), create_attendee("Ben")
        a.history[b.id] = SESSION_DATE
        assert scoring.reunion_term(a, b, SESSION_DATE) == 2.0


class TestSocialScore:
    """Test pair, facilitator and whole-group scores."""

    def test_avoid_in_either_direction(self, scoring):
        a, b = create_attendee("Ana"), create_attendee("Ben")
        a.avoid_ids.add(b.id)  # one-directional on purpose

        assert scoring.pair_score(a, b, SESSION_DATE) == pytest.approx(-18.0)
        assert scoring.pair_score(b, a, SESSION_DATE) == pytest.approx(-18.0)

    def test_preferred_in_either_direction(self, scoring):
        a, b = create_attendee("Ana"), create_attendee("Ben")
        b.prefer(a)

        assert scoring.pair_score(a, b, SESSION_DATE) == pytest.approx(5.0)

    def test_facilitator_term(self, scoring):
        fay = create_attendee("Fay", is_facilitator=True)
        ana = create_attendee("Ana")

        assert scoring.facilitator_term(ana, fay) == 0.0
        ana.avoid_as_facilitator(fay)
        assert scoring.facilitator_term(ana, fay) == -20.0

    def test_missing_facilitator_skips_term(self, scoring):
        ana = create_attendee("Ana")
        ana.avoid_as_facilitator_ids.add("someone")
        assert scoring.facilitator_term(ana, None) == 0.0

    def test_group_social_score(self, scoring):
        members = [create_attendee(name, [Category.AMBER]) for name in ("Ana", "Ben", "Cid")]
        group = create_group(categories=[Category.AMBER], members=members)

        # 3 pairs x reunion 2 + 3 x affinity 12
        assert scoring.group_social_score(group) == pytest.approx(42.0)

    def test_group_social_score_with_all_terms(self, scoring):
        fay = create_attendee("Fay", is_facilitator=True)
        ana = create_attendee("Ana", [Category.AMBER])
        ben = create_attendee("Ben", [Category.GARNET], primary=False)
        cid = create_attendee("Cid")
        ana.avoid(ben)
        cid.prefer(ana)
        cid.avoid_as_facilitator(fay)
        group = create_group(categories=[Category.AMBER], facilitator=fay, members=[ana, ben, cid])

        # pairs: ana-ben -20+2, ana-cid 3+2, ben-cid 2
        # members: ana 12, ben 7.5 (garnet -> amber rank 0), cid 1 - 20
        expected = (-18.0 + 5.0 + 2.0) + (12.0 + 7.5 + 1.0 - 20.0)
        assert scoring.group_social_score(group) == pytest.approx(expected)

    def test_symmetric_under_member_order(self, scoring):
        fay = create_attendee("Fay", is_facilitator=True)
        members = [create_attendee(name, [category]) for name, category in zip(
            ("Ana", "Ben", "Cid", "Dee"), (Category.AMBER, Category.OPAL, Category.GARNET, Category.AMBER)
        )]
        members[0].avoid(members[2])
        members[1].prefer(members[3])
        members[3].history[members[2].id] = SESSION_DATE - timedelta(days=10)
        frame = GroupFrame(facilitator=fay, categories=(Category.AMBER,), session_date=SESSION_DATE)

        forward = scoring.score_members(members, frame)
        backward = scoring.score_members(list(reversed(members)), frame)
        shuffled = scoring.score_members([members[2], members[0], members[3], members[1]], frame)

        assert forward == pytest.approx(backward)
        assert forward == pytest.approx(shuffled)


class TestSwapDelta:
    """Test that the pure swap delta matches full recomputation."""

    def test_swap_delta_equals_recomputed_difference(self, scoring):
        fay = create_attendee("Fay", is_facilitator=True)
        gil = create_attendee("Gil", is_facilitator=True)
        ana = create_attendee("Ana", [Category.AMBER])
        ben = create_attendee("Ben", [Category.OPAL])
        cid = create_attendee("Cid", [Category.GARNET, Category.AMBER])
        dee = create_attendee("Dee", [Category.OPAL], primary=False)
        eve = create_attendee("Eve")
        ana.avoid(ben)
        dee.prefer(ana)
        cid.avoid_as_facilitator(gil)
        eve.history[ana.id] = SESSION_DATE - timedelta(weeks=1)

        frame_a = GroupFrame(facilitator=fay, categories=(Category.AMBER,), session_date=SESSION_DATE)
        frame_b = GroupFrame(facilitator=gil, categories=(Category.OPAL, Category.GARNET), session_date=SESSION_DATE)
        members_a = [ana, ben, eve]
        members_b = [cid, dee]

        before = scoring.score_members(members_a, frame_a) + scoring.score_members(members_b, frame_b)
        for out_a in members_a:
            for out_b in members_b:
                swapped_a = [out_b if m is out_a else m for m in members_a]
                swapped_b = [out_a if m is out_b else m for m in members_b]
                after = scoring.score_members(swapped_a, frame_a) + scoring.score_members(swapped_b, frame_b)

                delta = scoring.swap_delta(members_a, members_b, out_a, out_b, frame_a, frame_b)

                assert delta == pytest.approx(after - before), f"{out_a.name} <-> {out_b.name}"

    def test_swap_delta_does_not_mutate(self, scoring):
        ana, ben = create_attendee("Ana", [Category.AMBER]), create_attendee("Ben", [Category.OPAL])
        frame_a = GroupFrame(facilitator=None, categories=(Category.AMBER,), session_date=SESSION_DATE)
        frame_b = GroupFrame(facilitator=None, categories=(Category.OPAL,), session_date=SESSION_DATE)
        members_a, members_b = [ana], [ben]

        scoring.swap_delta(members_a, members_b, ana, ben, frame_a, frame_b)

        assert members_a == [ana]
        assert members_b == [ben]
