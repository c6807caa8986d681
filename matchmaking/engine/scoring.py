"""Scoring Model - category affinity and social score for session groups.

Two related scores drive the engine:
1. Category affinity: how well an attendee's personas fit a group's themes.
   Used on its own by the initial assignment solver and the theme selector.
2. Social score: for a whole group, pairwise avoid/preferred/reunion terms,
   facilitator-avoid penalties, plus every member's category affinity. Used
   by the refiner.

All functions are pure. Data-quality problems (no personas, no facilitator)
fall back to safe defaults here and are reported by the pre-run checks.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from itertools import combinations

from matchmaking.config.settings import MatchmakingSettings
from matchmaking.constants import DEFAULT_AFFINITY, Category
from matchmaking.models import Attendee, Group, Persona

DAYS_PER_WEEK = 7


@dataclass(frozen=True)
class GroupFrame:
    """Everything about a group the scores need, except its members."""

    facilitator: Attendee | None
    categories: tuple[Category, ...]
    session_date: date

    @classmethod
    def from_group(cls, group: Group) -> GroupFrame:
        return cls(
            facilitator=group.facilitator,
            categories=tuple(group.categories),
            session_date=group.session_date,
        )


class ScoringModel:
    """Scores attendees against groups under one settings snapshot."""

    def __init__(self, settings: MatchmakingSettings) -> None:
        self.settings = settings

    # =========================================================================
    # CATEGORY AFFINITY
    # =========================================================================

    @property
    def max_affinity(self) -> float:
        """
        Largest affinity any single persona can earn under these settings.

        The assignment cost model subtracts affinities from this value, so
        every cost is non-negative and a primary persona with an exact theme
        match costs nothing.
        """
        s = self.settings
        best = max(
            s.category_match_bonus,
            DEFAULT_AFFINITY,
            *(s.category_match_bonus * multiplier for multiplier in s.choice_multipliers),
        )
        return best + s.primary_persona_multiplier

    def persona_affinity(self, persona: Persona, categories: Iterable[Category]) -> float:
        """
        Score one persona against a set of group themes.

        Exact theme match scores the full bonus. Otherwise the best-ranked
        theme in the persona category's fallback list scores the bonus times
        the matching choice multiplier; no usable fallback scores the default.
        Primary personas add the primary multiplier on top.
        """
        s = self.settings
        themes = set(categories)

        if persona.category in themes:
            score = s.category_match_bonus
        else:
            score = DEFAULT_AFFINITY
            multipliers = s.choice_multipliers
            for rank, fallback in enumerate(s.fallbacks_for(persona.category)[: len(multipliers)]):
                if fallback in themes:
                    score = s.category_match_bonus * multipliers[rank]
                    break

        if persona.is_primary:
            score += s.primary_persona_multiplier
        return score

    def affinity_for_categories(self, attendee: Attendee, categories: Iterable[Category]) -> float:
        """Best persona affinity for the themes; the default when there are no active personas."""
        themes = tuple(categories)
        personas = attendee.active_personas
        if not personas:
            return DEFAULT_AFFINITY
        return max(self.persona_affinity(persona, themes) for persona in personas)

    def category_affinity(self, attendee: Attendee, group: Group) -> float:
        return self.affinity_for_categories(attendee, group.categories)

    # =========================================================================
    # SOCIAL SCORE
    # =========================================================================

    def reunion_term(self, a: Attendee, b: Attendee, reference_date: date) -> float:
        """
        Time-decayed reward for putting a pair together again.

        Counted in whole weeks: 0 for a pair that shared a group within the
        last seven days, rising linearly to the maximum at the edge of the
        grudge window. Pairs outside the window, or never recorded together,
        get the maximum.
        """
        s = self.settings
        recorded = [d for d in (a.last_played_with(b.id), b.last_played_with(a.id)) if d is not None]
        if not recorded or s.grudge_window_weeks == 0:
            return s.max_reunion_bonus

        weeks_since = (reference_date - max(recorded)).days // DAYS_PER_WEEK
        if weeks_since >= s.grudge_window_weeks:
            return s.max_reunion_bonus
        if weeks_since <= 0:
            return 0.0
        return s.max_reunion_bonus * weeks_since / s.grudge_window_weeks

    def pair_score(self, a: Attendee, b: Attendee, reference_date: date) -> float:
        """Social score of one unordered pair sharing a group."""
        s = self.settings
        score = 0.0
        if b.id in a.avoid_ids or a.id in b.avoid_ids:
            score += s.avoid_penalty
        if b.id in a.preferred_partner_ids or a.id in b.preferred_partner_ids:
            score += s.preferred_partner_bonus
        score += self.reunion_term(a, b, reference_date)
        return score

    def facilitator_term(self, attendee: Attendee, facilitator: Attendee | None) -> float:
        if facilitator is None:
            return 0.0
        if facilitator.id in attendee.avoid_as_facilitator_ids:
            return self.settings.avoid_penalty
        return 0.0

    def member_score(self, attendee: Attendee, frame: GroupFrame) -> float:
        """Terms that depend on one member and the group frame only."""
        return self.facilitator_term(attendee, frame.facilitator) + self.affinity_for_categories(
            attendee, frame.categories
        )

    def score_members(self, members: Sequence[Attendee], frame: GroupFrame) -> float:
        """Full social score of a member list placed into a group frame."""
        total = 0.0
        for a, b in combinations(members, 2):
            total += self.pair_score(a, b, frame.session_date)
        for member in members:
            total += self.member_score(member, frame)
        return total

    def group_social_score(self, group: Group) -> float:
        return self.score_members(group.members, GroupFrame.from_group(group))

    def _replacement_delta(
        self,
        members: Sequence[Attendee],
        leaving: Attendee,
        joining: Attendee,
        frame: GroupFrame,
    ) -> float:
        """Score change of one group when `leaving` is replaced by `joining`."""
        delta = self.member_score(joining, frame) - self.member_score(leaving, frame)
        for member in members:
            if member.id == leaving.id:
                continue
            delta += self.pair_score(joining, member, frame.session_date)
            delta -= self.pair_score(leaving, member, frame.session_date)
        return delta

    def swap_delta(
        self,
        members_a: Sequence[Attendee],
        members_b: Sequence[Attendee],
        out_a: Attendee,
        out_b: Attendee,
        frame_a: GroupFrame,
        frame_b: GroupFrame,
    ) -> float:
        """
        Change in combined social score if out_a and out_b trade groups.

        Only the terms touching the two moving attendees are evaluated; no
        group or member list is built.

        Args:
            members_a: Current members of the first group (contains out_a)
            members_b: Current members of the second group (contains out_b)
            out_a: Attendee leaving the first group
            out_b: Attendee leaving the second group
            frame_a: Facilitator, themes and date of the first group
            frame_b: Facilitator, themes and date of the second group

        Returns:
            hypothetical score minus current score
        """
        return self._replacement_delta(members_a, out_a, out_b, frame_a) + self._replacement_delta(
            members_b, out_b, out_a, frame_b
        )
