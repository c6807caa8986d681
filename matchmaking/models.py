"""
Domain models for the matchmaking engine.

Attendees, their personas and the session groups they are placed into. The
engine receives these as a snapshot for one run; only group member lists are
written by the engine.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from matchmaking.constants import MAX_ACTIVE_PERSONAS, Category


def _new_id() -> str:
    return uuid.uuid4().hex


class Persona(BaseModel):
    """A character an attendee plays, tagged with exactly one category."""

    id: str = Field(default_factory=_new_id)
    owner_id: str | None = None  # back-reference to the owning attendee
    name: str
    category: Category
    is_primary: bool = False
    is_retired: bool = False

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value: Any) -> Category:
        return Category.parse(value)

    @model_validator(mode="after")
    def _retired_is_never_primary(self) -> Persona:
        if self.is_retired:
            self.is_primary = False
        return self

    def retire(self) -> None:
        """Retire the persona; a retired persona is never primary."""
        self.is_retired = True
        self.is_primary = False


class Attendee(BaseModel):
    """A person to be placed into a session group."""

    id: str = Field(default_factory=_new_id)
    name: str
    is_facilitator: bool = False
    personas: list[Persona] = Field(default_factory=list)

    # Social graph, keyed by other attendee ids
    preferred_partner_ids: set[str] = Field(default_factory=set)
    avoid_ids: set[str] = Field(default_factory=set)
    avoid_as_facilitator_ids: set[str] = Field(default_factory=set)

    # other attendee id -> date they last shared a group
    history: dict[str, date] = Field(default_factory=dict)
    last_seen: date | None = None

    @model_validator(mode="after")
    def _check_personas(self) -> Attendee:
        for persona in self.personas:
            if persona.owner_id is None:
                persona.owner_id = self.id
        self._validate_personas(self.personas)
        return self

    @staticmethod
    def _validate_personas(personas: list[Persona]) -> None:
        active = [p for p in personas if not p.is_retired]
        if len(active) > MAX_ACTIVE_PERSONAS:
            raise ValueError(f"An attendee may have at most {MAX_ACTIVE_PERSONAS} active personas, got {len(active)}")
        primaries = [p for p in personas if p.is_primary]
        if len(primaries) > 1:
            raise ValueError(f"At most one persona may be primary, got {len(primaries)}")

    @property
    def active_personas(self) -> list[Persona]:
        """Non-retired personas in stored order."""
        return [p for p in self.personas if not p.is_retired]

    @property
    def primary_persona(self) -> Persona | None:
        """The persona flagged primary, if any."""
        return next((p for p in self.personas if p.is_primary), None)

    def has_personas(self) -> bool:
        return bool(self.active_personas)

    def has_open_persona_slot(self) -> bool:
        """True if another active persona can be added."""
        return len(self.active_personas) < MAX_ACTIVE_PERSONAS

    def get_persona(self, persona_id: str) -> Persona:
        for persona in self.personas:
            if persona.id == persona_id:
                return persona
        raise ValueError(f"Attendee {self.name} has no persona {persona_id}")

    def add_persona(self, persona: Persona) -> None:
        """
        Attach a persona to this attendee.

        Raises:
            ValueError: If the attendee already has the maximum active personas
        """
        if not persona.is_retired and not self.has_open_persona_slot():
            raise ValueError(f"{self.name} already has {MAX_ACTIVE_PERSONAS} active personas")
        persona.owner_id = self.id
        self.personas.append(persona)
        if persona.is_primary:
            self.set_primary_persona(persona.id)

    def remove_persona(self, persona_id: str) -> None:
        self.personas = [p for p in self.personas if p.id != persona_id]

    def set_primary_persona(self, persona_id: str) -> None:
        """
        Flag one persona as primary and demote any other primary persona.

        The persona list order is left untouched.

        Raises:
            ValueError: If the persona is unknown or retired
        """
        target = self.get_persona(persona_id)
        if target.is_retired:
            raise ValueError(f"Retired persona {target.name} cannot be primary")
        for persona in self.personas:
            persona.is_primary = persona is target

    def retire_persona(self, persona_id: str) -> None:
        self.get_persona(persona_id).retire()

    def avoid(self, other: Attendee) -> None:
        """Add a symmetric avoid relation between this attendee and another."""
        if other.id == self.id:
            raise ValueError("An attendee cannot avoid themselves")
        self.avoid_ids.add(other.id)
        other.avoid_ids.add(self.id)

    def unavoid(self, other: Attendee) -> None:
        """Remove the avoid relation in both directions."""
        self.avoid_ids.discard(other.id)
        other.avoid_ids.discard(self.id)

    def prefer(self, other: Attendee) -> None:
        """Mark another attendee as a preferred partner (one-directional)."""
        if other.id == self.id:
            raise ValueError("An attendee cannot prefer themselves")
        self.preferred_partner_ids.add(other.id)

    def avoid_as_facilitator(self, facilitator: Attendee) -> None:
        self.avoid_as_facilitator_ids.add(facilitator.id)

    def last_played_with(self, other_id: str) -> date | None:
        return self.history.get(other_id)

    def record_session(self, group: Group) -> None:
        """Remember the group date against every other member of the group."""
        for member in group.members:
            if member.id == self.id:
                continue
            self.history[member.id] = group.session_date
        self.last_seen = group.session_date


class Group(BaseModel):
    """A session group led by one facilitator."""

    id: str = Field(default_factory=_new_id)
    facilitator: Attendee | None = None
    categories: list[Category] = Field(default_factory=list)
    members: list[Attendee] = Field(default_factory=list)
    session_date: date = Field(default_factory=date.today)
    location: str | None = None

    @field_validator("categories", mode="before")
    @classmethod
    def _parse_categories(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return [Category.parse(item) for item in value]
        return value

    @model_validator(mode="after")
    def _check_members(self) -> Group:
        member_ids = [m.id for m in self.members]
        if len(member_ids) != len(set(member_ids)):
            raise ValueError("Group members must be unique")
        if self.facilitator is not None and self.facilitator.id in member_ids:
            raise ValueError(f"Facilitator {self.facilitator.name} cannot also be a member")
        return self

    @property
    def member_ids(self) -> list[str]:
        return [m.id for m in self.members]

    def has_member(self, attendee_id: str) -> bool:
        return any(m.id == attendee_id for m in self.members)

    def add_member(self, attendee: Attendee) -> None:
        """
        Add an attendee to the group.

        Raises:
            ValueError: If the attendee is the facilitator or already a member
        """
        if self.facilitator is not None and attendee.id == self.facilitator.id:
            raise ValueError(f"Facilitator {attendee.name} cannot also be a member")
        if self.has_member(attendee.id):
            raise ValueError(f"{attendee.name} is already a member of this group")
        self.members.append(attendee)

    def remove_member(self, attendee_id: str) -> None:
        self.members = [m for m in self.members if m.id != attendee_id]

    def clear_members(self) -> None:
        self.members = []

    def move_member_to(self, attendee: Attendee, other: Group) -> None:
        self.remove_member(attendee.id)
        other.add_member(attendee)

    def add_category(self, category: Category) -> None:
        if category not in self.categories:
            self.categories.append(category)

    def remove_category(self, category: Category) -> None:
        if category in self.categories:
            self.categories.remove(category)

    def record_history(self) -> None:
        """Record this group in every member's shared-group history."""
        for member in self.members:
            member.record_session(self)

    def to_markdown(self) -> str:
        """Render the group as a chat-ready markdown summary."""
        lines: list[str] = []
        facilitator_name = self.facilitator.name if self.facilitator is not None else "_Unassigned_"
        lines.append(f"**Facilitator:** {facilitator_name}")
        lines.append(f"**Date:** {self.session_date.strftime('%B %d, %Y')}")
        if self.location:
            lines.append(f"**Location:** {self.location}")

        themes = ", ".join(category.display_name for category in self.categories) or "_None_"
        lines.append(f"**Theme(s):** {themes}")

        lines.append(f"**Members ({len(self.members)}):**")
        if not self.members:
            lines.append("> _No attendees in this group yet._")
        else:
            for member in sorted(self.members, key=lambda m: m.name):
                lines.append(f"> • {member.name}")

        return "\n".join(lines) + "\n"
