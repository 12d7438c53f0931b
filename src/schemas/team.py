"""Pydantic schemas for teams and team membership."""
from datetime import datetime
from enum import StrEnum

from pydantic import Field, field_validator

from schemas.base import DocumentModel
from schemas.validators import (
    reject_null,
    validate_description_length,
    validate_required_text,
)


class MemberRole(StrEnum):
    """Role of an identity within a team."""

    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class TeamMember(DocumentModel):
    """One identity's membership in a team, with denormalized display fields."""

    user_id: str
    role: MemberRole
    email: str = ""
    name: str | None = None


class TeamCreate(DocumentModel):
    """Draft of a new team. The owner is the identity creating it."""

    name: str
    description: str | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        """Require a non-blank name."""
        return validate_required_text(v, "Team name")

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str | None) -> str | None:
        """Validate description length."""
        return validate_description_length(v)


class TeamUpdate(DocumentModel):
    """Partial team patch. Ownership cannot be changed."""

    name: str | None = None
    description: str | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str | None) -> str:
        """Require a non-blank name if provided."""
        reject_null(v, "Team name")
        return validate_required_text(v, "Team name")

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str | None) -> str | None:
        """Validate description length if provided."""
        return validate_description_length(v)


class Team(DocumentModel):
    """A shared workspace with its membership roster."""

    id: str
    name: str
    description: str | None = None
    owner_id: str
    created_at: datetime
    members: list[TeamMember] = Field(default_factory=list)

    def get_member(self, user_id: str) -> TeamMember | None:
        """Return the roster entry for an identity, if any."""
        return next((m for m in self.members if m.user_id == user_id), None)
