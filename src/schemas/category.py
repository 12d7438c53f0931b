"""Pydantic schemas for bookmark categories."""
from pydantic import Field, field_validator

from schemas.base import DocumentModel
from schemas.validators import reject_null, validate_required_text


class CategoryCreate(DocumentModel):
    """Draft of a new category."""

    name: str
    team_id: str | None = None
    bookmark_ids: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        """Require a non-blank name."""
        return validate_required_text(v, "Category name")


class CategoryUpdate(DocumentModel):
    """Partial category patch."""

    name: str | None = None
    team_id: str | None = None
    bookmark_ids: list[str] | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str | None) -> str:
        """Require a non-blank name if provided."""
        reject_null(v, "Category name")
        return validate_required_text(v, "Category name")

    @field_validator("bookmark_ids")
    @classmethod
    def check_bookmark_ids(cls, v: list[str] | None) -> list[str]:
        """The bookmark list can be replaced but not cleared to null."""
        return reject_null(v, "Bookmark ids")


class Category(DocumentModel):
    """A user-defined grouping of bookmarks."""

    id: str
    name: str
    user_id: str
    team_id: str | None = None
    bookmark_ids: list[str] = Field(default_factory=list)
