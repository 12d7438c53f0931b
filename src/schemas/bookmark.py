"""Pydantic schemas for bookmarks."""
from datetime import datetime

from pydantic import Field, ValidationInfo, field_validator

from schemas.base import DocumentModel
from schemas.validators import (
    normalize_tags,
    reject_null,
    validate_absolute_url,
    validate_description_length,
    validate_required_text,
    validate_title_length,
)


class BookmarkCreate(DocumentModel):
    """Draft of a new bookmark. Owner and timestamps are added by the store."""

    title: str
    url: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    ai_summary: str | None = None
    favicon: str | None = None
    category: str | None = None
    team_id: str | None = None
    is_public: bool = False

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        """Require a non-blank title within the length limit."""
        return validate_title_length(validate_required_text(v, "Title"))

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str) -> str:
        """Require an absolute URL."""
        return validate_absolute_url(v)

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str | None) -> str | None:
        """Validate description length."""
        return validate_description_length(v)

    @field_validator("tags", mode="before")
    @classmethod
    def check_tags(cls, v: list[str] | None) -> list[str]:
        """Normalize tags."""
        if v is None:
            return []
        return normalize_tags(v)


class BookmarkUpdate(DocumentModel):
    """
    Partial bookmark patch. Only fields explicitly set are written.

    Nullable fields (description, summary, favicon, team) may be cleared with
    an explicit None; the rest may be omitted but never set to None.
    """

    title: str | None = None
    url: str | None = None
    description: str | None = None
    tags: list[str] | None = None
    ai_summary: str | None = None
    favicon: str | None = None
    category: str | None = None
    team_id: str | None = None
    is_public: bool | None = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str | None) -> str:
        """Require a non-blank title within the length limit if provided."""
        reject_null(v, "Title")
        return validate_title_length(validate_required_text(v, "Title"))

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str | None) -> str:
        """Require an absolute URL if provided."""
        reject_null(v, "URL")
        return validate_absolute_url(v)

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str | None) -> str | None:
        """Validate description length if provided."""
        return validate_description_length(v)

    @field_validator("tags", mode="before")
    @classmethod
    def check_tags(cls, v: list[str] | None) -> list[str]:
        """Normalize tags if provided."""
        reject_null(v, "Tags")
        return normalize_tags(v)

    @field_validator("category", "is_public")
    @classmethod
    def check_not_null(cls, v: str | bool | None, info: ValidationInfo) -> str | bool:
        """Category and visibility can be changed but not cleared."""
        return reject_null(v, info.field_name)


class Bookmark(DocumentModel):
    """A saved link as held in the bookmark store."""

    id: str
    title: str
    url: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    ai_summary: str | None = None
    favicon: str | None = None
    category: str
    user_id: str
    team_id: str | None = None
    is_public: bool = False
    created_at: datetime
    updated_at: datetime
