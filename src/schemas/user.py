"""Pydantic schemas for identities and user profiles."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from schemas.base import DocumentModel


class Identity(BaseModel):
    """The authenticated actor as reported by the identity provider."""

    model_config = ConfigDict(frozen=True)

    uid: str
    email: str
    display_name: str | None = None


class UserProfile(DocumentModel):
    """Profile document stored at `users/<uid>`."""

    user_id: str
    email: str
    display_name: str | None = None
    photo_url: str | None = None
    created_at: datetime
    last_login: datetime


class ProfileUpdate(DocumentModel):
    """Partial profile patch."""

    display_name: str | None = None
    photo_url: str | None = None
