"""SQLAlchemy declarative base with common mixins."""
from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from uuid6 import uuid7


def new_id() -> str:
    """Generate a time-ordered document identifier."""
    return str(uuid7())


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class UUIDv7Mixin:
    """
    Mixin that adds a UUIDv7 string primary key.

    UUIDv7 ids sort by creation time, so "insertion order" queries can order
    by id without a separate sequence.
    """

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)


class TimestampMixin:
    """
    Mixin that adds created_at and updated_at columns.

    All timestamps are timezone-aware (stored as TIMESTAMP WITH TIME ZONE in PostgreSQL).
    These are row bookkeeping columns; document-level timestamps live inside the
    document payload.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
