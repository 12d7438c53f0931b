"""Document model backing the schemaless document store."""
from typing import Any

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDv7Mixin


class Document(Base, UUIDv7Mixin, TimestampMixin):
    """
    One schemaless document in a named collection.

    The payload is an arbitrary JSON object; queries filter on its top-level
    fields by equality.
    """

    __tablename__ = "documents"
    __table_args__ = (Index("ix_documents_collection_id", "collection", "id"),)

    collection: Mapped[str] = mapped_column(
        String(100),
        comment="Collection name, e.g., 'bookmarks', 'team_members'",
    )
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
