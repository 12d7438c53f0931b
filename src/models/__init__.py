"""SQLAlchemy models."""
from models.account import Account
from models.base import Base, TimestampMixin, UUIDv7Mixin
from models.document import Document

__all__ = ["Account", "Base", "Document", "TimestampMixin", "UUIDv7Mixin"]
