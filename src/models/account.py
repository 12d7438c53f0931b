"""Account model for identity provider credentials."""
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDv7Mixin


class Account(Base, UUIDv7Mixin, TimestampMixin):
    """
    Credential record owned by the identity provider.

    Passwords are stored hashed. The id is the opaque identity id that every
    document references as its owner.
    """

    __tablename__ = "accounts"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
