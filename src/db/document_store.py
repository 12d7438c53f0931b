"""
Schemaless document store over SQLAlchemy.

Documents live in named collections and are addressed by server-assigned ids.
The API mirrors a hosted document database: equality queries on top-level
fields, create/set/patch/delete of single documents, and a server timestamp
sentinel. Every call is its own unit of work.
"""
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic_core import to_jsonable_python
from sqlalchemy import ColumnElement, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from db.session import session_scope
from models.document import Document
from services.exceptions import DocumentNotFoundError

logger = logging.getLogger(__name__)


class _ServerTimestamp:
    """Placeholder replaced with the store's clock when a document is written."""

    _instance: "_ServerTimestamp | None" = None

    def __new__(cls) -> "_ServerTimestamp":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class DocumentSnapshot:
    """A document as read from the store."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Read a top-level field."""
        return self.data.get(key, default)


def _encode(data: dict[str, Any]) -> dict[str, Any]:
    """Resolve server timestamps and convert values to JSON-compatible types."""
    now = datetime.now(UTC)
    resolved = {
        key: now if value is SERVER_TIMESTAMP else value
        for key, value in data.items()
    }
    return to_jsonable_python(resolved)


def _predicate(name: str, value: Any) -> ColumnElement[bool]:
    """Build an equality predicate on a top-level JSON field."""
    element = Document.data[name]
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return element.as_boolean() == value
    if isinstance(value, int):
        return element.as_integer() == value
    if isinstance(value, float):
        return element.as_float() == value
    if isinstance(value, str):
        return element.as_string() == value
    raise TypeError(f"Unsupported query value for '{name}': {type(value).__name__}")


class DocumentStore:
    """Async document API backed by the `documents` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def query(self, collection: str, **equals: Any) -> list[DocumentSnapshot]:
        """
        Return every document in a collection whose fields equal the given values.

        Results are in insertion order. With no predicates the whole collection
        is returned.
        """
        statement = select(Document).where(Document.collection == collection)
        for name, value in equals.items():
            statement = statement.where(_predicate(name, value))
        statement = statement.order_by(Document.id)

        async with session_scope(self._session_factory) as session:
            result = await session.execute(statement)
            rows = result.scalars().all()
            return [DocumentSnapshot(id=row.id, data=dict(row.data)) for row in rows]

    async def get(self, collection: str, document_id: str) -> DocumentSnapshot | None:
        """Return a single document, or None if it does not exist."""
        async with session_scope(self._session_factory) as session:
            row = await self._load(session, collection, document_id)
            if row is None:
                return None
            return DocumentSnapshot(id=row.id, data=dict(row.data))

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        """Create a document with a server-assigned id and return the id."""
        async with session_scope(self._session_factory) as session:
            row = Document(collection=collection, data=_encode(data))
            session.add(row)
            await session.flush()
            logger.debug("Created %s/%s", collection, row.id)
            return row.id

    async def set(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        """Create or fully overwrite the document at a known id."""
        async with session_scope(self._session_factory) as session:
            row = await self._load(session, collection, document_id)
            if row is None:
                session.add(Document(id=document_id, collection=collection, data=_encode(data)))
            else:
                row.data = _encode(data)

    async def update(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        """
        Merge the given fields into an existing document.

        Raises:
            DocumentNotFoundError: If the document does not exist.
        """
        async with session_scope(self._session_factory) as session:
            row = await self._load(session, collection, document_id)
            if row is None:
                raise DocumentNotFoundError(collection, document_id)
            # Reassign so the JSON column is flagged as modified
            row.data = {**row.data, **_encode(data)}

    async def delete(self, collection: str, document_id: str) -> None:
        """Delete a document. Deleting a missing document is not an error."""
        async with session_scope(self._session_factory) as session:
            row = await self._load(session, collection, document_id)
            if row is None:
                logger.debug("Delete of missing document %s/%s ignored", collection, document_id)
                return
            await session.delete(row)

    @staticmethod
    async def _load(
        session: AsyncSession,
        collection: str,
        document_id: str,
    ) -> Document | None:
        result = await session.execute(
            select(Document).where(
                Document.id == document_id,
                Document.collection == collection,
            ),
        )
        return result.scalar_one_or_none()
