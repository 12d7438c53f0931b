"""
Tests for the document store.

Covers equality queries, server timestamps, shallow-merge updates and the
missing-document behavior of update and delete.
"""
from datetime import datetime

import pytest

from db.document_store import SERVER_TIMESTAMP, DocumentStore
from services.exceptions import DocumentNotFoundError


async def test__add__returns_id_and_document_is_readable(documents: DocumentStore) -> None:
    """Added documents get a server-assigned id and can be read back."""
    doc_id = await documents.add("bookmarks", {"title": "X", "userId": "u1"})

    snapshot = await documents.get("bookmarks", doc_id)

    assert snapshot is not None
    assert snapshot.id == doc_id
    assert snapshot.data == {"title": "X", "userId": "u1"}


async def test__add__resolves_server_timestamp(documents: DocumentStore) -> None:
    """SERVER_TIMESTAMP fields are stored as ISO-8601 timestamps."""
    doc_id = await documents.add("teams", {"name": "Eng", "createdAt": SERVER_TIMESTAMP})

    snapshot = await documents.get("teams", doc_id)

    created_at = datetime.fromisoformat(snapshot.get("createdAt"))
    assert created_at.tzinfo is not None


async def test__get__missing_returns_none(documents: DocumentStore) -> None:
    """Reading a missing document returns None rather than raising."""
    assert await documents.get("bookmarks", "does-not-exist") is None


async def test__get__is_scoped_to_collection(documents: DocumentStore) -> None:
    """A document id from one collection is not found in another."""
    doc_id = await documents.add("bookmarks", {"title": "X"})

    assert await documents.get("teams", doc_id) is None


async def test__query__filters_by_equality(documents: DocumentStore) -> None:
    """Only documents matching every predicate are returned."""
    await documents.add("team_members", {"teamId": "t1", "userId": "a", "role": "admin"})
    await documents.add("team_members", {"teamId": "t1", "userId": "b", "role": "viewer"})
    await documents.add("team_members", {"teamId": "t2", "userId": "a", "role": "editor"})

    in_t1 = await documents.query("team_members", teamId="t1")
    a_in_t1 = await documents.query("team_members", teamId="t1", userId="a")

    assert {s.get("userId") for s in in_t1} == {"a", "b"}
    assert len(a_in_t1) == 1
    assert a_in_t1[0].get("role") == "admin"


async def test__query__filters_on_boolean_fields(documents: DocumentStore) -> None:
    """Boolean predicates match JSON booleans."""
    await documents.add("bookmarks", {"title": "public", "isPublic": True})
    await documents.add("bookmarks", {"title": "private", "isPublic": False})

    results = await documents.query("bookmarks", isPublic=True)

    assert [s.get("title") for s in results] == ["public"]


async def test__query__without_predicates_returns_whole_collection(
    documents: DocumentStore,
) -> None:
    """A bare query returns every document in the collection and nothing else."""
    await documents.add("categories", {"name": "a"})
    await documents.add("categories", {"name": "b"})
    await documents.add("bookmarks", {"title": "other collection"})

    results = await documents.query("categories")

    assert sorted(s.get("name") for s in results) == ["a", "b"]


async def test__query__rejects_unsupported_value_types(documents: DocumentStore) -> None:
    """Only scalar predicates are supported."""
    with pytest.raises(TypeError):
        await documents.query("bookmarks", tags=["a"])


async def test__update__merges_fields(documents: DocumentStore) -> None:
    """Update patches the supplied fields and leaves the others alone."""
    doc_id = await documents.add("bookmarks", {"title": "Old", "url": "https://x.org"})

    await documents.update("bookmarks", doc_id, {"title": "New", "description": "d"})

    snapshot = await documents.get("bookmarks", doc_id)
    assert snapshot.data == {"title": "New", "url": "https://x.org", "description": "d"}


async def test__update__missing_document_raises(documents: DocumentStore) -> None:
    """Patching a missing document is an error."""
    with pytest.raises(DocumentNotFoundError) as exc_info:
        await documents.update("bookmarks", "nope", {"title": "x"})

    assert exc_info.value.collection == "bookmarks"
    assert exc_info.value.document_id == "nope"


async def test__set__creates_then_overwrites(documents: DocumentStore) -> None:
    """Set writes at a known id and fully replaces an existing document."""
    await documents.set("users", "uid-1", {"email": "a@example.com", "displayName": "a"})
    await documents.set("users", "uid-1", {"email": "a@example.com"})

    snapshot = await documents.get("users", "uid-1")
    assert snapshot.data == {"email": "a@example.com"}


async def test__delete__removes_document(documents: DocumentStore) -> None:
    """Deleted documents are gone."""
    doc_id = await documents.add("bookmarks", {"title": "X"})

    await documents.delete("bookmarks", doc_id)

    assert await documents.get("bookmarks", doc_id) is None


async def test__delete__missing_document_is_silent(documents: DocumentStore) -> None:
    """Deleting a missing document does not raise."""
    await documents.delete("bookmarks", "never-existed")


def test__server_timestamp__is_singleton() -> None:
    """The sentinel is a single shared object so identity checks work."""
    assert type(SERVER_TIMESTAMP)() is SERVER_TIMESTAMP
    assert repr(SERVER_TIMESTAMP) == "SERVER_TIMESTAMP"
