"""Pytest fixtures for testing."""
import os

# Must be set before anything imports core.config
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["AI_SUMMARY_DELAY_SECONDS"] = "0"
os.environ["AI_CHAT_DELAY_SECONDS"] = "0"

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from core.config import get_settings  # noqa: E402
from db.document_store import DocumentStore  # noqa: E402
from db.session import build_session_factory, create_tables  # noqa: E402
from schemas.user import Identity  # noqa: E402
from services.identity_provider import IdentityProvider  # noqa: E402
from stores.bookmark_store import BookmarkStore  # noqa: E402
from stores.team_store import TeamStore  # noqa: E402
from stores.user_store import UserStore  # noqa: E402

PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def clear_settings_cache() -> None:
    """Make every test read settings from the environment above."""
    get_settings.cache_clear()


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """
    Create an in-memory SQLite engine with the schema in place.

    StaticPool keeps one connection so every session sees the same in-memory
    database; each test gets a fresh database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return build_session_factory(async_engine)


@pytest.fixture
def documents(session_factory: async_sessionmaker[AsyncSession]) -> DocumentStore:
    """Document store over the test database."""
    return DocumentStore(session_factory)


@pytest.fixture
def identity(session_factory: async_sessionmaker[AsyncSession]) -> IdentityProvider:
    """Identity provider over the test database, nobody signed in."""
    return IdentityProvider(session_factory)


@pytest.fixture
async def user_one(identity: IdentityProvider) -> Identity:
    """Account U1, left signed in."""
    return await identity.create_user("u1@example.com", PASSWORD)


@pytest.fixture
async def user_two(identity: IdentityProvider, user_one: Identity) -> Identity:
    """Account U2. U1 stays the signed-in identity."""
    created = await identity.create_user("u2@example.com", PASSWORD)
    await identity.sign_in(user_one.email, PASSWORD)
    return created


@pytest.fixture
def bookmark_store(documents: DocumentStore, identity: IdentityProvider) -> BookmarkStore:
    """Bookmark store for whoever is signed in."""
    return BookmarkStore(documents, identity)


@pytest.fixture
def team_store(documents: DocumentStore, identity: IdentityProvider) -> TeamStore:
    """Team store for whoever is signed in."""
    return TeamStore(documents, identity)


@pytest.fixture
async def user_store(
    documents: DocumentStore,
    identity: IdentityProvider,
) -> AsyncGenerator[UserStore]:
    """Identity store, not yet initialized."""
    store = UserStore(documents, identity)
    yield store
    store.close()
