"""Async SQLAlchemy engine and session factory."""
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import get_settings
from models.base import Base


def build_engine(database_url: str | None = None) -> AsyncEngine:
    """
    Create an async engine for the configured database.

    Pool sizing only applies to server databases; SQLite uses SQLAlchemy's
    default pool for the driver.
    """
    settings = get_settings()
    url = database_url or settings.database_url
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=False)
    return create_async_engine(
        url,
        echo=False,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to the given engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@lru_cache
def get_engine() -> AsyncEngine:
    """Get the process-wide engine for the configured database."""
    return build_engine()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory for the process-wide engine."""
    return build_session_factory(get_engine())


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables directly from model metadata (local and test databases)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    Yield a session that commits on success and rolls back on error.

    Every document store call runs in its own scope: one call, one unit of
    work. There are no transactions spanning several calls.
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
