"""Async SQLAlchemy engine shared by the session and menu repositories.

Nothing here connects until ``DATABASE_URL`` is set; without it every service
falls back to its in-memory repository.
"""

from __future__ import annotations

import logging

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from menu_import.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()

_ASYNC_DRIVERS = {"postgresql": "postgresql+asyncpg", "postgres": "postgresql+asyncpg"}

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def to_async_url(raw_url: str) -> URL:
    """Swap a sync Postgres driver (psycopg2, bare scheme) for asyncpg."""

    url = make_url(raw_url)
    if url.drivername in _ASYNC_DRIVERS or url.drivername.startswith("postgresql+psycopg"):
        url = url.set(drivername=_ASYNC_DRIVERS["postgresql"])
    return url


if settings.database_url:
    _engine = create_async_engine(to_async_url(settings.database_url), pool_pre_ping=True)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    logger.info("Using database storage for editor sessions and menus")


def get_session_factory() -> async_sessionmaker[AsyncSession] | None:
    """Return the async session factory, or ``None`` for in-memory storage."""

    return _session_factory


async def create_tables() -> None:
    """Create the session and menu tables when a database is configured."""

    if _engine is None:
        return
    # Table classes register on Base at import time.
    from menu_import.services import editor_session, menu_store  # noqa: F401

    async with _engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
