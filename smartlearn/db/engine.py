"""Async SQLAlchemy engine and session factory helpers.

Nothing is created at import time: the SQL collection store builds its
own engine from the configured DATABASE_URL when it is initialized and
disposes of it on close.  The same helpers serve both dialects we run on:

- SQLite via aiosqlite (default, a single local file)
- PostgreSQL via asyncpg
"""

from __future__ import annotations

import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all table models."""


def is_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine with dialect-appropriate pool settings."""
    if is_sqlite(database_url):
        engine = create_async_engine(database_url, echo=echo)
        _enable_sqlite_foreign_keys(engine)
        return engine

    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    # SQLite ships with FK enforcement off; turn it on per connection.
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, _record) -> None:  # type: ignore[no-untyped-def]
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
