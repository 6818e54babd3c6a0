"""SQL implementation of the CollectionStore contract.

Runs on SQLite (aiosqlite, the default: a single local database file) or
PostgreSQL (asyncpg).  Each mutation runs in its own short transaction that
is committed before the call returns, which is what makes a write durable
with respect to the medium.  ``add`` relies on the (collection, key)
primary key to reject duplicates atomically rather than checking first.
"""

from __future__ import annotations

import datetime
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from smartlearn.db.engine import Base, build_engine, build_session_factory
from smartlearn.db.tables import CollectionRow, RecordRow, StoreMetaRow
from smartlearn.repos.collection_store import (
    COLLECTIONS,
    SCHEMA_VERSION,
    BaseCollectionStore,
    NotInitialized,
    StoreUnavailable,
)

logger = logging.getLogger(__name__)

_SCHEMA_VERSION_KEY = "schema_version"


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


class SqlCollectionStore(BaseCollectionStore):
    """Satisfies the CollectionStore Protocol using SQLAlchemy (async)."""

    backend = "sql"

    def __init__(self, database_url: str, *, echo: bool = False) -> None:
        super().__init__()
        self._database_url = database_url
        self._echo = echo
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    async def _open(self) -> None:
        created = self._engine is None
        engine = self._engine or build_engine(self._database_url, echo=self._echo)
        sessions = self._sessions or build_session_factory(engine)

        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            async with sessions() as session, session.begin():
                await self._ensure_schema(session)
        except StoreUnavailable:
            if created:
                await engine.dispose()
            raise
        except (SQLAlchemyError, OSError) as exc:
            if created:
                await engine.dispose()
            logger.error(
                "Could not open SQL store at %s: %s",
                engine.url.render_as_string(hide_password=True),
                exc,
            )
            raise StoreUnavailable(f"cannot open SQL store: {exc}") from exc

        self._engine = engine
        self._sessions = sessions

    async def _ensure_schema(self, session: AsyncSession) -> None:
        meta = await session.get(StoreMetaRow, _SCHEMA_VERSION_KEY)
        if meta is None:
            session.add(StoreMetaRow(name=_SCHEMA_VERSION_KEY, value=str(SCHEMA_VERSION)))
        elif int(meta.value) > SCHEMA_VERSION:
            raise StoreUnavailable(
                f"database schema version {meta.value} is newer than "
                f"supported version {SCHEMA_VERSION}"
            )

        existing = set((await session.execute(select(CollectionRow.name))).scalars())
        now = _now()
        for name in COLLECTIONS:
            if name not in existing:
                session.add(CollectionRow(name=name, created_at=now))
                logger.debug("Created collection %s", name, extra={"collection": name})

    async def _close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._sessions = None

    def _session(self) -> AsyncSession:
        if self._sessions is None:
            raise NotInitialized("opening a session")
        return self._sessions()

    async def _insert(self, collection: str, key: str, raw: str) -> bool:
        async with self._session() as session:
            try:
                async with session.begin():
                    session.add(
                        RecordRow(collection=collection, key=key, data=raw, updated_at=_now())
                    )
            except IntegrityError:
                return False
        return True

    async def _fetch(self, collection: str, key: str) -> str | None:
        async with self._session() as session:
            row = await session.get(RecordRow, (collection, key))
            return row.data if row is not None else None

    async def _fetch_all(self, collection: str) -> list[str]:
        stmt = (
            select(RecordRow.data)
            .where(RecordRow.collection == collection)
            .order_by(RecordRow.key)
        )
        async with self._session() as session:
            return list((await session.execute(stmt)).scalars())

    async def _put(self, collection: str, key: str, raw: str) -> None:
        async with self._session() as session, session.begin():
            row = await session.get(RecordRow, (collection, key))
            if row is None:
                session.add(
                    RecordRow(collection=collection, key=key, data=raw, updated_at=_now())
                )
            else:
                row.data = raw
                row.updated_at = _now()

    async def _remove(self, collection: str, key: str) -> None:
        stmt = delete(RecordRow).where(
            RecordRow.collection == collection, RecordRow.key == key
        )
        async with self._session() as session, session.begin():
            await session.execute(stmt)

    async def _count(self, collection: str) -> int:
        stmt = (
            select(func.count())
            .select_from(RecordRow)
            .where(RecordRow.collection == collection)
        )
        async with self._session() as session:
            return int((await session.execute(stmt)).scalar_one())

    async def _clear(self, collection: str) -> None:
        stmt = delete(RecordRow).where(RecordRow.collection == collection)
        async with self._session() as session, session.begin():
            await session.execute(stmt)
