"""Collection store: keyed, schema-initialized record collections.

A collection is a named set of JSON-shaped records, each identified by a
unique string key kept in the record's ``id`` field (the equivalent of an
object store with ``keyPath: "id"``).  The schema is a fixed list of
collections; ``init()`` creates whichever are missing and is safe to call
again on every startup.

THE CONTRACT
-------------
  init()                    open the medium, create missing collections
  add(collection, record)   insert; generate a key if the record has none
  get(collection, key)      record or None (absent is not an error)
  get_all(collection)       every record, stable order within one call
  update(collection, rec)   upsert by key (last write wins)
  delete(collection, key)   remove; absent key is a no-op
  query(collection, pred)   full scan of get_all() + filter

Every operation other than ``init()`` raises NotInitialized until ``init()``
has succeeded.  Mutations are committed to the medium before they return.

Records cross the boundary as JSON: the store serializes on the way in and
deserializes on the way out, so callers always get an independent copy and
a record that cannot be JSON-encoded is rejected at write time in every
backend alike.

BACKENDS
---------
  InMemoryCollectionStore   (this module)          tests, ephemeral runs
  SqlCollectionStore        (sql_collection_store) SQLite / PostgreSQL
  RedisCollectionStore      (redis_collection_store) one hash per collection
"""

from __future__ import annotations

import json
import logging
import secrets
import string
import time
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from smartlearn.core.metrics import observe_store_operation

logger = logging.getLogger(__name__)

Record = dict[str, Any]
Predicate = Callable[[Record], bool]

SCHEMA_VERSION = 1

COLLECTIONS: tuple[str, ...] = (
    "courses",
    "users",
    "enrollments",
    "userProgress",
    "quizResults",
    "quizAnswers",
    "quizAnalytics",
    "courseRatings",
)

KEY_FIELD = "id"

# A generated key collides only if two adds land in the same millisecond
# AND draw the same 9-char suffix; the retry bound is never reached in
# practice but keeps add() from looping forever on a broken medium.
_MAX_KEY_ATTEMPTS = 5
_KEY_ALPHABET = string.ascii_lowercase + string.digits


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class StoreError(Exception):
    """Base class for collection store failures."""


class StoreUnavailable(StoreError):
    """The backing medium could not be opened."""


class NotInitialized(StoreError):
    """An operation was attempted before init() succeeded."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"store not initialized (call init() before {operation})")
        self.operation = operation


class DuplicateKey(StoreError):
    def __init__(self, collection: str, key: str) -> None:
        super().__init__(f"key {key!r} already exists in {collection!r}")
        self.collection = collection
        self.key = key


class UnknownCollection(StoreError):
    def __init__(self, collection: str) -> None:
        super().__init__(f"unknown collection {collection!r}")
        self.collection = collection


class MissingKey(StoreError):
    def __init__(self, collection: str) -> None:
        super().__init__(f"record for {collection!r} has no {KEY_FIELD!r}")
        self.collection = collection


# ---------------------------------------------------------------------------
# Key generation
# ---------------------------------------------------------------------------


def generate_key() -> str:
    """Millisecond timestamp followed by a random base-36 suffix.

    Keys are opaque: callers must not parse them.
    """
    suffix = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(9))
    return f"{time.time_ns() // 1_000_000}{suffix}"


def encode_record(record: Record) -> str:
    return json.dumps(record, separators=(",", ":"), sort_keys=True)


def decode_record(raw: str) -> Record:
    return json.loads(raw)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class CollectionStore(Protocol):
    backend: str

    @property
    def is_initialized(self) -> bool: ...

    async def init(self) -> None: ...
    async def close(self) -> None: ...
    async def add(self, collection: str, record: Record) -> str: ...
    async def get(self, collection: str, key: str) -> Record | None: ...
    async def get_all(self, collection: str) -> list[Record]: ...
    async def update(self, collection: str, record: Record) -> None: ...
    async def delete(self, collection: str, key: str) -> None: ...
    async def query(self, collection: str, predicate: Predicate) -> list[Record]: ...
    async def count(self, collection: str) -> int: ...
    async def clear(self, collection: str) -> None: ...


# ---------------------------------------------------------------------------
# Shared front half of every backend
# ---------------------------------------------------------------------------


class BaseCollectionStore:
    """Validation, key generation and metrics shared by all backends.

    Subclasses implement the medium-specific primitives:

      _open()                       create/open the medium and collections
      _close()                      release it
      _insert(c, key, raw) -> bool  insert only if absent; False on clash
      _fetch(c, key) -> str | None
      _fetch_all(c) -> list[str]
      _put(c, key, raw)             insert or replace
      _remove(c, key)
      _count(c) -> int
      _clear(c)

    ``raw`` is the encoded JSON text of the record.
    """

    backend = "base"

    def __init__(self) -> None:
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # --- lifecycle ---

    async def init(self) -> None:
        with observe_store_operation(self.backend, "init"):
            await self._open()
        if not self._initialized:
            logger.info(
                "Collection store ready  backend=%s schema_version=%d collections=%d",
                self.backend,
                SCHEMA_VERSION,
                len(COLLECTIONS),
                extra={"backend": self.backend},
            )
        self._initialized = True

    async def close(self) -> None:
        if not self._initialized:
            return
        self._initialized = False
        await self._close()
        logger.info("Collection store closed  backend=%s", self.backend)

    # --- CRUD ---

    async def add(self, collection: str, record: Record) -> str:
        self._check(collection, "add")
        data = dict(record)
        explicit = data.get(KEY_FIELD)

        with observe_store_operation(self.backend, "add"):
            if explicit:
                key = str(explicit)
                data[KEY_FIELD] = key
                if not await self._insert(collection, key, encode_record(data)):
                    logger.warning(
                        "Rejected duplicate key %s in %s",
                        key,
                        collection,
                        extra={"collection": collection, "key": key},
                    )
                    raise DuplicateKey(collection, key)
                return key

            for _ in range(_MAX_KEY_ATTEMPTS):
                key = generate_key()
                data[KEY_FIELD] = key
                if await self._insert(collection, key, encode_record(data)):
                    return key
            raise StoreError(f"could not generate a unique key in {collection!r}")

    async def get(self, collection: str, key: str) -> Record | None:
        self._check(collection, "get")
        with observe_store_operation(self.backend, "get"):
            raw = await self._fetch(collection, key)
        return decode_record(raw) if raw is not None else None

    async def get_all(self, collection: str) -> list[Record]:
        self._check(collection, "get_all")
        with observe_store_operation(self.backend, "get_all"):
            rows = await self._fetch_all(collection)
        return [decode_record(raw) for raw in rows]

    async def update(self, collection: str, record: Record) -> None:
        self._check(collection, "update")
        key = record.get(KEY_FIELD)
        if not key:
            raise MissingKey(collection)
        data = dict(record)
        data[KEY_FIELD] = str(key)
        with observe_store_operation(self.backend, "update"):
            await self._put(collection, str(key), encode_record(data))

    async def delete(self, collection: str, key: str) -> None:
        self._check(collection, "delete")
        with observe_store_operation(self.backend, "delete"):
            await self._remove(collection, key)

    async def query(self, collection: str, predicate: Predicate) -> list[Record]:
        # Full scan: collections are small, so no secondary indexes.
        return [r for r in await self.get_all(collection) if predicate(r)]

    async def count(self, collection: str) -> int:
        self._check(collection, "count")
        with observe_store_operation(self.backend, "count"):
            return await self._count(collection)

    async def clear(self, collection: str) -> None:
        self._check(collection, "clear")
        with observe_store_operation(self.backend, "clear"):
            await self._clear(collection)

    # --- helpers ---

    def _check(self, collection: str, operation: str) -> None:
        if not self._initialized:
            raise NotInitialized(operation)
        if collection not in COLLECTIONS:
            raise UnknownCollection(collection)

    # --- primitives (overridden by backends) ---

    async def _open(self) -> None:
        raise NotImplementedError

    async def _close(self) -> None:
        raise NotImplementedError

    async def _insert(self, collection: str, key: str, raw: str) -> bool:
        raise NotImplementedError

    async def _fetch(self, collection: str, key: str) -> str | None:
        raise NotImplementedError

    async def _fetch_all(self, collection: str) -> list[str]:
        raise NotImplementedError

    async def _put(self, collection: str, key: str, raw: str) -> None:
        raise NotImplementedError

    async def _remove(self, collection: str, key: str) -> None:
        raise NotImplementedError

    async def _count(self, collection: str) -> int:
        return len(await self._fetch_all(collection))

    async def _clear(self, collection: str) -> None:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class InMemoryCollectionStore(BaseCollectionStore):
    """Process-local backend for tests and throwaway runs.

    The data outlives close(): closing only drops the initialized flag, so
    a later init() sees the same records, the way a reopened database file
    would.
    """

    backend = "memory"

    def __init__(self) -> None:
        super().__init__()
        self._collections: dict[str, dict[str, str]] = {}

    async def _open(self) -> None:
        for name in COLLECTIONS:
            self._collections.setdefault(name, {})

    async def _close(self) -> None:
        return None

    async def _insert(self, collection: str, key: str, raw: str) -> bool:
        records = self._collections[collection]
        if key in records:
            return False
        records[key] = raw
        return True

    async def _fetch(self, collection: str, key: str) -> str | None:
        return self._collections[collection].get(key)

    async def _fetch_all(self, collection: str) -> list[str]:
        return list(self._collections[collection].values())

    async def _put(self, collection: str, key: str, raw: str) -> None:
        self._collections[collection][key] = raw

    async def _remove(self, collection: str, key: str) -> None:
        self._collections[collection].pop(key, None)

    async def _count(self, collection: str) -> int:
        return len(self._collections[collection])

    async def _clear(self, collection: str) -> None:
        self._collections[collection].clear()
