"""Redis implementation of the CollectionStore contract.

Layout (all keys share one prefix so the store can live next to other
data in the same Redis database):

  store:meta                 hash   schema_version → "1"
  store:collections          set    names created by init()
  store:c:{collection}       hash   record key → JSON document

Every primitive is a single Redis command, so each mutation is applied
atomically and acknowledged by the server before the call returns.
"""

from __future__ import annotations

import logging

from redis.exceptions import RedisError

from smartlearn.db.redis import create_redis_client
from smartlearn.repos.collection_store import (
    COLLECTIONS,
    SCHEMA_VERSION,
    BaseCollectionStore,
    StoreUnavailable,
)

logger = logging.getLogger(__name__)


class RedisCollectionStore(BaseCollectionStore):
    """Satisfies the CollectionStore Protocol using Redis hashes."""

    backend = "redis"

    _PREFIX = "store:"

    def __init__(self, redis_url: str | None = None, *, client=None) -> None:
        super().__init__()
        if redis_url is None and client is None:
            raise ValueError("RedisCollectionStore needs a redis_url or a client")
        self._redis_url = redis_url
        self._redis = client
        self._owns_client = client is None

    def _hash(self, collection: str) -> str:
        return f"{self._PREFIX}c:{collection}"

    async def _open(self) -> None:
        if self._redis is None:
            if self._redis_url is None:
                raise StoreUnavailable("no Redis URL to connect to")
            self._redis = create_redis_client(self._redis_url)

        meta_key = f"{self._PREFIX}meta"
        try:
            await self._redis.ping()
            await self._redis.hsetnx(meta_key, "schema_version", str(SCHEMA_VERSION))
            stored = await self._redis.hget(meta_key, "schema_version")
            await self._redis.sadd(f"{self._PREFIX}collections", *COLLECTIONS)
        except (RedisError, OSError) as exc:
            logger.error("Could not open Redis store: %s", exc)
            await self._release_client()
            raise StoreUnavailable(f"cannot open Redis store: {exc}") from exc

        if stored is not None and int(stored) > SCHEMA_VERSION:
            await self._release_client()
            raise StoreUnavailable(
                f"store schema version {stored} is newer than "
                f"supported version {SCHEMA_VERSION}"
            )

    async def _release_client(self) -> None:
        if self._owns_client and self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    async def _close(self) -> None:
        await self._release_client()

    async def _insert(self, collection: str, key: str, raw: str) -> bool:
        return bool(await self._redis.hsetnx(self._hash(collection), key, raw))

    async def _fetch(self, collection: str, key: str) -> str | None:
        return await self._redis.hget(self._hash(collection), key)

    async def _fetch_all(self, collection: str) -> list[str]:
        return list(await self._redis.hvals(self._hash(collection)))

    async def _put(self, collection: str, key: str, raw: str) -> None:
        await self._redis.hset(self._hash(collection), key, raw)

    async def _remove(self, collection: str, key: str) -> None:
        await self._redis.hdel(self._hash(collection), key)

    async def _count(self, collection: str) -> int:
        return int(await self._redis.hlen(self._hash(collection)))

    async def _clear(self, collection: str) -> None:
        await self._redis.delete(self._hash(collection))
