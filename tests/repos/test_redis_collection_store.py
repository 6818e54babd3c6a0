"""Tests for the Redis collection store.

These need a live Redis server and run only when REDIS_URL is set:

  REDIS_URL=redis://localhost:6379/15 pytest -m redis

The store's collections are cleared before each scenario, so point
REDIS_URL at a scratch database.
"""

from __future__ import annotations

import asyncio
import os

import pytest

from smartlearn.repos.collection_store import DuplicateKey, StoreUnavailable
from smartlearn.repos.redis_collection_store import RedisCollectionStore

REDIS_URL = os.environ.get("REDIS_URL", "")

needs_redis = pytest.mark.skipif(not REDIS_URL, reason="REDIS_URL not set")


async def _fresh_store() -> RedisCollectionStore:
    store = RedisCollectionStore(REDIS_URL)
    await store.init()
    for name in ("courses", "users", "enrollments", "userProgress"):
        await store.clear(name)
    return store


@pytest.mark.redis
@needs_redis
def test_crud_round_trip() -> None:
    async def scenario() -> None:
        store = await _fresh_store()
        try:
            key = await store.add("enrollments", {"userId": "u1", "courseId": "c1"})
            assert (await store.get("enrollments", key))["userId"] == "u1"
            await store.update("enrollments", {"id": key, "userId": "u1", "status": "dropped"})
            assert (await store.get("enrollments", key))["status"] == "dropped"
            await store.delete("enrollments", key)
            assert await store.get("enrollments", key) is None
        finally:
            await store.close()

    asyncio.run(scenario())


@pytest.mark.redis
@needs_redis
def test_duplicate_key_is_rejected() -> None:
    async def scenario() -> None:
        store = await _fresh_store()
        try:
            await store.add("courses", {"id": "c1"})
            with pytest.raises(DuplicateKey):
                await store.add("courses", {"id": "c1"})
            assert await store.count("courses") == 1
        finally:
            await store.close()

    asyncio.run(scenario())


@pytest.mark.redis
@needs_redis
def test_data_survives_reopen() -> None:
    async def scenario() -> None:
        first = await _fresh_store()
        await first.add("users", {"id": "u1"})
        await first.close()

        second = RedisCollectionStore(REDIS_URL)
        await second.init()
        try:
            assert await second.get("users", "u1") == {"id": "u1"}
        finally:
            await second.close()

    asyncio.run(scenario())


def test_unreachable_server_raises_store_unavailable() -> None:
    async def scenario() -> None:
        # Port 1 on loopback refuses connections.
        store = RedisCollectionStore("redis://127.0.0.1:1/0")
        with pytest.raises(StoreUnavailable):
            await store.init()
        assert store.is_initialized is False

    asyncio.run(scenario())


def test_requires_url_or_client() -> None:
    with pytest.raises(ValueError, match="redis_url or a client"):
        RedisCollectionStore()


def test_reopen_with_injected_client_does_not_need_url() -> None:
    class _Client:
        async def ping(self) -> bool:
            return True

        async def hsetnx(self, key: str, field: str, value: str) -> int:
            return 1

        async def hget(self, key: str, field: str) -> str:
            return "1"

        async def sadd(self, key: str, *members: str) -> int:
            return len(members)

    async def scenario() -> None:
        store = RedisCollectionStore(client=_Client())
        await store.init()
        await store.close()
        # The injected client is not owned, so it survives close() and is reused.
        await store.init()
        assert store.is_initialized is True

    asyncio.run(scenario())
