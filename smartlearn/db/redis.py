"""Redis connection management.

Mirrors engine.py: nothing connects at import time.  The Redis collection
store asks for a client when it is initialized and closes it on shutdown.

WHY REDIS AS A STORE BACKEND?
------------------------------
Every collection maps naturally onto one Redis hash (field = record key,
value = JSON document), and HSETNX gives us an atomic "insert only if
absent" for free.  The trade-off is durability: Redis only survives a
restart if AOF/RDB persistence is configured on the server, so it is opt-in
via STORE_BACKEND=redis.  The default backend is the in-memory store, with
STORE_BACKEND=sql for a durable database.
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)


def create_redis_client(redis_url: str) -> aioredis.Redis:  # type: ignore[type-arg]
    """Build a pooled async client.

    ``decode_responses=True`` returns str instead of bytes; the store keeps
    records as JSON text, so no casting is needed downstream.
    """
    return aioredis.from_url(
        redis_url,
        decode_responses=True,
        max_connections=20,
    )
