"""Pick a collection store backend from Settings."""

from __future__ import annotations

from smartlearn.core.config import Settings
from smartlearn.repos.collection_store import CollectionStore, InMemoryCollectionStore
from smartlearn.repos.redis_collection_store import RedisCollectionStore
from smartlearn.repos.sql_collection_store import SqlCollectionStore


def create_store(settings: Settings) -> CollectionStore:
    """Construct (but do not open) the configured store.

    The caller owns the lifecycle: ``await store.init()`` at startup and
    ``await store.close()`` at shutdown.
    """
    if settings.store_backend == "sql":
        return SqlCollectionStore(
            settings.database_url, echo=settings.is_dev and settings.log_level == "debug"
        )
    if settings.store_backend == "redis":
        return RedisCollectionStore(settings.redis_url)
    return InMemoryCollectionStore()
