from __future__ import annotations

import asyncio
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import smartlearn` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from smartlearn.main import create_app  # noqa: E402
from smartlearn.repos.collection_store import InMemoryCollectionStore  # noqa: E402

REACT_COURSE = {
    "id": "course_react",
    "title": "React Fundamentals",
    "content": [{"id": "c1"}, {"id": "c2"}, {"id": "c3"}],
}


@pytest.fixture
def store() -> InMemoryCollectionStore:
    """A fresh, already-initialized in-memory store."""
    s = InMemoryCollectionStore()
    asyncio.run(s.init())
    return s


@pytest.fixture
def catalog_store(store: InMemoryCollectionStore) -> InMemoryCollectionStore:
    """Store holding one three-item course."""
    asyncio.run(store.add("courses", dict(REACT_COURSE)))
    return store


@pytest.fixture
def client(catalog_store: InMemoryCollectionStore) -> Iterator[TestClient]:
    # Entering the context runs the lifespan, which owns init/close.
    with TestClient(create_app(store=catalog_store)) as c:
        yield c
