"""Tests for the collection store contract, run against the in-memory backend."""

from __future__ import annotations

import asyncio

import pytest

from smartlearn.repos.collection_store import (
    COLLECTIONS,
    CollectionStore,
    DuplicateKey,
    InMemoryCollectionStore,
    MissingKey,
    NotInitialized,
    UnknownCollection,
    decode_record,
    encode_record,
    generate_key,
)

# ---- lifecycle ----


def test_operations_before_init_raise_not_initialized() -> None:
    s = InMemoryCollectionStore()

    async def scenario() -> None:
        with pytest.raises(NotInitialized, match="before get"):
            await s.get("courses", "x")
        with pytest.raises(NotInitialized):
            await s.add("courses", {"title": "t"})
        with pytest.raises(NotInitialized):
            await s.query("courses", lambda _r: True)

    asyncio.run(scenario())
    assert s.is_initialized is False


def test_init_is_idempotent(store: InMemoryCollectionStore) -> None:
    async def scenario() -> None:
        await store.add("courses", {"id": "c1"})
        await store.init()
        assert await store.get("courses", "c1") == {"id": "c1"}

    asyncio.run(scenario())


def test_close_then_reinit_keeps_data(store: InMemoryCollectionStore) -> None:
    async def scenario() -> None:
        await store.add("users", {"id": "u1", "name": "Ada"})
        await store.close()
        assert store.is_initialized is False
        with pytest.raises(NotInitialized):
            await store.get("users", "u1")
        await store.init()
        assert await store.get("users", "u1") == {"id": "u1", "name": "Ada"}

    asyncio.run(scenario())


def test_close_without_init_is_a_noop() -> None:
    asyncio.run(InMemoryCollectionStore().close())


def test_every_collection_exists_after_init(store: InMemoryCollectionStore) -> None:
    async def scenario() -> None:
        for name in COLLECTIONS:
            assert await store.get_all(name) == []

    asyncio.run(scenario())


def test_memory_store_satisfies_protocol() -> None:
    assert isinstance(InMemoryCollectionStore(), CollectionStore)


# ---- add ----


def test_add_generates_key_when_absent(store: InMemoryCollectionStore) -> None:
    async def scenario() -> None:
        key = await store.add("enrollments", {"userId": "u1", "courseId": "c1"})
        assert key
        record = await store.get("enrollments", key)
        assert record == {"id": key, "userId": "u1", "courseId": "c1"}

    asyncio.run(scenario())


def test_add_keeps_explicit_key(store: InMemoryCollectionStore) -> None:
    key = asyncio.run(store.add("courses", {"id": "course_x", "title": "X"}))
    assert key == "course_x"


def test_add_rejects_duplicate_key(store: InMemoryCollectionStore) -> None:
    async def scenario() -> None:
        await store.add("courses", {"id": "c1", "title": "first"})
        with pytest.raises(DuplicateKey) as excinfo:
            await store.add("courses", {"id": "c1", "title": "second"})
        assert excinfo.value.key == "c1"
        assert (await store.get("courses", "c1"))["title"] == "first"

    asyncio.run(scenario())


def test_generated_keys_are_unique(store: InMemoryCollectionStore) -> None:
    async def scenario() -> set[str]:
        return {await store.add("quizResults", {"score": i}) for i in range(1000)}

    assert len(asyncio.run(scenario())) == 1000


def test_generate_key_is_timestamp_plus_suffix() -> None:
    key = generate_key()
    assert key[:13].isdigit()
    assert len(key) == 13 + 9
    assert key[13:].isalnum()


# ---- unknown collection / missing key ----


def test_unknown_collection_is_rejected(store: InMemoryCollectionStore) -> None:
    with pytest.raises(UnknownCollection):
        asyncio.run(store.get_all("certificates"))


def test_update_requires_key(store: InMemoryCollectionStore) -> None:
    with pytest.raises(MissingKey):
        asyncio.run(store.update("courses", {"title": "no id"}))


# ---- get / update / delete ----


def test_get_absent_returns_none(store: InMemoryCollectionStore) -> None:
    assert asyncio.run(store.get("courses", "nope")) is None


def test_update_upserts_and_last_write_wins(store: InMemoryCollectionStore) -> None:
    async def scenario() -> None:
        await store.update("userProgress", {"id": "u1_c1", "completedContent": ["a"]})
        await store.update("userProgress", {"id": "u1_c1", "completedContent": ["a", "b"]})
        assert await store.get("userProgress", "u1_c1") == {
            "id": "u1_c1",
            "completedContent": ["a", "b"],
        }
        assert await store.count("userProgress") == 1

    asyncio.run(scenario())


def test_delete_absent_key_is_a_noop(store: InMemoryCollectionStore) -> None:
    async def scenario() -> None:
        await store.add("users", {"id": "u1"})
        await store.delete("users", "ghost")
        await store.delete("users", "u1")
        await store.delete("users", "u1")
        assert await store.get("users", "u1") is None

    asyncio.run(scenario())


# ---- copy semantics ----


def test_returned_records_are_independent_copies(store: InMemoryCollectionStore) -> None:
    async def scenario() -> None:
        original = {"id": "c1", "content": [{"id": "x"}]}
        await store.add("courses", original)
        original["content"].append({"id": "y"})

        first = await store.get("courses", "c1")
        assert first is not None
        first["content"].clear()

        again = await store.get("courses", "c1")
        assert again == {"id": "c1", "content": [{"id": "x"}]}

    asyncio.run(scenario())


def test_add_does_not_mutate_callers_record(store: InMemoryCollectionStore) -> None:
    record = {"title": "no key yet"}
    asyncio.run(store.add("courses", record))
    assert record == {"title": "no key yet"}


def test_unserializable_record_is_rejected(store: InMemoryCollectionStore) -> None:
    with pytest.raises(TypeError):
        asyncio.run(store.add("courses", {"id": "c1", "when": object()}))


# ---- query / count / clear ----


def test_query_filters_with_predicate(store: InMemoryCollectionStore) -> None:
    async def scenario() -> None:
        await store.add("enrollments", {"userId": "u1", "courseId": "a"})
        await store.add("enrollments", {"userId": "u2", "courseId": "a"})
        await store.add("enrollments", {"userId": "u1", "courseId": "b"})
        mine = await store.query("enrollments", lambda r: r["userId"] == "u1")
        assert sorted(r["courseId"] for r in mine) == ["a", "b"]

    asyncio.run(scenario())


def test_count_and_clear(store: InMemoryCollectionStore) -> None:
    async def scenario() -> None:
        for i in range(3):
            await store.add("users", {"id": f"u{i}"})
        assert await store.count("users") == 3
        await store.clear("users")
        assert await store.count("users") == 0
        assert await store.get_all("users") == []

    asyncio.run(scenario())


def test_encode_is_canonical() -> None:
    assert encode_record({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'
    assert decode_record('{"a":[1,2],"b":1}') == {"a": [1, 2], "b": 1}
