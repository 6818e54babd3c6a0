from __future__ import annotations

import asyncio

from smartlearn.repos.collection_store import COLLECTIONS, InMemoryCollectionStore
from smartlearn.services.seed_data import SEED_COURSES, SEED_ENROLLMENTS, SEED_USERS
from smartlearn.services.seeder import DatabaseSeeder


def test_seeds_empty_store(store: InMemoryCollectionStore) -> None:
    report = asyncio.run(DatabaseSeeder(store).check_and_seed())
    assert report.skipped is False
    assert report.seeded == {
        "courses": len(SEED_COURSES),
        "users": len(SEED_USERS),
        "enrollments": len(SEED_ENROLLMENTS),
    }
    assert asyncio.run(store.count("courses")) == len(SEED_COURSES)


def test_seeding_twice_adds_nothing(store: InMemoryCollectionStore) -> None:
    seeder = DatabaseSeeder(store)
    asyncio.run(seeder.check_and_seed())
    again = asyncio.run(seeder.check_and_seed())
    assert again.total == 0
    assert asyncio.run(store.count("enrollments")) == len(SEED_ENROLLMENTS)


def test_populated_collection_is_left_alone(store: InMemoryCollectionStore) -> None:
    asyncio.run(store.add("courses", {"id": "mine", "content": []}))
    report = asyncio.run(DatabaseSeeder(store).check_and_seed())
    assert report.seeded["courses"] == 0
    assert asyncio.run(store.count("courses")) == 1
    assert asyncio.run(store.get("courses", "course_react_fundamentals")) is None


def test_enrollments_need_users_and_courses(store: InMemoryCollectionStore) -> None:
    seeder = DatabaseSeeder(store)

    async def scenario() -> int:
        await seeder.clear_database()
        return await seeder._seed_enrollments()

    assert asyncio.run(scenario()) == 0


def test_sample_progress_uses_course_length(store: InMemoryCollectionStore) -> None:
    seeder = DatabaseSeeder(store)

    async def scenario() -> dict | None:
        await seeder.check_and_seed()
        added = await seeder.seed_sample_progress()
        assert added == 3
        return await store.get("userProgress", "student_demo_course_react_fundamentals")

    record = asyncio.run(scenario())
    assert record is not None
    assert record["completedContent"] == ["content_1"]
    assert record["completionPercentage"] == 33


def test_clear_database_reports_counts(store: InMemoryCollectionStore) -> None:
    seeder = DatabaseSeeder(store)
    asyncio.run(seeder.check_and_seed())
    cleared = asyncio.run(seeder.clear_database())
    assert set(cleared) == set(COLLECTIONS)
    assert cleared["users"] == len(SEED_USERS)
    assert asyncio.run(store.count("users")) == 0


def test_reentrant_seeding_is_skipped(store: InMemoryCollectionStore) -> None:
    seeder = DatabaseSeeder(store)
    seeder._is_seeding = True
    report = asyncio.run(seeder.check_and_seed())
    assert report.skipped is True
    assert asyncio.run(store.count("courses")) == 0
