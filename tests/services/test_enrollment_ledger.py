"""Tests for the enrollment ledger."""

from __future__ import annotations

import asyncio

import pytest

from smartlearn.repos.collection_store import InMemoryCollectionStore, NotInitialized
from smartlearn.services.enrollment_ledger import (
    CourseNotFoundError,
    EnrollmentFailed,
    EnrollmentLedger,
    EnrollmentNotFound,
)


class _BrokenQueryStore(InMemoryCollectionStore):
    """Initialized store whose scans fail like a dropped connection."""

    async def query(self, collection, predicate):  # type: ignore[no-untyped-def]
        raise OSError("medium went away")


@pytest.fixture
def ledger(catalog_store: InMemoryCollectionStore) -> EnrollmentLedger:
    asyncio.run(catalog_store.add("courses", {"id": "course_web", "content": []}))
    return EnrollmentLedger(catalog_store)


# ---- enroll ----


def test_enroll_creates_active_enrollment(
    ledger: EnrollmentLedger, catalog_store: InMemoryCollectionStore
) -> None:
    key = asyncio.run(ledger.enroll_user_in_course("u1", "course_react"))
    record = asyncio.run(catalog_store.get("enrollments", key))
    assert record is not None
    assert record["userId"] == "u1"
    assert record["courseId"] == "course_react"
    assert record["status"] == "active"
    assert record["enrollmentDate"] > 0


def test_enroll_is_idempotent_per_pair(
    ledger: EnrollmentLedger, catalog_store: InMemoryCollectionStore
) -> None:
    async def scenario() -> tuple[str, str]:
        first = await ledger.enroll_user_in_course("u1", "course_react")
        second = await ledger.enroll_user_in_course("u1", "course_react")
        return first, second

    first, second = asyncio.run(scenario())
    assert first == second
    assert asyncio.run(catalog_store.count("enrollments")) == 1


def test_enroll_unknown_course_fails(ledger: EnrollmentLedger) -> None:
    with pytest.raises(CourseNotFoundError):
        asyncio.run(ledger.enroll_user_in_course("u1", "course_missing"))


def test_course_not_found_is_an_enrollment_failure() -> None:
    assert issubclass(CourseNotFoundError, EnrollmentFailed)


def test_enroll_before_init_wraps_not_initialized() -> None:
    ledger = EnrollmentLedger(InMemoryCollectionStore())
    with pytest.raises(EnrollmentFailed) as excinfo:
        asyncio.run(ledger.enroll_user_in_course("u1", "course_react"))
    assert isinstance(excinfo.value.__cause__, NotInitialized)


# ---- status changes ----


def test_update_status(ledger: EnrollmentLedger) -> None:
    async def scenario() -> str:
        key = await ledger.enroll_user_in_course("u1", "course_react")
        updated = await ledger.update_enrollment_status(key, "completed")
        assert updated.status == "completed"
        stored = await ledger.get_enrollment(key)
        assert stored is not None
        return stored.status

    assert asyncio.run(scenario()) == "completed"


def test_update_status_rejects_unknown_status(ledger: EnrollmentLedger) -> None:
    with pytest.raises(ValueError, match="status must be one of"):
        asyncio.run(ledger.update_enrollment_status("whatever", "paused"))


def test_update_status_of_unknown_enrollment(ledger: EnrollmentLedger) -> None:
    with pytest.raises(EnrollmentNotFound):
        asyncio.run(ledger.update_enrollment_status("ghost", "dropped"))


# ---- removal ----


def test_unenroll_removes_enrollment(ledger: EnrollmentLedger) -> None:
    async def scenario() -> str | None:
        await ledger.enroll_user_in_course("u1", "course_react")
        await ledger.unenroll_user_from_course("u1", "course_react")
        return await ledger.check_enrollment_exists("u1", "course_react")

    assert asyncio.run(scenario()) is None


def test_unenroll_when_not_enrolled(ledger: EnrollmentLedger) -> None:
    with pytest.raises(EnrollmentNotFound):
        asyncio.run(ledger.unenroll_user_from_course("u1", "course_react"))


def test_remove_unknown_enrollment_is_a_noop(ledger: EnrollmentLedger) -> None:
    asyncio.run(ledger.remove_enrollment("ghost"))


def test_reenroll_after_unenroll_gets_new_key(ledger: EnrollmentLedger) -> None:
    async def scenario() -> tuple[str, str]:
        first = await ledger.enroll_user_in_course("u1", "course_react")
        await ledger.unenroll_user_from_course("u1", "course_react")
        second = await ledger.enroll_user_in_course("u1", "course_react")
        return first, second

    first, second = asyncio.run(scenario())
    assert first != second


# ---- lookups ----


def test_user_and_course_listings(ledger: EnrollmentLedger) -> None:
    async def scenario() -> None:
        await ledger.enroll_user_in_course("u1", "course_react")
        await ledger.enroll_user_in_course("u1", "course_web")
        await ledger.enroll_user_in_course("u2", "course_react")

        mine = await ledger.get_user_enrollments("u1")
        assert sorted(e.course_id for e in mine) == ["course_react", "course_web"]

        react = await ledger.get_course_enrollments("course_react")
        assert sorted(e.user_id for e in react) == ["u1", "u2"]

    asyncio.run(scenario())


def test_completed_courses(ledger: EnrollmentLedger) -> None:
    async def scenario() -> list[str]:
        key = await ledger.enroll_user_in_course("u1", "course_react")
        await ledger.enroll_user_in_course("u1", "course_web")
        await ledger.update_enrollment_status(key, "completed")
        return await ledger.get_user_completed_courses("u1")

    assert asyncio.run(scenario()) == ["course_react"]


def test_enrollment_stats(ledger: EnrollmentLedger) -> None:
    async def scenario() -> None:
        a = await ledger.enroll_user_in_course("u1", "course_react")
        b = await ledger.enroll_user_in_course("u2", "course_react")
        await ledger.enroll_user_in_course("u2", "course_web")
        await ledger.update_enrollment_status(a, "completed")
        await ledger.update_enrollment_status(b, "dropped")

        stats = await ledger.get_enrollment_stats()
        assert stats.total == 3
        assert stats.active == 1
        assert stats.completed == 1
        assert stats.dropped == 1
        assert stats.unique_users == 2
        assert stats.unique_courses == 2

    asyncio.run(scenario())


def test_stats_on_empty_ledger(ledger: EnrollmentLedger) -> None:
    stats = asyncio.run(ledger.get_enrollment_stats())
    assert stats.total == 0
    assert stats.unique_users == 0


def test_lookups_degrade_on_storage_failure() -> None:
    store = _BrokenQueryStore()
    asyncio.run(store.init())
    ledger = EnrollmentLedger(store)

    assert asyncio.run(ledger.get_user_enrollments("u1")) == []
    assert asyncio.run(ledger.check_enrollment_exists("u1", "c1")) is None
    assert asyncio.run(ledger.get_enrollment_stats()).total == 0


def test_lookups_propagate_not_initialized() -> None:
    ledger = EnrollmentLedger(InMemoryCollectionStore())
    with pytest.raises(NotInitialized):
        asyncio.run(ledger.get_user_enrollments("u1"))
