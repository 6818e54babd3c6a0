"""The domain services driven against the SQL store on a SQLite file.

Each scenario runs inside one asyncio.run() call, like the store's own
SQLite tests.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from smartlearn.repos.sql_collection_store import SqlCollectionStore
from smartlearn.services.enrollment_ledger import EnrollmentLedger
from smartlearn.services.progress_tracker import ProgressTracker

FOUR_ITEM_COURSE = {"id": "c4", "content": [{"id": f"item{i}"} for i in range(1, 5)]}


def _url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'services.db'}"


def test_four_item_course_on_sqlite(tmp_path: Path) -> None:
    async def scenario() -> None:
        store = SqlCollectionStore(_url(tmp_path))
        await store.init()
        try:
            await store.add("courses", dict(FOUR_ITEM_COURSE))
            tracker = ProgressTracker(store)

            assert (await tracker.mark_content_complete("u", "c4", "item1")).completion_percentage == 25
            assert (await tracker.mark_content_complete("u", "c4", "item2")).completion_percentage == 50
            after = await tracker.mark_content_incomplete("u", "c4", "item1")
            assert after is not None
            assert after.completed_content == ("item2",)
            assert after.completion_percentage == 25

            stored = await store.get("userProgress", "u_c4")
            assert stored is not None
            assert stored["completedContent"] == ["item2"]
            assert stored["completionPercentage"] == 25
        finally:
            await store.close()

    asyncio.run(scenario())


def test_completed_course_listing_on_sqlite(tmp_path: Path) -> None:
    async def scenario() -> None:
        store = SqlCollectionStore(_url(tmp_path))
        await store.init()
        try:
            await store.add("courses", {"id": "c1", "content": []})
            ledger = EnrollmentLedger(store)

            key = await ledger.enroll_user_in_course("u1", "c1")
            assert await ledger.enroll_user_in_course("u1", "c1") == key
            await ledger.update_enrollment_status(key, "completed")
            assert await ledger.get_user_completed_courses("u1") == ["c1"]
        finally:
            await store.close()

    asyncio.run(scenario())


def test_interleaved_completions_are_last_write_wins(tmp_path: Path) -> None:
    async def scenario() -> None:
        store = SqlCollectionStore(_url(tmp_path))
        await store.init()
        try:
            await store.add("courses", dict(FOUR_ITEM_COURSE))
            tracker = ProgressTracker(store)

            first, second = await asyncio.gather(
                tracker.mark_content_complete("u", "c4", "item1"),
                tracker.mark_content_complete("u", "c4", "item2"),
            )

            # No locking: the stored record is exactly what one writer saw,
            # so an interleaved update may be lost but nothing raises.
            stored = await tracker.get_user_progress("u", "c4")
            assert stored is not None
            assert stored.completed_content in (
                first.completed_content,
                second.completed_content,
            )
            assert stored.completion_percentage == 25 * len(stored.completed_content)
        finally:
            await store.close()

    asyncio.run(scenario())
