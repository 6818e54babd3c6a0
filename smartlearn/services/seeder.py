"""Demo-data seeding for local development.

Seeding is additive and idempotent per collection: a collection that
already holds records is left alone, so running the seeder on every
startup never duplicates or overwrites real data.  A single bad record
is logged and skipped rather than aborting the whole run.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from typing import Any

from smartlearn.models.course import content_item_count
from smartlearn.models.enrollment import Enrollment
from smartlearn.models.progress import UserProgress
from smartlearn.repos.collection_store import COLLECTIONS, CollectionStore
from smartlearn.services.seed_data import (
    SECONDS_PER_DAY,
    SEED_COURSES,
    SEED_ENROLLMENTS,
    SEED_PROGRESS,
    SEED_USERS,
)

logger = logging.getLogger(__name__)


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


@dataclass
class SeedReport:
    seeded: dict[str, int] = field(default_factory=dict)
    skipped: bool = False

    @property
    def total(self) -> int:
        return sum(self.seeded.values())


class DatabaseSeeder:
    def __init__(self, store: CollectionStore) -> None:
        self._store = store
        self._is_seeding = False

    @property
    def is_seeding(self) -> bool:
        return self._is_seeding

    async def check_and_seed(self) -> SeedReport:
        """Seed courses, users and enrollments into empty collections."""
        if self._is_seeding:
            logger.info("Database seeding already in progress")
            return SeedReport(skipped=True)

        self._is_seeding = True
        report = SeedReport()
        try:
            report.seeded["courses"] = await self._seed_if_empty("courses", SEED_COURSES)
            report.seeded["users"] = await self._seed_if_empty("users", SEED_USERS)
            report.seeded["enrollments"] = await self._seed_enrollments()
        finally:
            self._is_seeding = False

        logger.info("Seeding finished: %s", report.seeded)
        return report

    async def seed_sample_progress(self) -> int:
        if await self._store.count("userProgress") > 0:
            logger.info("userProgress already populated, skipping")
            return 0

        now = _now()
        records: list[dict[str, Any]] = []
        for user_id, course_id, completed, days_ago in SEED_PROGRESS:
            total = content_item_count(await self._store.get("courses", course_id))
            progress = UserProgress(user_id=user_id, course_id=course_id).with_completed(
                tuple(completed), total_items=total, at=now - days_ago * SECONDS_PER_DAY
            )
            records.append(progress.to_record())
        return await self._add_all("userProgress", records)

    async def clear_database(self) -> dict[str, int]:
        cleared: dict[str, int] = {}
        for name in COLLECTIONS:
            cleared[name] = await self._store.count(name)
            await self._store.clear(name)
        logger.info("Cleared database: %s", cleared)
        return cleared

    async def _seed_enrollments(self) -> int:
        if await self._store.count("enrollments") > 0:
            logger.info("enrollments already populated, skipping")
            return 0
        if not await self._store.count("users") or not await self._store.count("courses"):
            logger.warning("No users or courses found, skipping enrollment seeding")
            return 0

        now = _now()
        records = []
        for key, user_id, course_id, days_ago, status in SEED_ENROLLMENTS:
            enrollment = Enrollment(
                id=key,
                user_id=user_id,
                course_id=course_id,
                enrollment_date=now - days_ago * SECONDS_PER_DAY,
                status=status,
            )
            records.append(enrollment.to_record())
        return await self._add_all("enrollments", records)

    async def _seed_if_empty(self, collection: str, records: list[dict[str, Any]]) -> int:
        existing = await self._store.count(collection)
        if existing > 0:
            logger.info("%s already contains %d records, skipping", collection, existing)
            return 0
        return await self._add_all(collection, records)

    async def _add_all(self, collection: str, records: list[dict[str, Any]]) -> int:
        added = 0
        for record in records:
            try:
                await self._store.add(collection, record)
            except Exception:
                logger.exception(
                    "Failed to seed %s record %s",
                    collection,
                    record.get("id"),
                    extra={"collection": collection, "key": record.get("id")},
                )
                continue
            added += 1
        logger.info("Seeded %d %s", added, collection, extra={"collection": collection})
        return added
