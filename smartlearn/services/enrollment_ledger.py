"""Enrollment ledger: at most one enrollment per (user, course).

The ledger reads and writes the ``enrollments`` collection through the
injected CollectionStore.  Failure policy:

  - Mutations (enroll, status change, unenroll) wrap store failures in a
    domain error and re-raise, so callers can show a message and let the
    user retry.
  - Read-only lookups and aggregates log the failure and return an empty
    result instead.  NotInitialized is the exception to that rule: it is a
    wiring bug, not a runtime condition, and always propagates.

There is no locking.  Two interleaved enrolls for the same pair can both
miss the existence check and both insert; the store is assumed to have a
single logical writer.
"""

from __future__ import annotations

import datetime
import logging
from collections import Counter

from smartlearn.core.metrics import ENROLLMENTS
from smartlearn.models.enrollment import ENROLLMENT_STATUSES, Enrollment, EnrollmentStats
from smartlearn.repos.collection_store import CollectionStore, NotInitialized

logger = logging.getLogger(__name__)

ENROLLMENTS_COLLECTION = "enrollments"
COURSES_COLLECTION = "courses"


class EnrollmentError(Exception):
    pass


class EnrollmentFailed(EnrollmentError):
    pass


class CourseNotFoundError(EnrollmentFailed):
    pass


class EnrollmentNotFound(EnrollmentError):
    pass


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


class EnrollmentLedger:
    def __init__(self, store: CollectionStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def enroll_user_in_course(self, user_id: str, course_id: str) -> str:
        """Enroll a user, or return the existing enrollment key.

        Raises EnrollmentFailed (CourseNotFoundError when the course is
        not in the catalogue) on any failure.
        """
        try:
            existing = await self._find(user_id, course_id)
            if existing is not None:
                ENROLLMENTS.labels(outcome="existing").inc()
                return existing["id"]

            if await self._store.get(COURSES_COLLECTION, course_id) is None:
                raise CourseNotFoundError(f"course not found: {course_id}")

            enrollment = Enrollment.new(
                user_id=user_id, course_id=course_id, enrollment_date=_now()
            )
            key = await self._store.add(ENROLLMENTS_COLLECTION, enrollment.to_record())
        except EnrollmentFailed:
            ENROLLMENTS.labels(outcome="failed").inc()
            raise
        except Exception as exc:
            ENROLLMENTS.labels(outcome="failed").inc()
            logger.exception(
                "Enrollment failed user=%s course=%s",
                user_id,
                course_id,
                extra={"user_id": user_id, "course_id": course_id},
            )
            raise EnrollmentFailed("failed to enroll in course") from exc

        ENROLLMENTS.labels(outcome="created").inc()
        logger.info(
            "Enrolled user=%s in course=%s id=%s",
            user_id,
            course_id,
            key,
            extra={"collection": ENROLLMENTS_COLLECTION, "key": key},
        )
        return key

    async def update_enrollment_status(self, enrollment_id: str, status: str) -> Enrollment:
        if status not in ENROLLMENT_STATUSES:
            raise ValueError(
                f"status must be one of {'|'.join(ENROLLMENT_STATUSES)} (got {status!r})"
            )

        try:
            record = await self._store.get(ENROLLMENTS_COLLECTION, enrollment_id)
        except Exception as exc:
            raise EnrollmentFailed("failed to update enrollment status") from exc
        if record is None:
            raise EnrollmentNotFound(enrollment_id)

        record["status"] = status
        try:
            await self._store.update(ENROLLMENTS_COLLECTION, record)
        except Exception as exc:
            raise EnrollmentFailed("failed to update enrollment status") from exc

        logger.info(
            "Enrollment %s status → %s",
            enrollment_id,
            status,
            extra={"collection": ENROLLMENTS_COLLECTION, "key": enrollment_id},
        )
        return Enrollment.from_record(record)

    async def remove_enrollment(self, enrollment_id: str) -> None:
        try:
            await self._store.delete(ENROLLMENTS_COLLECTION, enrollment_id)
        except Exception as exc:
            raise EnrollmentFailed("failed to remove enrollment") from exc
        logger.info(
            "Removed enrollment %s",
            enrollment_id,
            extra={"collection": ENROLLMENTS_COLLECTION, "key": enrollment_id},
        )

    async def unenroll_user_from_course(self, user_id: str, course_id: str) -> None:
        try:
            existing = await self._find(user_id, course_id)
        except Exception as exc:
            raise EnrollmentFailed("failed to unenroll from course") from exc
        if existing is None:
            raise EnrollmentNotFound(f"{user_id} is not enrolled in {course_id}")
        await self.remove_enrollment(existing["id"])

    # ------------------------------------------------------------------
    # Lookups (best effort)
    # ------------------------------------------------------------------

    async def check_enrollment_exists(self, user_id: str, course_id: str) -> str | None:
        try:
            existing = await self._find(user_id, course_id)
        except NotInitialized:
            raise
        except Exception:
            logger.exception("Error checking enrollment user=%s course=%s", user_id, course_id)
            return None
        return existing["id"] if existing is not None else None

    async def get_enrollment(self, enrollment_id: str) -> Enrollment | None:
        try:
            record = await self._store.get(ENROLLMENTS_COLLECTION, enrollment_id)
        except NotInitialized:
            raise
        except Exception:
            logger.exception("Error loading enrollment %s", enrollment_id)
            return None
        return Enrollment.from_record(record) if record is not None else None

    async def get_user_enrollments(self, user_id: str) -> list[Enrollment]:
        records = await self._safe_query(lambda r: r.get("userId") == user_id)
        return [Enrollment.from_record(r) for r in records]

    async def get_course_enrollments(self, course_id: str) -> list[Enrollment]:
        records = await self._safe_query(lambda r: r.get("courseId") == course_id)
        return [Enrollment.from_record(r) for r in records]

    async def get_user_completed_courses(self, user_id: str) -> list[str]:
        records = await self._safe_query(
            lambda r: r.get("userId") == user_id and r.get("status") == "completed"
        )
        return [r["courseId"] for r in records]

    async def get_enrollment_stats(self) -> EnrollmentStats:
        records = await self._safe_query(lambda _r: True)
        by_status = Counter(r.get("status") or "active" for r in records)
        return EnrollmentStats(
            total=len(records),
            active=by_status["active"],
            completed=by_status["completed"],
            dropped=by_status["dropped"],
            unique_users=len({r.get("userId") for r in records}),
            unique_courses=len({r.get("courseId") for r in records}),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _find(self, user_id: str, course_id: str) -> dict | None:
        matches = await self._store.query(
            ENROLLMENTS_COLLECTION,
            lambda r: r.get("userId") == user_id and r.get("courseId") == course_id,
        )
        return matches[0] if matches else None

    async def _safe_query(self, predicate) -> list[dict]:
        try:
            return await self._store.query(ENROLLMENTS_COLLECTION, predicate)
        except NotInitialized:
            raise
        except Exception:
            logger.exception("Error querying enrollments")
            return []
