"""Progress tracker: one derived completion record per (user, course).

Every mutation is a read-modify-write against the ``userProgress``
collection, keyed by ``progress_key(user_id, course_id)``.  The course's
content length is re-read on each mutation, so the percentage always
reflects the catalogue as it is now, not as it was at enrollment.

Two interleaved mutations for the same pair race between their read and
their write; whichever writes last wins and the other's change is lost.
Callers are expected to drive this from a single logical writer.
"""

from __future__ import annotations

import datetime
import logging

from smartlearn.core.metrics import PROGRESS_UPDATES
from smartlearn.models.course import content_item_count
from smartlearn.models.progress import UserProgress, progress_key
from smartlearn.repos.collection_store import CollectionStore, NotInitialized

logger = logging.getLogger(__name__)

PROGRESS_COLLECTION = "userProgress"
COURSES_COLLECTION = "courses"


class ProgressError(Exception):
    pass


class ProgressUpdateFailed(ProgressError):
    pass


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


class ProgressTracker:
    def __init__(self, store: CollectionStore) -> None:
        self._store = store

    async def mark_content_complete(
        self, user_id: str, course_id: str, content_id: str
    ) -> UserProgress:
        try:
            current = await self._load(user_id, course_id)

            if current is None:
                total = await self._content_item_count(course_id)
                progress = UserProgress(user_id=user_id, course_id=course_id).with_completed(
                    (content_id,), total_items=total, at=_now()
                )
                action = "created"
            elif content_id in current.completed_content:
                PROGRESS_UPDATES.labels(action="noop").inc()
                return current
            else:
                total = await self._content_item_count(course_id)
                progress = current.with_completed(
                    current.completed_content + (content_id,), total_items=total, at=_now()
                )
                action = "completed"

            # Upsert, not add: a racing first completion overwrites rather
            # than failing on the composite key.
            await self._store.update(PROGRESS_COLLECTION, progress.to_record())
        except Exception as exc:
            logger.exception(
                "Failed to mark content complete user=%s course=%s content=%s",
                user_id,
                course_id,
                content_id,
            )
            raise ProgressUpdateFailed("failed to mark content as complete") from exc

        PROGRESS_UPDATES.labels(action=action).inc()
        logger.info(
            "Content %s complete for user=%s course=%s (%d%%)",
            content_id,
            user_id,
            course_id,
            progress.completion_percentage,
            extra={"collection": PROGRESS_COLLECTION, "key": progress.id},
        )
        return progress

    async def mark_content_incomplete(
        self, user_id: str, course_id: str, content_id: str
    ) -> UserProgress | None:
        try:
            current = await self._load(user_id, course_id)
            if current is None:
                PROGRESS_UPDATES.labels(action="noop").inc()
                return None

            remaining = tuple(c for c in current.completed_content if c != content_id)
            total = await self._content_item_count(course_id)
            progress = current.with_completed(remaining, total_items=total, at=_now())
            await self._store.update(PROGRESS_COLLECTION, progress.to_record())
        except Exception as exc:
            logger.exception(
                "Failed to mark content incomplete user=%s course=%s content=%s",
                user_id,
                course_id,
                content_id,
            )
            raise ProgressUpdateFailed("failed to mark content as incomplete") from exc

        PROGRESS_UPDATES.labels(action="uncompleted").inc()
        logger.info(
            "Content %s marked incomplete for user=%s course=%s (%d%%)",
            content_id,
            user_id,
            course_id,
            progress.completion_percentage,
            extra={"collection": PROGRESS_COLLECTION, "key": progress.id},
        )
        return progress

    async def reset_course_progress(self, user_id: str, course_id: str) -> None:
        key = progress_key(user_id, course_id)
        try:
            await self._store.delete(PROGRESS_COLLECTION, key)
        except Exception as exc:
            raise ProgressUpdateFailed("failed to reset course progress") from exc
        PROGRESS_UPDATES.labels(action="reset").inc()
        logger.info(
            "Progress reset for user=%s course=%s",
            user_id,
            course_id,
            extra={"collection": PROGRESS_COLLECTION, "key": key},
        )

    # --- read-only accessors: log and fall back, never raise storage errors ---

    async def get_user_progress(self, user_id: str, course_id: str) -> UserProgress | None:
        try:
            return await self._load(user_id, course_id)
        except NotInitialized:
            raise
        except Exception:
            logger.exception("Error getting progress user=%s course=%s", user_id, course_id)
            return None

    async def get_all_user_progress(self, user_id: str) -> list[UserProgress]:
        try:
            records = await self._store.query(
                PROGRESS_COLLECTION, lambda r: r.get("userId") == user_id
            )
        except NotInitialized:
            raise
        except Exception:
            logger.exception("Error getting all progress for user=%s", user_id)
            return []
        return [UserProgress.from_record(r) for r in records]

    async def is_content_completed(self, user_id: str, course_id: str, content_id: str) -> bool:
        progress = await self.get_user_progress(user_id, course_id)
        return progress is not None and content_id in progress.completed_content

    async def get_course_completion_percentage(self, user_id: str, course_id: str) -> int:
        progress = await self.get_user_progress(user_id, course_id)
        return progress.completion_percentage if progress is not None else 0

    # --- internals ---

    async def _load(self, user_id: str, course_id: str) -> UserProgress | None:
        record = await self._store.get(PROGRESS_COLLECTION, progress_key(user_id, course_id))
        return UserProgress.from_record(record) if record is not None else None

    async def _content_item_count(self, course_id: str) -> int:
        return content_item_count(await self._store.get(COURSES_COLLECTION, course_id))
