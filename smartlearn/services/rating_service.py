"""Course ratings: one rating per (user, course), averaged onto the course.

Each write recomputes the course's ``rating`` (mean, one decimal, rounded
half up) and ``ratingCount`` from the ``courseRatings`` collection and
writes them back onto the course record, when that course exists.
"""

from __future__ import annotations

import datetime
import logging
from decimal import ROUND_HALF_UP, Decimal

from smartlearn.models.rating import MAX_RATING, MIN_RATING, CourseRating
from smartlearn.repos.collection_store import CollectionStore, NotInitialized

logger = logging.getLogger(__name__)

RATINGS_COLLECTION = "courseRatings"
COURSES_COLLECTION = "courses"


class RatingError(Exception):
    pass


class RatingFailed(RatingError):
    pass


class RatingNotFound(RatingError):
    pass


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


def _check_range(rating: int) -> None:
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValueError(f"rating must be between {MIN_RATING} and {MAX_RATING}")


def average_rating(values: list[int]) -> float:
    if not values:
        return 0.0
    mean = Decimal(sum(values)) / Decimal(len(values))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class RatingService:
    def __init__(self, store: CollectionStore) -> None:
        self._store = store

    async def add_rating(
        self, user_id: str, course_id: str, rating: int, comment: str = ""
    ) -> str:
        """Rate a course; a second rating by the same user replaces the first."""
        _check_range(rating)

        try:
            existing = await self._find(user_id, course_id)
            if existing is not None and existing.id is not None:
                await self._rewrite(existing, rating, comment)
                key = existing.id
            else:
                new = CourseRating(
                    id=None,
                    user_id=user_id,
                    course_id=course_id,
                    rating=rating,
                    comment=comment,
                    created_at=_now(),
                )
                key = await self._store.add(RATINGS_COLLECTION, new.to_record())
            await self.update_course_average_rating(course_id)
        except RatingError:
            raise
        except Exception as exc:
            raise RatingFailed("failed to add rating") from exc

        logger.info(
            "User %s rated course %s: %d",
            user_id,
            course_id,
            rating,
            extra={"collection": RATINGS_COLLECTION, "key": key},
        )
        return key

    async def update_rating(self, rating_id: str, rating: int, comment: str = "") -> float:
        """Change an existing rating; an empty comment keeps the old one."""
        _check_range(rating)

        try:
            record = await self._store.get(RATINGS_COLLECTION, rating_id)
        except Exception as exc:
            raise RatingFailed("failed to update rating") from exc
        if record is None:
            raise RatingNotFound(rating_id)

        existing = CourseRating.from_record(record)
        try:
            await self._rewrite(existing, rating, comment)
            average = await self.update_course_average_rating(existing.course_id)
        except RatingError:
            raise
        except Exception as exc:
            raise RatingFailed("failed to update rating") from exc

        logger.info(
            "Rating %s updated to %d",
            rating_id,
            rating,
            extra={"collection": RATINGS_COLLECTION, "key": rating_id},
        )
        return average

    async def delete_rating(self, rating_id: str) -> None:
        try:
            record = await self._store.get(RATINGS_COLLECTION, rating_id)
        except Exception as exc:
            raise RatingFailed("failed to delete rating") from exc
        if record is None:
            raise RatingNotFound(rating_id)

        try:
            await self._store.delete(RATINGS_COLLECTION, rating_id)
            await self.update_course_average_rating(record["courseId"])
        except RatingError:
            raise
        except Exception as exc:
            raise RatingFailed("failed to delete rating") from exc

    async def get_user_rating(self, user_id: str, course_id: str) -> CourseRating | None:
        try:
            return await self._find(user_id, course_id)
        except NotInitialized:
            raise
        except Exception:
            logger.exception("Error getting rating user=%s course=%s", user_id, course_id)
            return None

    async def get_course_ratings(self, course_id: str) -> list[CourseRating]:
        try:
            records = await self._store.query(
                RATINGS_COLLECTION, lambda r: r.get("courseId") == course_id
            )
        except NotInitialized:
            raise
        except Exception:
            logger.exception("Error getting ratings for course=%s", course_id)
            return []
        return [CourseRating.from_record(r) for r in records]

    async def update_course_average_rating(self, course_id: str) -> float:
        try:
            records = await self._store.query(
                RATINGS_COLLECTION, lambda r: r.get("courseId") == course_id
            )
            values = [int(r["rating"]) for r in records]
            average = average_rating(values)

            course = await self._store.get(COURSES_COLLECTION, course_id)
            if course is not None:
                course["rating"] = average
                course["ratingCount"] = len(values)
                await self._store.update(COURSES_COLLECTION, course)
        except Exception as exc:
            raise RatingFailed("failed to update course average rating") from exc
        return average

    async def _rewrite(self, existing: CourseRating, rating: int, comment: str) -> None:
        record = existing.to_record()
        record["rating"] = rating
        record["comment"] = comment or existing.comment
        await self._store.update(RATINGS_COLLECTION, record)

    async def _find(self, user_id: str, course_id: str) -> CourseRating | None:
        matches = await self._store.query(
            RATINGS_COLLECTION,
            lambda r: r.get("userId") == user_id and r.get("courseId") == course_id,
        )
        return CourseRating.from_record(matches[0]) if matches else None
