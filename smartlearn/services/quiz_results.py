"""Quiz results: completed attempts and the leaderboard built from them.

Results live in the ``quizResults`` collection.  Only completed results
count towards history, attempts and the leaderboard; the leaderboard keeps
each user's best attempt (highest score, then fastest) and ranks those.
"""

from __future__ import annotations

import datetime
import logging

from smartlearn.models.quiz import MAX_SCORE, MIN_SCORE, LeaderboardEntry, QuizResult
from smartlearn.repos.collection_store import CollectionStore, NotInitialized

logger = logging.getLogger(__name__)

QUIZ_RESULTS_COLLECTION = "quizResults"
COURSES_COLLECTION = "courses"
USERS_COLLECTION = "users"

ANONYMOUS_USER = "Anonymous User"
UNKNOWN_COURSE = "Unknown Course"


class QuizError(Exception):
    pass


class QuizResultFailed(QuizError):
    pass


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


class QuizResultsService:
    def __init__(self, store: CollectionStore) -> None:
        self._store = store

    async def save_quiz_result(self, course_id: str, user_id: str, score: int) -> str:
        if not MIN_SCORE <= score <= MAX_SCORE:
            raise ValueError(f"score must be between {MIN_SCORE} and {MAX_SCORE}")

        now = _now()
        result = QuizResult(
            id=None,
            user_id=user_id,
            course_id=course_id,
            score=score,
            generated_at=now,
            attempted_at=now,
        )
        try:
            key = await self._store.add(QUIZ_RESULTS_COLLECTION, result.to_record())
        except Exception as exc:
            logger.exception("Error saving quiz result user=%s course=%s", user_id, course_id)
            raise QuizResultFailed("failed to save quiz result") from exc

        logger.info(
            "Saved quiz result for user %s in course %s: %d",
            user_id,
            course_id,
            score,
            extra={"collection": QUIZ_RESULTS_COLLECTION, "key": key},
        )
        return key

    async def get_user_quiz_results(self, user_id: str) -> list[QuizResult]:
        try:
            records = await self._store.query(
                QUIZ_RESULTS_COLLECTION,
                lambda r: r.get("userId") == user_id and r.get("isCompleted") is True,
            )
        except NotInitialized:
            raise
        except Exception as exc:
            raise QuizResultFailed("failed to get user quiz results") from exc
        return [QuizResult.from_record(r) for r in records]

    async def has_attempted(self, user_id: str, course_id: str) -> bool:
        try:
            matches = await self._store.query(
                QUIZ_RESULTS_COLLECTION,
                lambda r: (
                    r.get("userId") == user_id
                    and r.get("courseId") == course_id
                    and r.get("isCompleted") is True
                ),
            )
        except NotInitialized:
            raise
        except Exception:
            logger.exception("Error checking quiz attempts user=%s course=%s", user_id, course_id)
            return False
        return bool(matches)

    async def get_leaderboard(
        self, course_id: str | None = None, top_count: int = 10
    ) -> list[LeaderboardEntry]:
        if top_count < 1:
            raise ValueError("top_count must be at least 1")

        try:
            records = await self._store.query(
                QUIZ_RESULTS_COLLECTION,
                lambda r: r.get("isCompleted") is True
                and (course_id is None or r.get("courseId") == course_id),
            )

            best: dict[str, LeaderboardEntry] = {}
            user_names: dict[str, str] = {}
            course_names: dict[str, str] = {}
            for record in records:
                result = QuizResult.from_record(record)
                if result.user_id not in user_names:
                    user_names[result.user_id] = await self._user_name(result.user_id)
                if result.course_id not in course_names:
                    course_names[result.course_id] = await self._course_name(result.course_id)

                entry = LeaderboardEntry(
                    id=result.id,
                    user_id=result.user_id,
                    user_name=user_names[result.user_id],
                    course_id=result.course_id,
                    course_name=course_names[result.course_id],
                    score=result.score,
                    time_taken=result.time_taken,
                    attempted_at=result.attempted_at,
                )
                current = best.get(result.user_id)
                if current is None or entry.rank_key() < current.rank_key():
                    best[result.user_id] = entry
        except NotInitialized:
            raise
        except Exception as exc:
            raise QuizResultFailed("failed to get leaderboard") from exc

        return sorted(best.values(), key=LeaderboardEntry.rank_key)[:top_count]

    async def _user_name(self, user_id: str) -> str:
        user = await self._store.get(USERS_COLLECTION, user_id)
        if user is None:
            return ANONYMOUS_USER
        return user.get("displayName") or user.get("name") or ANONYMOUS_USER

    async def _course_name(self, course_id: str) -> str:
        course = await self._store.get(COURSES_COLLECTION, course_id)
        if course is None:
            return UNKNOWN_COURSE
        return course.get("title") or UNKNOWN_COURSE
