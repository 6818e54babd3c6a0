"""Quiz result history and leaderboard endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from smartlearn.api.dependencies import get_quiz_results, http_error_for
from smartlearn.models.quiz import MAX_SCORE, MIN_SCORE, LeaderboardEntry, QuizResult
from smartlearn.repos.collection_store import StoreError
from smartlearn.services.quiz_results import QuizError, QuizResultsService

router = APIRouter(prefix="/v1/quiz-results", tags=["quiz-results"])

QuizResults = Annotated[QuizResultsService, Depends(get_quiz_results)]


class QuizResultIn(BaseModel):
    user_id: str
    course_id: str
    score: int = Field(ge=MIN_SCORE, le=MAX_SCORE)


class QuizResultCreated(BaseModel):
    id: str


class QuizResultOut(BaseModel):
    id: str | None
    user_id: str
    course_id: str
    score: int
    generated_at: int | None
    attempted_at: int | None

    @staticmethod
    def of(r: QuizResult) -> QuizResultOut:
        return QuizResultOut(
            id=r.id,
            user_id=r.user_id,
            course_id=r.course_id,
            score=r.score,
            generated_at=r.generated_at,
            attempted_at=r.attempted_at,
        )


class AttemptedOut(BaseModel):
    attempted: bool


class LeaderboardEntryOut(BaseModel):
    id: str | None
    user_id: str
    user_name: str
    course_id: str
    course_name: str
    score: int
    time_taken: int
    attempted_at: int | None

    @staticmethod
    def of(e: LeaderboardEntry) -> LeaderboardEntryOut:
        return LeaderboardEntryOut(
            id=e.id,
            user_id=e.user_id,
            user_name=e.user_name,
            course_id=e.course_id,
            course_name=e.course_name,
            score=e.score,
            time_taken=e.time_taken,
            attempted_at=e.attempted_at,
        )


@router.post("", response_model=QuizResultCreated, status_code=status.HTTP_201_CREATED)
async def save_quiz_result(body: QuizResultIn, quiz_results: QuizResults) -> QuizResultCreated:
    try:
        key = await quiz_results.save_quiz_result(body.course_id, body.user_id, body.score)
    except (QuizError, StoreError, ValueError) as exc:
        raise http_error_for(exc) from None
    return QuizResultCreated(id=key)


@router.get("/leaderboard", response_model=list[LeaderboardEntryOut])
async def leaderboard(
    quiz_results: QuizResults,
    course_id: Annotated[str | None, Query()] = None,
    top: Annotated[int, Query(ge=1, le=100)] = 10,
) -> list[LeaderboardEntryOut]:
    try:
        entries = await quiz_results.get_leaderboard(course_id, top)
    except (QuizError, StoreError) as exc:
        raise http_error_for(exc) from None
    return [LeaderboardEntryOut.of(e) for e in entries]


@router.get("/users/{user_id}", response_model=list[QuizResultOut])
async def user_quiz_results(user_id: str, quiz_results: QuizResults) -> list[QuizResultOut]:
    try:
        results = await quiz_results.get_user_quiz_results(user_id)
    except (QuizError, StoreError) as exc:
        raise http_error_for(exc) from None
    return [QuizResultOut.of(r) for r in results]


@router.get("/users/{user_id}/courses/{course_id}/attempted", response_model=AttemptedOut)
async def has_attempted(user_id: str, course_id: str, quiz_results: QuizResults) -> AttemptedOut:
    try:
        attempted = await quiz_results.has_attempted(user_id, course_id)
    except StoreError as exc:
        raise http_error_for(exc) from None
    return AttemptedOut(attempted=attempted)
