"""Content-completion progress endpoints.

Implements the content tracker sequence:
  Client -> POST /v1/progress/{user_id}/{course_id}/complete {content_id}
  -> read progress record (userId_courseId)
  -> re-read course content length
  -> recompute completionPercentage, upsert
  -> 200 progress

A repeated completion of the same item is a no-op and returns the stored
record unchanged.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel

from smartlearn.api.dependencies import get_tracker, http_error_for
from smartlearn.models.progress import UserProgress
from smartlearn.repos.collection_store import StoreError
from smartlearn.services.progress_tracker import ProgressError, ProgressTracker

router = APIRouter(prefix="/v1/progress", tags=["progress"])

Tracker = Annotated[ProgressTracker, Depends(get_tracker)]


class ContentIn(BaseModel):
    content_id: str


class ProgressOut(BaseModel):
    id: str
    user_id: str
    course_id: str
    completed_content: list[str]
    last_accessed: int | None
    completion_percentage: int

    @staticmethod
    def of(p: UserProgress) -> ProgressOut:
        return ProgressOut(
            id=p.id,
            user_id=p.user_id,
            course_id=p.course_id,
            completed_content=list(p.completed_content),
            last_accessed=p.last_accessed,
            completion_percentage=p.completion_percentage,
        )


@router.post("/{user_id}/{course_id}/complete", response_model=ProgressOut)
async def mark_complete(
    user_id: str, course_id: str, body: ContentIn, tracker: Tracker
) -> ProgressOut:
    try:
        progress = await tracker.mark_content_complete(user_id, course_id, body.content_id)
    except ProgressError as exc:
        raise http_error_for(exc) from None
    return ProgressOut.of(progress)


@router.post("/{user_id}/{course_id}/incomplete", response_model=ProgressOut | None)
async def mark_incomplete(
    user_id: str, course_id: str, body: ContentIn, tracker: Tracker
) -> ProgressOut | None:
    try:
        progress = await tracker.mark_content_incomplete(user_id, course_id, body.content_id)
    except ProgressError as exc:
        raise http_error_for(exc) from None
    return ProgressOut.of(progress) if progress is not None else None


@router.get("/{user_id}", response_model=list[ProgressOut])
async def all_progress(user_id: str, tracker: Tracker) -> list[ProgressOut]:
    try:
        records = await tracker.get_all_user_progress(user_id)
    except StoreError as exc:
        raise http_error_for(exc) from None
    return [ProgressOut.of(p) for p in records]


@router.get("/{user_id}/{course_id}", response_model=ProgressOut)
async def get_progress(user_id: str, course_id: str, tracker: Tracker) -> ProgressOut:
    try:
        progress = await tracker.get_user_progress(user_id, course_id)
    except StoreError as exc:
        raise http_error_for(exc) from None
    if progress is None:
        raise HTTPException(status_code=404, detail="no progress recorded")
    return ProgressOut.of(progress)


@router.delete("/{user_id}/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def reset_progress(user_id: str, course_id: str, tracker: Tracker) -> Response:
    try:
        await tracker.reset_course_progress(user_id, course_id)
    except ProgressError as exc:
        raise http_error_for(exc) from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)
