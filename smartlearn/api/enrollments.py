"""Enrollment endpoints.

  POST   /v1/enrollments                      enroll (idempotent) → 201 {id}
  GET    /v1/enrollments?user_id=|course_id=  list
  GET    /v1/enrollments/stats                counts by status
  GET    /v1/enrollments/completed/{user_id}  course ids the user completed
  PATCH  /v1/enrollments/{id}                 change status
  DELETE /v1/enrollments/{id}                 remove (idempotent) → 204
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel

from smartlearn.api.dependencies import get_ledger, http_error_for
from smartlearn.models.enrollment import Enrollment, EnrollmentStatus
from smartlearn.repos.collection_store import StoreError
from smartlearn.services.enrollment_ledger import EnrollmentError, EnrollmentLedger

router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])

Ledger = Annotated[EnrollmentLedger, Depends(get_ledger)]


class EnrollIn(BaseModel):
    user_id: str
    course_id: str


class EnrollOut(BaseModel):
    id: str


class StatusIn(BaseModel):
    status: EnrollmentStatus


class EnrollmentOut(BaseModel):
    id: str | None
    user_id: str
    course_id: str
    status: str
    enrollment_date: int

    @staticmethod
    def of(e: Enrollment) -> EnrollmentOut:
        return EnrollmentOut(
            id=e.id,
            user_id=e.user_id,
            course_id=e.course_id,
            status=e.status,
            enrollment_date=e.enrollment_date,
        )


class EnrollmentStatsOut(BaseModel):
    total: int
    active: int
    completed: int
    dropped: int
    unique_users: int
    unique_courses: int


@router.post("", response_model=EnrollOut, status_code=status.HTTP_201_CREATED)
async def enroll(body: EnrollIn, ledger: Ledger) -> EnrollOut:
    try:
        key = await ledger.enroll_user_in_course(body.user_id, body.course_id)
    except (EnrollmentError, StoreError) as exc:
        raise http_error_for(exc) from None
    return EnrollOut(id=key)


@router.get("", response_model=list[EnrollmentOut])
async def list_enrollments(
    ledger: Ledger,
    user_id: Annotated[str | None, Query()] = None,
    course_id: Annotated[str | None, Query()] = None,
) -> list[EnrollmentOut]:
    if user_id is not None and course_id is None:
        lookup = ledger.get_user_enrollments(user_id)
    elif course_id is not None and user_id is None:
        lookup = ledger.get_course_enrollments(course_id)
    else:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="exactly one of user_id or course_id is required",
        )
    try:
        enrollments = await lookup
    except StoreError as exc:
        raise http_error_for(exc) from None
    return [EnrollmentOut.of(e) for e in enrollments]


@router.get("/stats", response_model=EnrollmentStatsOut)
async def enrollment_stats(ledger: Ledger) -> EnrollmentStatsOut:
    try:
        stats = await ledger.get_enrollment_stats()
    except StoreError as exc:
        raise http_error_for(exc) from None
    return EnrollmentStatsOut(
        total=stats.total,
        active=stats.active,
        completed=stats.completed,
        dropped=stats.dropped,
        unique_users=stats.unique_users,
        unique_courses=stats.unique_courses,
    )


@router.get("/completed/{user_id}", response_model=list[str])
async def completed_courses(user_id: str, ledger: Ledger) -> list[str]:
    try:
        return await ledger.get_user_completed_courses(user_id)
    except StoreError as exc:
        raise http_error_for(exc) from None


@router.patch("/{enrollment_id}", response_model=EnrollmentOut)
async def update_status(enrollment_id: str, body: StatusIn, ledger: Ledger) -> EnrollmentOut:
    try:
        enrollment = await ledger.update_enrollment_status(enrollment_id, body.status)
    except (EnrollmentError, StoreError, ValueError) as exc:
        raise http_error_for(exc) from None
    return EnrollmentOut.of(enrollment)


@router.delete("/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove(enrollment_id: str, ledger: Ledger) -> Response:
    try:
        await ledger.remove_enrollment(enrollment_id)
    except (EnrollmentError, StoreError) as exc:
        raise http_error_for(exc) from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)
