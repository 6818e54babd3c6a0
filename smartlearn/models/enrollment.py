from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

EnrollmentStatus = Literal["active", "completed", "dropped"]
ENROLLMENT_STATUSES: tuple[str, ...] = ("active", "completed", "dropped")


@dataclass(frozen=True, slots=True)
class Enrollment:
    """One user's membership in one course.

    Stored in the ``enrollments`` collection with camelCase field names;
    at most one record exists per (user_id, course_id).
    """

    id: str | None
    user_id: str
    course_id: str
    enrollment_date: int
    status: str = "active"  # active|completed|dropped

    @staticmethod
    def new(*, user_id: str, course_id: str, enrollment_date: int) -> Enrollment:
        return Enrollment(
            id=None,
            user_id=user_id,
            course_id=course_id,
            enrollment_date=enrollment_date,
        )

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "userId": self.user_id,
            "courseId": self.course_id,
            "enrollmentDate": self.enrollment_date,
            "status": self.status,
        }
        if self.id is not None:
            record["id"] = self.id
        return record

    @staticmethod
    def from_record(record: dict[str, Any]) -> Enrollment:
        return Enrollment(
            id=record.get("id"),
            user_id=record["userId"],
            course_id=record["courseId"],
            enrollment_date=int(record.get("enrollmentDate") or 0),
            status=record.get("status") or "active",
        )


@dataclass(frozen=True, slots=True)
class EnrollmentStats:
    total: int = 0
    active: int = 0
    completed: int = 0
    dropped: int = 0
    unique_users: int = 0
    unique_courses: int = 0
