from __future__ import annotations

from dataclasses import dataclass
from typing import Any

MIN_RATING = 1
MAX_RATING = 5


@dataclass(frozen=True, slots=True)
class CourseRating:
    id: str | None
    user_id: str
    course_id: str
    rating: int
    comment: str = ""
    created_at: int | None = None

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "userId": self.user_id,
            "courseId": self.course_id,
            "rating": self.rating,
            "comment": self.comment,
            "createdAt": self.created_at,
        }
        if self.id is not None:
            record["id"] = self.id
        return record

    @staticmethod
    def from_record(record: dict[str, Any]) -> CourseRating:
        return CourseRating(
            id=record.get("id"),
            user_id=record["userId"],
            course_id=record["courseId"],
            rating=int(record["rating"]),
            comment=record.get("comment") or "",
            created_at=record.get("createdAt"),
        )
