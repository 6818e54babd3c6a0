from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any


def progress_key(user_id: str, course_id: str) -> str:
    """Composite key of a progress record.

    Other subsystems address progress records directly by this key, so the
    format must not change.
    """
    return f"{user_id}_{course_id}"


def compute_completion_percentage(completed_count: int, total_items: int) -> int:
    """Whole-number percentage, rounded half up and clamped to [0, 100].

    A course with no content items is 0% complete by definition.
    """
    if total_items <= 0:
        return 0
    # Integer form of floor(completed / total * 100 + 0.5); avoids float drift.
    percentage = (completed_count * 200 + total_items) // (2 * total_items)
    return max(0, min(100, percentage))


@dataclass(frozen=True, slots=True)
class UserProgress:
    """Projection of one learner's completion state in one course.

    ``completed_content`` keeps first-completion order and never holds
    duplicates; ``completion_percentage`` is derived from it and the
    course's content length at the time of the last mutation.
    """

    user_id: str
    course_id: str
    completed_content: tuple[str, ...] = ()
    last_accessed: int | None = None
    completion_percentage: int = 0

    @property
    def id(self) -> str:
        return progress_key(self.user_id, self.course_id)

    def with_completed(self, completed: tuple[str, ...], *, total_items: int, at: int) -> UserProgress:
        return replace(
            self,
            completed_content=completed,
            last_accessed=at,
            completion_percentage=compute_completion_percentage(len(completed), total_items),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "courseId": self.course_id,
            "completedContent": list(self.completed_content),
            "lastAccessed": self.last_accessed,
            "completionPercentage": self.completion_percentage,
        }

    @staticmethod
    def from_record(record: dict[str, Any]) -> UserProgress:
        completed = tuple(dict.fromkeys(str(c) for c in record.get("completedContent") or ()))
        return UserProgress(
            user_id=record["userId"],
            course_id=record["courseId"],
            completed_content=completed,
            last_accessed=record.get("lastAccessed"),
            completion_percentage=int(record.get("completionPercentage") or 0),
        )
