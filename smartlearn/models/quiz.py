from __future__ import annotations

from dataclasses import dataclass
from typing import Any

MIN_SCORE = 0
MAX_SCORE = 100


@dataclass(frozen=True, slots=True)
class QuizResult:
    id: str | None
    user_id: str
    course_id: str
    score: int
    is_completed: bool = True
    generated_at: int | None = None
    attempted_at: int | None = None

    @property
    def time_taken(self) -> int:
        """Seconds between the quiz being generated and attempted."""
        if self.generated_at is None or self.attempted_at is None:
            return 0
        return max(self.attempted_at - self.generated_at, 0)

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "userId": self.user_id,
            "courseId": self.course_id,
            "score": self.score,
            "isCompleted": self.is_completed,
            "generatedAt": self.generated_at,
            "attemptedAt": self.attempted_at,
        }
        if self.id is not None:
            record["id"] = self.id
        return record

    @staticmethod
    def from_record(record: dict[str, Any]) -> QuizResult:
        return QuizResult(
            id=record.get("id"),
            user_id=record["userId"],
            course_id=record["courseId"],
            score=int(record.get("score") or 0),
            is_completed=bool(record.get("isCompleted")),
            generated_at=record.get("generatedAt"),
            attempted_at=record.get("attemptedAt"),
        )


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    id: str | None
    user_id: str
    user_name: str
    course_id: str
    course_name: str
    score: int
    time_taken: int
    attempted_at: int | None

    def rank_key(self) -> tuple[int, int]:
        # Highest score first, then fastest.
        return (-self.score, self.time_taken)
