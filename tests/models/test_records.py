from __future__ import annotations

import pytest

from smartlearn.models.course import content_item_count
from smartlearn.models.enrollment import Enrollment
from smartlearn.models.progress import (
    UserProgress,
    compute_completion_percentage,
    progress_key,
)


def test_progress_key_format() -> None:
    assert progress_key("user_1", "course_2") == "user_1_course_2"


@pytest.mark.parametrize(
    ("completed", "total", "expected"),
    [
        (0, 3, 0),
        (1, 3, 33),
        (2, 3, 67),
        (3, 3, 100),
        (1, 2, 50),
        (1, 8, 13),  # 12.5 rounds up
        (5, 3, 100),  # clamped
        (4, 0, 0),  # no content
    ],
)
def test_completion_percentage(completed: int, total: int, expected: int) -> None:
    assert compute_completion_percentage(completed, total) == expected


def test_from_record_drops_duplicate_content_ids() -> None:
    progress = UserProgress.from_record(
        {
            "id": "u_c",
            "userId": "u",
            "courseId": "c",
            "completedContent": ["a", "b", "a"],
            "lastAccessed": 10,
            "completionPercentage": 67,
        }
    )
    assert progress.completed_content == ("a", "b")
    assert progress.id == "u_c"


def test_with_completed_recomputes() -> None:
    progress = UserProgress(user_id="u", course_id="c").with_completed(
        ("a",), total_items=4, at=123
    )
    assert progress.completion_percentage == 25
    assert progress.last_accessed == 123
    assert progress.to_record()["completedContent"] == ["a"]


def test_enrollment_record_uses_camel_case() -> None:
    e = Enrollment.new(user_id="u1", course_id="c1", enrollment_date=42)
    assert e.to_record() == {
        "userId": "u1",
        "courseId": "c1",
        "enrollmentDate": 42,
        "status": "active",
    }


def test_enrollment_from_record_defaults_status() -> None:
    e = Enrollment.from_record({"id": "e1", "userId": "u1", "courseId": "c1"})
    assert e.status == "active"
    assert e.enrollment_date == 0


@pytest.mark.parametrize(
    ("course", "expected"),
    [
        (None, 0),
        ({}, 0),
        ({"content": "not a list"}, 0),
        ({"content": [{"id": "a"}, {"id": "b"}]}, 2),
    ],
)
def test_content_item_count(course: dict | None, expected: int) -> None:
    assert content_item_count(course) == expected
