"""Demo catalogue, accounts, enrollments and progress for local runs."""

from __future__ import annotations

from typing import Any

SEED_COURSES: list[dict[str, Any]] = [
    {
        "id": "course_react_fundamentals",
        "title": "React Fundamentals",
        "description": "Components, state, props and hooks for beginners.",
        "category": "Programming",
        "level": "Beginner",
        "duration": "6 weeks",
        "instructor": "Sarah Johnson",
        "status": "published",
        "rating": 0,
        "ratingCount": 0,
        "content": [
            {"id": "content_1", "title": "Introduction to React", "type": "text", "duration": "30 min"},
            {"id": "content_2", "title": "Setting Up Your Environment", "type": "video", "duration": "20 min"},
            {"id": "content_3", "title": "Your First React Component", "type": "text", "duration": "45 min"},
        ],
    },
    {
        "id": "course_web_design_fundamentals",
        "title": "Web Design Fundamentals",
        "description": "Layout, typography and colour for the web.",
        "category": "Design",
        "level": "Beginner",
        "duration": "4 weeks",
        "instructor": "Emily Rodriguez",
        "status": "published",
        "rating": 0,
        "ratingCount": 0,
        "content": [
            {"id": "content_web_1", "title": "Design Principles", "type": "text", "duration": "25 min"},
            {"id": "content_web_2", "title": "Responsive Layouts", "type": "video", "duration": "40 min"},
        ],
    },
    {
        "id": "course_python_data_science",
        "title": "Python for Data Science",
        "description": "NumPy, pandas and plotting from scratch.",
        "category": "Data Science",
        "level": "Intermediate",
        "duration": "8 weeks",
        "instructor": "Dr. Michael Chen",
        "status": "published",
        "rating": 0,
        "ratingCount": 0,
        "content": [
            {"id": "content_py_1", "title": "NumPy Arrays", "type": "text", "duration": "35 min"},
            {"id": "content_py_2", "title": "DataFrames with pandas", "type": "pdf", "duration": "50 min"},
        ],
    },
]

SEED_USERS: list[dict[str, Any]] = [
    {"id": "admin_user", "email": "admin@smartlearn.dev", "name": "Admin User", "role": "admin"},
    {"id": "educator_demo", "email": "educator@smartlearn.dev", "name": "Demo Educator", "role": "educator"},
    {"id": "student_demo", "email": "student@smartlearn.dev", "name": "Demo Student", "role": "learner"},
]

SECONDS_PER_DAY = 24 * 60 * 60

# (key, user, course, days ago, status)
SEED_ENROLLMENTS: list[tuple[str, str, str, int, str]] = [
    ("enrollment_1", "student_demo", "course_react_fundamentals", 0, "active"),
    ("enrollment_2", "student_demo", "course_web_design_fundamentals", 7, "completed"),
    ("enrollment_3", "admin_user", "course_python_data_science", 3, "active"),
]

# (user, course, completed content ids, days since last access)
SEED_PROGRESS: list[tuple[str, str, list[str], int]] = [
    ("student_demo", "course_react_fundamentals", ["content_1"], 0),
    ("student_demo", "course_web_design_fundamentals", ["content_web_1", "content_web_2"], 1),
    ("admin_user", "course_python_data_science", ["content_py_1"], 0),
]

