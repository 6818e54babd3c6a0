from __future__ import annotations

from typing import Any


def content_item_count(course: dict[str, Any] | None) -> int:
    """Number of content items in a course record; 0 when unresolvable.

    Courses are owned by the catalogue, so this core only ever reads the
    ``content`` list and never caches its length.
    """
    if not course:
        return 0
    content = course.get("content")
    return len(content) if isinstance(content, list) else 0
