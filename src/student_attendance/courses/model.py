from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Course:
    """Domain entity: Course with its lecturer and enrolled students."""

    course_id: int
    code: str
    name: str
    lecturer_id: int
    student_ids: frozenset[int] = field(default_factory=frozenset)
