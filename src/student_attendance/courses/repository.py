from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Course


class CourseRepository(Protocol):
    def get_by_id(self, course_id: int) -> Optional[Course]:
        raise NotImplementedError

    def list_taught_by(self, lecturer_id: int) -> Sequence[Course]:
        """Courses whose lecturer is `lecturer_id`, with their enrolments loaded."""

        raise NotImplementedError
