from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_key(self, *, course_id: int, student_id: int, day: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(
        self,
        *,
        course_id: int,
        student_id: int,
        day: date,
        status: AttendanceStatus,
        recorded_by: int,
        recorded_at: datetime,
        remarks: Optional[str] = None,
    ) -> int:
        """Insert a record. Raises DuplicateKeyError if (course, student, day) exists."""

        raise NotImplementedError

    def update(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        recorded_by: int,
        recorded_at: datetime,
        remarks: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def find(
        self,
        *,
        course_ids: Optional[Iterable[int]] = None,
        student_id: Optional[int] = None,
        day: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        """Rows matching every given filter, newest day first.

        `course_ids=None` means any course; an empty collection matches nothing.
        """

        raise NotImplementedError
