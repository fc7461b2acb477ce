from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's attendance in one course on one day."""

    attendance_id: int
    course_id: int
    student_id: int
    day: date
    status: AttendanceStatus
    recorded_by: int
    recorded_at: datetime
    remarks: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "course": self.course_id,
            "student": self.student_id,
            "date": self.day.isoformat(),
            "status": self.status.value,
            "checkedBy": self.recorded_by,
            "checkedAt": self.recorded_at.isoformat(),
            "remarks": self.remarks,
        }


@dataclass(frozen=True)
class AttendanceStats:
    total: int = 0
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0

    @classmethod
    def from_records(cls, records: Iterable[AttendanceRecord]) -> "AttendanceStats":
        counts = Counter(r.status for r in records)
        return cls(
            total=sum(counts.values()),
            present=counts[AttendanceStatus.PRESENT],
            absent=counts[AttendanceStatus.ABSENT],
            late=counts[AttendanceStatus.LATE],
            excused=counts[AttendanceStatus.EXCUSED],
        )

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "present": self.present,
            "absent": self.absent,
            "late": self.late,
            "excused": self.excused,
        }


@dataclass(frozen=True)
class StudentAttendance:
    """Read-model for the per-student report: stats plus the rows they came from."""

    stats: AttendanceStats
    records: list[AttendanceRecord]


@dataclass(frozen=True)
class MarkResult:
    record: AttendanceRecord
    message: str
