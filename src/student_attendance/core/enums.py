from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    STUDENT = "student"
    LECTURER = "lecturer"
    ADMIN = "admin"


class AttendanceStatus(str, Enum):
    """Attendance status values as stored in the database."""

    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"
    EXCUSED = "Excused"


class SessionStatus(str, Enum):
    ACTIVE = "active"
    ENDED = "ended"


class SessionOutcome(str, Enum):
    """What a begin/end session call actually did to the store."""

    REACTIVATED = "reactivated"
    CREATED = "created"
    ENDED = "ended"
    NOOP = "noop"
