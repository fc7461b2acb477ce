from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, Optional

import pytest
from werkzeug.security import generate_password_hash

from student_attendance.attendance.model import AttendanceRecord
from student_attendance.config import testing as testing_settings
from student_attendance.container import build_services
from student_attendance.core.enums import Role, SessionStatus
from student_attendance.core.exceptions import DuplicateKeyError, StoreError
from student_attendance.courses.model import Course
from student_attendance.sessions.model import Session
from student_attendance.users.model import User


class InMemoryUsers:
    def __init__(self, users: Iterable[User] = ()):
        self.users_by_id: dict[int, User] = {u.user_id: u for u in users}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users_by_id.get(user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self.users_by_id.values() if u.username == username), None)

    def get_by_student_number(self, student_number: str) -> Optional[User]:
        return next((u for u in self.users_by_id.values() if u.student_number == student_number), None)


class InMemoryCourses:
    def __init__(self, courses: Iterable[Course] = ()):
        self.courses: dict[int, Course] = {c.course_id: c for c in courses}

    def get_by_id(self, course_id: int) -> Optional[Course]:
        return self.courses.get(course_id)

    def list_taught_by(self, lecturer_id: int) -> list[Course]:
        return [c for c in self.courses.values() if c.lecturer_id == lecturer_id]


class InMemorySessions:
    """Session store; set `fail_bookkeeping` to make every call except `create` raise StoreError."""

    def __init__(self):
        self.rows: dict[int, Session] = {}
        self._id = 0
        self.fail_bookkeeping = False

    def _check(self):
        if self.fail_bookkeeping:
            raise StoreError("session store unavailable")

    def get_by_id(self, session_id: int) -> Optional[Session]:
        self._check()
        return self.rows.get(session_id)

    def find_recently_ended(self, *, user_id: int, device: str, origin: str, since: datetime) -> Optional[Session]:
        self._check()
        matches = [
            s for s in self.rows.values()
            if s.user_id == user_id and s.device == device and s.origin == origin
            and s.status == SessionStatus.ENDED and s.logout_time is not None and s.logout_time > since
        ]
        matches.sort(key=lambda s: s.logout_time, reverse=True)
        return matches[0] if matches else None

    def end_active_for_user(self, *, user_id: int, logout_time: datetime) -> int:
        self._check()
        count = 0
        for sid, s in list(self.rows.items()):
            if s.user_id == user_id and s.status == SessionStatus.ACTIVE:
                self.rows[sid] = replace(s, status=SessionStatus.ENDED, logout_time=logout_time)
                count += 1
        return count

    def reactivate(self, *, session_id: int, login_time: datetime) -> bool:
        self._check()
        s = self.rows.get(session_id)
        if not s or s.status != SessionStatus.ENDED:
            return False
        self.rows[session_id] = replace(s, status=SessionStatus.ACTIVE, login_time=login_time, logout_time=None)
        return True

    def create(self, *, user_id: int, device: str, origin: str, login_time: datetime) -> int:
        self._id += 1
        self.rows[self._id] = Session(
            session_id=self._id,
            user_id=user_id,
            device=device,
            origin=origin,
            status=SessionStatus.ACTIVE,
            login_time=login_time,
        )
        return self._id

    def end(self, *, session_id: int, logout_time: datetime) -> bool:
        self._check()
        s = self.rows.get(session_id)
        if not s or s.status != SessionStatus.ACTIVE:
            return False
        self.rows[session_id] = replace(s, status=SessionStatus.ENDED, logout_time=logout_time)
        return True

    def stamp_logout(self, *, session_id: int, logout_time: datetime) -> bool:
        self._check()
        s = self.rows.get(session_id)
        if not s or s.status != SessionStatus.ENDED:
            return False
        self.rows[session_id] = replace(s, logout_time=logout_time)
        return True

    def get_latest_active_for_user(self, user_id: int) -> Optional[Session]:
        self._check()
        active = [s for s in self.rows.values() if s.user_id == user_id and s.status == SessionStatus.ACTIVE]
        active.sort(key=lambda s: s.login_time, reverse=True)
        return active[0] if active else None

    def list_history(self, *, offset: int, limit: int, user_id=None, status=None):
        items = [
            s for s in self.rows.values()
            if (user_id is None or s.user_id == user_id) and (status is None or s.status == status)
        ]
        items.sort(key=lambda s: s.login_time, reverse=True)
        return items[offset:offset + limit], len(items)

    def active_for(self, user_id: int) -> list[Session]:
        return [s for s in self.rows.values() if s.user_id == user_id and s.status == SessionStatus.ACTIVE]


class InMemoryAttendance:
    """Attendance store enforcing the (course, student, day) unique key.

    `race_once` makes the next `get_for_key` miss while a concurrent writer's
    row appears, so the following `create` hits the unique key. `fail_writes`
    makes every write raise StoreError.
    """

    def __init__(self):
        self.rows: dict[int, AttendanceRecord] = {}
        self._id = 0
        self.race_once: Optional[AttendanceRecord] = None
        self.fail_writes = False

    def _next_id(self) -> int:
        self._id += 1
        return self._id

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self.rows.get(attendance_id)

    def get_for_key(self, *, course_id: int, student_id: int, day: date) -> Optional[AttendanceRecord]:
        if self.race_once is not None:
            winner, self.race_once = self.race_once, None
            self.rows[winner.attendance_id] = winner
            return None
        return next(
            (r for r in self.rows.values()
             if r.course_id == course_id and r.student_id == student_id and r.day == day),
            None,
        )

    def seed_concurrent_writer(self, **fields) -> AttendanceRecord:
        rec = AttendanceRecord(attendance_id=self._next_id(), **fields)
        self.race_once = rec
        return rec

    def create(self, *, course_id, student_id, day, status, recorded_by, recorded_at, remarks=None) -> int:
        if self.fail_writes:
            raise StoreError("attendance store unavailable")
        for r in self.rows.values():
            if (r.course_id, r.student_id, r.day) == (course_id, student_id, day):
                raise DuplicateKeyError("Duplicate entry for key 'uq_attendance_natural_key'")
        attendance_id = self._next_id()
        self.rows[attendance_id] = AttendanceRecord(
            attendance_id=attendance_id,
            course_id=course_id,
            student_id=student_id,
            day=day,
            status=status,
            recorded_by=recorded_by,
            recorded_at=recorded_at,
            remarks=remarks,
        )
        return attendance_id

    def update(self, *, attendance_id, status, recorded_by, recorded_at, remarks=None) -> bool:
        if self.fail_writes:
            raise StoreError("attendance store unavailable")
        r = self.rows.get(attendance_id)
        if not r:
            return False
        self.rows[attendance_id] = replace(
            r, status=status, recorded_by=recorded_by, recorded_at=recorded_at, remarks=remarks
        )
        return True

    def delete(self, attendance_id: int) -> bool:
        if self.fail_writes:
            raise StoreError("attendance store unavailable")
        return self.rows.pop(attendance_id, None) is not None

    def find(self, *, course_ids=None, student_id=None, day=None):
        wanted = None if course_ids is None else set(course_ids)
        items = [
            r for r in self.rows.values()
            if (wanted is None or r.course_id in wanted)
            and (student_id is None or r.student_id == student_id)
            and (day is None or r.day == day)
        ]
        items.sort(key=lambda r: r.day, reverse=True)
        return items


PASSWORD = "secret123"


def _user(user_id: int, username: str, role: Role, student_number: Optional[str] = None) -> User:
    return User(
        user_id=user_id,
        full_name=username.capitalize(),
        username=username,
        password_hash=generate_password_hash(PASSWORD),
        role=role,
        student_number=student_number,
    )


@pytest.fixture
def people() -> dict[str, User]:
    return {
        "admin": _user(1, "admin", Role.ADMIN),
        "lecturer": _user(2, "lecturer", Role.LECTURER),
        "other_lecturer": _user(3, "mallory", Role.LECTURER),
        "bob": _user(10, "bob", Role.STUDENT, "S1001"),
        "carol": _user(11, "carol", Role.STUDENT, "S1002"),
    }


@pytest.fixture
def users_repo(people) -> InMemoryUsers:
    return InMemoryUsers(people.values())


@pytest.fixture
def courses_repo(people) -> InMemoryCourses:
    return InMemoryCourses([
        Course(course_id=100, code="CS301", name="Databases",
               lecturer_id=people["lecturer"].user_id, student_ids=frozenset({people["bob"].user_id})),
        Course(course_id=200, code="CS302", name="Networks",
               lecturer_id=people["other_lecturer"].user_id,
               student_ids=frozenset({people["bob"].user_id, people["carol"].user_id})),
    ])


@pytest.fixture
def sessions_repo() -> InMemorySessions:
    return InMemorySessions()


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def container(users_repo, courses_repo, sessions_repo, attendance_repo):
    return build_services(
        users_repo=users_repo,
        courses_repo=courses_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        settings=testing_settings,
    )
