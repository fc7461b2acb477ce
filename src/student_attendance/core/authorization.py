"""Authorization predicates over already-loaded entities.

Every role/ownership decision in the services goes through one of these
functions. They never touch the store and never raise.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ..attendance.model import AttendanceRecord
from ..courses.model import Course
from ..sessions.model import Session
from ..users.model import User
from .enums import Role


def is_admin(user: User) -> bool:
    return user.role == Role.ADMIN


def is_student(user: User) -> bool:
    return user.role == Role.STUDENT


def is_course_lecturer(course: Course, user: User) -> bool:
    return course.lecturer_id == user.user_id


def is_course_lecturer_or_admin(course: Course, actor: User) -> bool:
    return is_course_lecturer(course, actor) or is_admin(actor)


def is_enrolled_student(course: Course, user_id: int) -> bool:
    return user_id in course.student_ids


def can_view_attendance_row(row: AttendanceRecord, course: Course, requester: User) -> bool:
    """Lecturer of the row's course, an admin, or the student the row is about."""
    if row.course_id != course.course_id:
        return False
    return is_course_lecturer_or_admin(course, requester) or requester.user_id == row.student_id


def teaches_student(
    courses: Iterable[Course],
    lecturer: User,
    student_id: int,
    course_id: Optional[int] = None,
) -> bool:
    """True if `lecturer` teaches a course (optionally `course_id`) where the student is enrolled."""
    for course in courses:
        if course_id is not None and course.course_id != course_id:
            continue
        if is_course_lecturer(course, lecturer) and is_enrolled_student(course, student_id):
            return True
    return False


def is_same_user(user: User, user_id: int) -> bool:
    return user.user_id == user_id


def is_session_owner(session: Session, user_id: int) -> bool:
    return session.user_id == user_id
