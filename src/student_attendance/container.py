from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceLedger
from .common.datetime_utils import DayBoundary
from .core.constants import DEFAULT_DAY_BOUNDARY, DEFAULT_SESSION_GRACE_SECONDS, DEFAULT_TOKEN_DAYS
from .courses.mysql_course_repository import MySQLCourseRepository
from .courses.repository import CourseRepository
from .database.connection import DBConfig, DatabaseConnection
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .sessions.service import SessionTracker
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService
from .users.tokens import TokenService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    courses_repo: CourseRepository
    sessions_repo: SessionRepository
    attendance_repo: AttendanceRepository

    auth_service: AuthService
    session_tracker: SessionTracker
    attendance_ledger: AttendanceLedger


def build_services(
    *,
    users_repo: UserRepository,
    courses_repo: CourseRepository,
    sessions_repo: SessionRepository,
    attendance_repo: AttendanceRepository,
    settings: object,
) -> Container:
    """Wire services over any set of repositories (MySQL in the app, in-memory in tests)."""
    tokens = TokenService(
        str(getattr(settings, "JWT_SECRET")),
        expires_days=int(getattr(settings, "JWT_EXPIRES_DAYS", DEFAULT_TOKEN_DAYS)),
    )
    day_boundary = DayBoundary.from_settings(
        getattr(settings, "DAY_BOUNDARY", DEFAULT_DAY_BOUNDARY),
        getattr(settings, "TIMEZONE", None),
    )

    return Container(
        users_repo=users_repo,
        courses_repo=courses_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        auth_service=AuthService(users_repo, tokens),
        session_tracker=SessionTracker(
            sessions_repo,
            grace_seconds=int(getattr(settings, "SESSION_GRACE_SECONDS", DEFAULT_SESSION_GRACE_SECONDS)),
        ),
        attendance_ledger=AttendanceLedger(attendance_repo, courses_repo, users_repo, day_boundary=day_boundary),
    )


def build_container(*, settings: object) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(getattr(settings, "DB_CONFIG")))

    return build_services(
        users_repo=MySQLUserRepository(conn),
        courses_repo=MySQLCourseRepository(conn),
        sessions_repo=MySQLSessionRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        settings=settings,
    )
