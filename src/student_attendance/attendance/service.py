from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import DayBoundary, now_local
from ..common.qr import decode_identity_payload
from ..core import authorization
from ..core.enums import AttendanceStatus
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DuplicateKeyError,
    InternalError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from ..courses.model import Course
from ..courses.repository import CourseRepository
from ..users.model import User
from ..users.repository import UserRepository
from .model import AttendanceRecord, AttendanceStats, MarkResult, StudentAttendance
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceLedger:
    """Use case: one attendance record per (course, student, day).

    Every read and write is checked against the authorization predicates
    before the store is touched. Write failures are surfaced to the caller.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        courses: CourseRepository,
        users: UserRepository,
        *,
        day_boundary: DayBoundary | None = None,
    ):
        self._attendance = attendance
        self._courses = courses
        self._users = users
        self._boundary = day_boundary or DayBoundary()

    def day(self, timestamp: datetime) -> date:
        return self._boundary.day_of(timestamp)

    # ----- loading helpers -----

    def _require_course(self, course_id: int) -> Course:
        course = self._courses.get_by_id(course_id)
        if not course:
            raise NotFoundError(f"Course not found with id of {course_id}")
        return course

    def _require_student(self, student_id: int) -> User:
        student = self._users.get_by_id(student_id)
        if not student or not authorization.is_student(student):
            raise NotFoundError(f"Student not found with id of {student_id}")
        return student

    def _require_record(self, attendance_id: int) -> tuple[AttendanceRecord, Course]:
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise NotFoundError(f"Attendance record not found with id of {attendance_id}")
        return record, self._require_course(record.course_id)

    # ----- writes -----

    def upsert(
        self,
        *,
        course_id: int,
        student_id: int,
        actor: User,
        day: date | None = None,
        status: AttendanceStatus | None = None,
        remarks: str | None = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or now_local()

        course = self._require_course(course_id)
        if not authorization.is_course_lecturer_or_admin(course, actor):
            raise AuthorizationError(
                f"User {actor.user_id} is not authorized to record attendance for this course"
            )
        student = self._require_student(student_id)
        if not authorization.is_enrolled_student(course, student.user_id):
            raise ValidationError("Student is not enrolled in this course")

        key_day = day or self.day(now)
        try:
            return self._write(course.course_id, student.user_id, key_day, status, remarks, actor, now)
        except DuplicateKeyError:
            logger.warning(
                "attendance race on (course=%s, student=%s, day=%s), retrying as update",
                course.course_id, student.user_id, key_day,
            )
            try:
                existing = self._attendance.get_for_key(
                    course_id=course.course_id, student_id=student.user_id, day=key_day
                )
                if existing:
                    return self._update(existing, status, remarks, actor, now)
            except StoreError:
                logger.exception("attendance retry failed")
            raise ConflictError("Attendance for this student and day was modified concurrently, please retry")
        except StoreError as e:
            logger.exception("attendance write failed")
            raise InternalError("Could not save attendance record") from e

    def _write(
        self,
        course_id: int,
        student_id: int,
        day: date,
        status: AttendanceStatus | None,
        remarks: str | None,
        actor: User,
        now: datetime,
    ) -> AttendanceRecord:
        existing = self._attendance.get_for_key(course_id=course_id, student_id=student_id, day=day)
        if existing:
            return self._update(existing, status, remarks, actor, now)

        new_status = status or AttendanceStatus.PRESENT
        attendance_id = self._attendance.create(
            course_id=course_id,
            student_id=student_id,
            day=day,
            status=new_status,
            recorded_by=actor.user_id,
            recorded_at=now,
            remarks=remarks,
        )
        return AttendanceRecord(
            attendance_id=attendance_id,
            course_id=course_id,
            student_id=student_id,
            day=day,
            status=new_status,
            recorded_by=actor.user_id,
            recorded_at=now,
            remarks=remarks,
        )

    def _update(
        self,
        existing: AttendanceRecord,
        status: AttendanceStatus | None,
        remarks: str | None,
        actor: User,
        now: datetime,
    ) -> AttendanceRecord:
        updated = replace(
            existing,
            status=status or existing.status,
            remarks=remarks if remarks is not None else existing.remarks,
            recorded_by=actor.user_id,
            recorded_at=now,
        )
        ok = self._attendance.update(
            attendance_id=updated.attendance_id,
            status=updated.status,
            recorded_by=updated.recorded_by,
            recorded_at=updated.recorded_at,
            remarks=updated.remarks,
        )
        if not ok:
            raise StoreError(f"attendance record {existing.attendance_id} vanished during update")
        return updated

    def mark_by_identity_token(
        self,
        token: str,
        *,
        course_id: int,
        actor: User,
        status: AttendanceStatus | None = None,
        now: datetime | None = None,
    ) -> MarkResult:
        now = now or now_local()

        student_number = decode_identity_payload(token)
        student = self._users.get_by_student_number(student_number)
        if not student or not authorization.is_student(student):
            raise NotFoundError("Student not found with the provided ID")

        record = self.upsert(
            course_id=course_id,
            student_id=student.user_id,
            actor=actor,
            day=self.day(now),
            status=status,
            now=now,
        )
        return MarkResult(record=record, message=f"Attendance marked for {student.full_name}")

    def amend(
        self,
        attendance_id: int,
        actor: User,
        *,
        status: AttendanceStatus | None = None,
        remarks: str | None = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or now_local()

        record, course = self._require_record(attendance_id)
        if not authorization.is_course_lecturer_or_admin(course, actor):
            raise AuthorizationError("Not authorized to update this attendance record")

        try:
            return self._update(record, status, remarks, actor, now)
        except StoreError as e:
            logger.exception("attendance amend failed")
            raise InternalError("Could not update attendance record") from e

    def delete(self, attendance_id: int, actor: User) -> None:
        record, course = self._require_record(attendance_id)
        if not authorization.is_course_lecturer_or_admin(course, actor):
            raise AuthorizationError("Not authorized to delete this attendance record")

        try:
            deleted = self._attendance.delete(record.attendance_id)
        except StoreError as e:
            logger.exception("attendance delete failed")
            raise InternalError("Could not delete attendance record") from e
        if not deleted:
            raise NotFoundError(f"Attendance record not found with id of {attendance_id}")

    # ----- reads -----

    def get(self, attendance_id: int, requester: User) -> AttendanceRecord:
        record, course = self._require_record(attendance_id)
        if not authorization.can_view_attendance_row(record, course, requester):
            raise AuthorizationError("Not authorized to access this attendance record")
        return record

    def query(
        self,
        requester: User,
        *,
        course_id: Optional[int] = None,
        student_id: Optional[int] = None,
        day: Optional[date] = None,
    ) -> list[AttendanceRecord]:
        """Rows the requester may see, narrowed rather than rejected where possible.

        A student only ever gets their own rows: any other `student_id` they pass
        is replaced with their own id.
        """
        if authorization.is_admin(requester):
            course_ids = None if course_id is None else [self._require_course(course_id).course_id]
            return list(self._attendance.find(course_ids=course_ids, student_id=student_id, day=day))

        if course_id is not None:
            course = self._require_course(course_id)
            if authorization.is_course_lecturer(course, requester):
                visible = {course.course_id: course}
            elif authorization.is_enrolled_student(course, requester.user_id):
                visible = {course.course_id: course}
                student_id = requester.user_id
            else:
                raise AuthorizationError("Not authorized to access attendance records")
        elif authorization.is_student(requester):
            visible = None
            student_id = requester.user_id
        else:
            taught = self._courses.list_taught_by(requester.user_id)
            if not taught:
                raise AuthorizationError("Not authorized to access attendance records")
            visible = {c.course_id: c for c in taught}

        rows = self._attendance.find(
            course_ids=None if visible is None else list(visible),
            student_id=student_id,
            day=day,
        )
        if visible is None:
            return [r for r in rows if authorization.is_same_user(requester, r.student_id)]
        return [
            r for r in rows
            if r.course_id in visible and authorization.can_view_attendance_row(r, visible[r.course_id], requester)
        ]

    def stats_for_student(
        self,
        student_id: int,
        requester: User,
        *,
        course_id: Optional[int] = None,
    ) -> StudentAttendance:
        student = self._require_student(student_id)

        allowed = authorization.is_same_user(requester, student.user_id) or authorization.is_admin(requester)
        if not allowed and not authorization.is_student(requester):
            allowed = authorization.teaches_student(
                self._courses.list_taught_by(requester.user_id), requester, student.user_id, course_id
            )
        if not allowed:
            raise AuthorizationError("Not authorized to access this student's attendance")

        records = self.query(requester, course_id=course_id, student_id=student.user_id)
        return StudentAttendance(stats=AttendanceStats.from_records(records), records=records)
