from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_ATTENDANCE_COLUMNS = "attendance_id, course_id, student_id, day, status, recorded_by, recorded_at, remarks"


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        course_id=int(r["course_id"]),
        student_id=int(r["student_id"]),
        day=r["day"],
        status=AttendanceStatus(r["status"]),
        recorded_by=int(r["recorded_by"]),
        recorded_at=r["recorded_at"],
        remarks=r.get("remarks"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ATTENDANCE_COLUMNS} FROM attendance_records WHERE attendance_id=%s",
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_for_key(self, *, course_id: int, student_id: int, day: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ATTENDANCE_COLUMNS}
                FROM attendance_records
                WHERE course_id=%s AND student_id=%s AND day=%s
                """,
                (int(course_id), int(student_id), day),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(course_id, student_id, day, status, recorded_by, recorded_at, remarks)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(course_id), int(student_id), day, status.value, int(recorded_by), recorded_at, remarks),
            )
            return int(cur.lastrowid)

    def update(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        recorded_by: int,
        recorded_at: datetime,
        remarks: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, recorded_by=%s, recorded_at=%s, remarks=%s
                WHERE attendance_id=%s
                """,
                (status.value, int(recorded_by), recorded_at, remarks, int(attendance_id)),
            )
            return cur.rowcount > 0

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def find(
        self,
        *,
        course_ids: Optional[Iterable[int]] = None,
        student_id: Optional[int] = None,
        day: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["1=1"]
        params: list[object] = []

        if course_ids is not None:
            ids = [int(c) for c in course_ids]
            if not ids:
                return []
            clauses.append(f"course_id IN ({', '.join(['%s'] * len(ids))})")
            params.extend(ids)
        if student_id is not None:
            clauses.append("student_id=%s")
            params.append(int(student_id))
        if day is not None:
            clauses.append("day=%s")
            params.append(day)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ATTENDANCE_COLUMNS}
                FROM attendance_records
                WHERE {where}
                ORDER BY day DESC, attendance_id DESC
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]
