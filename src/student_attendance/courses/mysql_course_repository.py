from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Course
from .repository import CourseRepository


class MySQLCourseRepository(CourseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, course_id: int) -> Optional[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT course_id, code, name, lecturer_id FROM courses WHERE course_id=%s",
                (int(course_id),),
            )
            r = fetchone(cur)
            if not r:
                return None

            cur.execute("SELECT student_id FROM course_students WHERE course_id=%s", (int(course_id),))
            students = frozenset(int(s["student_id"]) for s in fetchall(cur))
            return Course(
                course_id=int(r["course_id"]),
                code=r["code"],
                name=r["name"],
                lecturer_id=int(r["lecturer_id"]),
                student_ids=students,
            )

    def list_taught_by(self, lecturer_id: int) -> Sequence[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT c.course_id, c.code, c.name, c.lecturer_id, cs.student_id
                FROM courses c
                LEFT JOIN course_students cs ON cs.course_id = c.course_id
                WHERE c.lecturer_id=%s
                ORDER BY c.course_id
                """,
                (int(lecturer_id),),
            )
            rows = fetchall(cur)

        heads: dict[int, dict] = {}
        students: dict[int, set[int]] = {}
        for r in rows:
            cid = int(r["course_id"])
            heads.setdefault(cid, r)
            ids = students.setdefault(cid, set())
            if r.get("student_id") is not None:
                ids.add(int(r["student_id"]))

        return [
            Course(
                course_id=cid,
                code=r["code"],
                name=r["name"],
                lecturer_id=int(r["lecturer_id"]),
                student_ids=frozenset(students[cid]),
            )
            for cid, r in heads.items()
        ]
