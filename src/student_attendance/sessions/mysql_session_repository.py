from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import SessionStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Session
from .repository import SessionRepository

_SESSION_COLUMNS = "session_id, user_id, device, origin, status, login_time, logout_time"


def _to_session(r: Dict[str, Any]) -> Session:
    return Session(
        session_id=int(r["session_id"]),
        user_id=int(r["user_id"]),
        device=r["device"],
        origin=r["origin"],
        status=SessionStatus(r["status"]),
        login_time=r["login_time"],
        logout_time=r.get("logout_time"),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: int) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE session_id=%s", (int(session_id),))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def find_recently_ended(self, *, user_id: int, device: str, origin: str, since: datetime) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM sessions
                WHERE user_id=%s AND status='ended' AND device=%s AND origin=%s AND logout_time > %s
                ORDER BY logout_time DESC
                LIMIT 1
                """,
                (int(user_id), device, origin, since),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def end_active_for_user(self, *, user_id: int, logout_time: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE sessions SET status='ended', logout_time=%s WHERE user_id=%s AND status='active'",
                (logout_time, int(user_id)),
            )
            return int(cur.rowcount)

    def reactivate(self, *, session_id: int, login_time: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE sessions
                SET status='active', logout_time=NULL, login_time=%s
                WHERE session_id=%s AND status='ended'
                """,
                (login_time, int(session_id)),
            )
            return cur.rowcount > 0

    def create(self, *, user_id: int, device: str, origin: str, login_time: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO sessions(user_id, device, origin, status, login_time, logout_time)
                VALUES(%s,%s,%s,'active',%s,NULL)
                """,
                (int(user_id), device, origin, login_time),
            )
            return int(cur.lastrowid)

    def end(self, *, session_id: int, logout_time: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE sessions SET status='ended', logout_time=%s WHERE session_id=%s AND status='active'",
                (logout_time, int(session_id)),
            )
            return cur.rowcount > 0

    def stamp_logout(self, *, session_id: int, logout_time: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE sessions SET logout_time=%s WHERE session_id=%s AND status='ended'",
                (logout_time, int(session_id)),
            )
            return cur.rowcount > 0

    def get_latest_active_for_user(self, user_id: int) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM sessions
                WHERE user_id=%s AND status='active'
                ORDER BY login_time DESC
                LIMIT 1
                """,
                (int(user_id),),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def list_history(
        self,
        *,
        offset: int,
        limit: int,
        user_id: Optional[int] = None,
        status: Optional[SessionStatus] = None,
    ) -> tuple[Sequence[Session], int]:
        clauses = ["1=1"]
        params: list[object] = []

        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM sessions WHERE {where}", tuple(params))
            total = int(fetchone(cur)["total"])

            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM sessions
                WHERE {where}
                ORDER BY login_time DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (int(limit), int(offset)),
            )
            return [_to_session(r) for r in fetchall(cur)], total
