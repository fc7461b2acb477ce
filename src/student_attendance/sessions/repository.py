from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import SessionStatus
from .model import Session


class SessionRepository(Protocol):
    """Persistence for login sessions. Rows are never deleted."""

    def get_by_id(self, session_id: int) -> Optional[Session]:
        raise NotImplementedError

    def find_recently_ended(self, *, user_id: int, device: str, origin: str, since: datetime) -> Optional[Session]:
        """Most recent ended session for the user/device/origin with logout_time > since."""

        raise NotImplementedError

    def end_active_for_user(self, *, user_id: int, logout_time: datetime) -> int:
        """End every active session of the user; returns how many rows changed."""

        raise NotImplementedError

    def reactivate(self, *, session_id: int, login_time: datetime) -> bool:
        """Flip an ended session back to active. False if it was no longer ended."""

        raise NotImplementedError

    def create(self, *, user_id: int, device: str, origin: str, login_time: datetime) -> int:
        raise NotImplementedError

    def end(self, *, session_id: int, logout_time: datetime) -> bool:
        """End one session if it is active. False if missing or already ended."""

        raise NotImplementedError

    def stamp_logout(self, *, session_id: int, logout_time: datetime) -> bool:
        """Move the logout time of an already-ended session."""

        raise NotImplementedError

    def get_latest_active_for_user(self, user_id: int) -> Optional[Session]:
        raise NotImplementedError

    def list_history(
        self,
        *,
        offset: int,
        limit: int,
        user_id: Optional[int] = None,
        status: Optional[SessionStatus] = None,
    ) -> tuple[Sequence[Session], int]:
        """A page of sessions, newest login first, plus the total row count."""

        raise NotImplementedError
