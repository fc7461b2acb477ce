from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from ..common.datetime_utils import now_local
from ..core import authorization
from ..core.constants import DEFAULT_HISTORY_PAGE_SIZE, DEFAULT_SESSION_GRACE_SECONDS
from ..core.enums import SessionOutcome, SessionStatus
from ..core.exceptions import AuthorizationError, StoreError, ValidationError
from ..users.model import User
from .model import EndResult, Page, Session, SessionResult
from .repository import SessionRepository

logger = logging.getLogger(__name__)


class SessionTracker:
    """Use case: login/logout bookkeeping.

    Keeps at most one active session per user. A login that arrives from the
    same device and origin within `grace_seconds` of a logout reuses that
    session row instead of minting a new one, so rapid reconnects do not
    fragment the audit trail.

    Bookkeeping is advisory: store trouble while looking up or ending sessions
    never fails a login, it degrades to creating a fresh session.
    """

    def __init__(self, sessions: SessionRepository, *, grace_seconds: int = DEFAULT_SESSION_GRACE_SECONDS):
        self._sessions = sessions
        self._grace = timedelta(seconds=int(grace_seconds))

    def begin_session(self, user_id: int, device: str, origin: str, *, now: datetime | None = None) -> SessionResult:
        now = now or now_local()

        try:
            recent = self._sessions.find_recently_ended(
                user_id=user_id, device=device, origin=origin, since=now - self._grace
            )
            ended = self._sessions.end_active_for_user(user_id=user_id, logout_time=now)
            if ended:
                logger.info("user %s: ended %d active session(s) before login", user_id, ended)

            if recent and self._sessions.reactivate(session_id=recent.session_id, login_time=now):
                logger.info("user %s: reactivated session %s", user_id, recent.session_id)
                return SessionResult(outcome=SessionOutcome.REACTIVATED, session_id=recent.session_id)
        except StoreError:
            logger.warning("user %s: session bookkeeping failed, creating a new session", user_id, exc_info=True)

        session_id = self._sessions.create(user_id=user_id, device=device, origin=origin, login_time=now)
        logger.info("user %s: created session %s", user_id, session_id)
        return SessionResult(outcome=SessionOutcome.CREATED, session_id=session_id)

    def end_session(
        self,
        *,
        session_id: Optional[int] = None,
        user_id: Optional[int] = None,
        now: datetime | None = None,
    ) -> EndResult:
        """End one session. Finding nothing to end is reported, not raised."""
        now = now or now_local()

        try:
            if session_id is not None:
                session = self._sessions.get_by_id(session_id)
                if session and user_id is not None and not authorization.is_session_owner(session, user_id):
                    logger.warning(
                        "session %s belongs to user %s, not requester %s; ignoring it for logout",
                        session_id, session.user_id, user_id,
                    )
                elif session:
                    return self._end(session, now)
                else:
                    logger.info("logout: session %s not found", session_id)

            if user_id is not None:
                session = self._sessions.get_latest_active_for_user(user_id)
                if session:
                    return self._end(session, now)
                logger.info("logout: no active session for user %s", user_id)
        except StoreError:
            logger.warning("logout bookkeeping failed (session=%s, user=%s)", session_id, user_id, exc_info=True)

        return EndResult(updated=False, outcome=SessionOutcome.NOOP, logout_time=now)

    def _end(self, session: Session, now: datetime) -> EndResult:
        if not self._sessions.end(session_id=session.session_id, logout_time=now):
            # Already ended: only the logout time moves.
            self._sessions.stamp_logout(session_id=session.session_id, logout_time=now)
            current = self._sessions.get_by_id(session.session_id) or session
            return EndResult(updated=True, outcome=SessionOutcome.NOOP, logout_time=now, session=current)

        logger.info("user %s: ended session %s", session.user_id, session.session_id)
        ended = Session(
            session_id=session.session_id,
            user_id=session.user_id,
            device=session.device,
            origin=session.origin,
            status=SessionStatus.ENDED,
            login_time=session.login_time,
            logout_time=now,
        )
        return EndResult(updated=True, outcome=SessionOutcome.ENDED, logout_time=now, session=ended)

    def get_active_session(self, session_id: int, *, requester_id: Optional[int] = None) -> Optional[Session]:
        """Active session by id, for display. Owner mismatch is only logged."""
        session = self._sessions.get_by_id(session_id)
        if not session or not session.is_active:
            return None
        if requester_id is not None and not authorization.is_session_owner(session, requester_id):
            logger.warning("session %s viewed by user %s but owned by %s", session_id, requester_id, session.user_id)
        return session

    def list_history(
        self,
        requester: User,
        *,
        page: int = 1,
        limit: int = DEFAULT_HISTORY_PAGE_SIZE,
        user_id: Optional[int] = None,
        status: Optional[SessionStatus] = None,
    ) -> Page:
        if not authorization.is_admin(requester):
            raise AuthorizationError(f"User role {requester.role.value} is not authorized to access this route")
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")

        items, total = self._sessions.list_history(
            offset=(page - 1) * limit, limit=limit, user_id=user_id, status=status
        )
        return Page(items=list(items), total=total, page=page, limit=limit)
