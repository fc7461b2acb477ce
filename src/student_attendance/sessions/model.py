from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import SessionOutcome, SessionStatus


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'' if n == 1 else 's'}"


@dataclass(frozen=True)
class Session:
    """Audit record of one login-to-logout span on a device/origin."""

    session_id: int
    user_id: int
    device: str
    origin: str
    status: SessionStatus
    login_time: datetime
    logout_time: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    @property
    def duration(self) -> str:
        if self.logout_time is None:
            return "Active"

        minutes = int((self.logout_time - self.login_time).total_seconds() // 60)
        if minutes < 60:
            return _plural(minutes, "min")
        return f"{_plural(minutes // 60, 'hr')} {_plural(minutes % 60, 'min')}"

    def to_dict(self) -> dict:
        return {
            "id": self.session_id,
            "user": self.user_id,
            "device": self.device,
            "ipAddress": self.origin,
            "status": self.status.value,
            "loginTime": self.login_time.isoformat(),
            "logoutTime": self.logout_time.isoformat() if self.logout_time else None,
            "duration": self.duration,
        }


@dataclass(frozen=True)
class SessionResult:
    outcome: SessionOutcome
    session_id: int


@dataclass(frozen=True)
class EndResult:
    updated: bool
    outcome: SessionOutcome
    logout_time: datetime
    session: Optional[Session] = None


@dataclass(frozen=True)
class Page:
    items: list[Session]
    total: int
    page: int
    limit: int

    @property
    def next(self) -> Optional[int]:
        return self.page + 1 if self.page * self.limit < self.total else None

    @property
    def prev(self) -> Optional[int]:
        return self.page - 1 if self.page > 1 else None
