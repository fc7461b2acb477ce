from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt

from ..core.constants import DEFAULT_TOKEN_DAYS
from ..core.exceptions import AuthenticationError

JWT_ALGO = "HS256"


class TokenService:
    """Issues and verifies the bearer tokens that bind a request to a user id."""

    def __init__(self, secret: str, *, expires_days: int = DEFAULT_TOKEN_DAYS):
        self._secret = secret
        self._ttl = timedelta(days=int(expires_days))

    def issue(self, user_id: int, *, now: datetime | None = None) -> str:
        now = now or datetime.now(timezone.utc)
        payload = {
            "id": int(user_id),
            "iat": int(now.timestamp()),
            "exp": int((now + self._ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGO)

    def verify(self, token: str) -> int:
        """Return the user id carried by `token`."""
        try:
            payload = jwt.decode(token, self._secret, algorithms=[JWT_ALGO])
        except jwt.PyJWTError:
            raise AuthenticationError("Not authorized to access this route")

        user_id = payload.get("id")
        if not isinstance(user_id, int):
            raise AuthenticationError("Not authorized to access this route")
        return user_id
