from __future__ import annotations

import logging

from werkzeug.security import check_password_hash

from ..core.exceptions import AuthenticationError, ValidationError
from .model import User
from .repository import UserRepository
from .tokens import TokenService

logger = logging.getLogger(__name__)


class AuthService:
    """Use case: verify credentials and resolve bearer tokens to users."""

    def __init__(self, users: UserRepository, tokens: TokenService):
        self._users = users
        self._tokens = tokens

    def authenticate(self, username: str, password: str) -> User:
        if not username or not password:
            raise ValidationError("Please provide a username and password")

        user = self._users.get_by_username(username.strip())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid credentials")

        try:
            ok = check_password_hash(user.password_hash, password)
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid credentials")
        return user

    def issue_token(self, user: User) -> str:
        return self._tokens.issue(user.user_id)

    def resolve_token(self, token: str) -> User:
        user_id = self._tokens.verify(token)
        user = self._users.get_by_id(user_id)
        if not user or not user.is_active:
            logger.info("token for user %s rejected: user missing or inactive", user_id)
            raise AuthenticationError("User not found")
        return user
