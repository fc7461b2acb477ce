from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from student_attendance.core.exceptions import AuthenticationError, ValidationError
from student_attendance.users.service import AuthService
from student_attendance.users.tokens import TokenService

from conftest import PASSWORD


def _auth(users_repo, secret: str = "s3cret") -> AuthService:
    return AuthService(users_repo, TokenService(secret, expires_days=1))


def test_authenticate_success(users_repo, people):
    user = _auth(users_repo).authenticate("bob", PASSWORD)
    assert user.user_id == people["bob"].user_id


def test_authenticate_wrong_password(users_repo):
    with pytest.raises(AuthenticationError):
        _auth(users_repo).authenticate("bob", "nope")


def test_authenticate_unknown_user(users_repo):
    with pytest.raises(AuthenticationError):
        _auth(users_repo).authenticate("ghost", PASSWORD)


def test_authenticate_requires_both_fields(users_repo):
    with pytest.raises(ValidationError):
        _auth(users_repo).authenticate("", PASSWORD)
    with pytest.raises(ValidationError):
        _auth(users_repo).authenticate("bob", "")


def test_authenticate_placeholder_hash_is_rejected(users_repo, people):
    users_repo.users_by_id[people["bob"].user_id] = replace(people["bob"], password_hash="CHANGE_ME")
    with pytest.raises(AuthenticationError):
        _auth(users_repo).authenticate("bob", PASSWORD)


def test_token_round_trip_resolves_user(users_repo, people):
    auth = _auth(users_repo)
    token = auth.issue_token(people["carol"])
    assert auth.resolve_token(token) == people["carol"]


def test_token_signed_with_other_secret_is_rejected(users_repo, people):
    token = TokenService("other").issue(people["bob"].user_id)
    with pytest.raises(AuthenticationError):
        _auth(users_repo).resolve_token(token)


def test_expired_token_is_rejected():
    tokens = TokenService("s3cret", expires_days=1)
    token = tokens.issue(10, now=datetime.now(timezone.utc) - timedelta(days=2))
    with pytest.raises(AuthenticationError):
        tokens.verify(token)


def test_token_without_integer_id_is_rejected():
    token = jwt.encode({"id": "10"}, "s3cret", algorithm="HS256")
    with pytest.raises(AuthenticationError):
        TokenService("s3cret").verify(token)


def test_token_for_missing_user_is_rejected(users_repo):
    auth = _auth(users_repo)
    token = TokenService("s3cret").issue(999)
    with pytest.raises(AuthenticationError):
        auth.resolve_token(token)
