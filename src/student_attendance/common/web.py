from __future__ import annotations

import logging
from functools import wraps
from typing import Optional

from flask import g, jsonify, request

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from ..users.service import AuthService

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (InternalError, 500),
)


def status_for(error: DomainError) -> int:
    for cls, code in _STATUS_BY_ERROR:
        if isinstance(error, cls):
            return code
    return 400


def error_response(error: DomainError):
    return jsonify({"success": False, "message": str(error)}), status_for(error)


def server_error_response():
    return jsonify({"success": False, "message": "Server error"}), 500


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        token = header.split(" ", 1)[1].strip()
        return token or None
    return None


def login_record_id() -> Optional[int]:
    """Session id the client cached at login, from header or JSON body."""
    raw = request.headers.get("X-Login-Record")
    if raw is None:
        raw = json_body().get("loginRecordId")
    if raw is None or str(raw).strip() == "":
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        logger.info("ignoring malformed login record id %r", raw)
        return None


def make_token_required(auth_service: AuthService):
    """Decorator factory: resolve the bearer token to `g.current_user`.

    Place it under `api_endpoint` so authentication failures become 401 responses.
    """

    def token_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            token = bearer_token()
            if not token:
                raise AuthenticationError("Not authorized to access this route")
            g.current_user = auth_service.resolve_token(token)
            return view(*args, **kwargs)

        return wrapper

    return token_required


def api_endpoint(view):
    """Answer domain errors with their mapped status and log anything unexpected as a 500."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("unhandled error in %s %s", request.method, request.path)
            return server_error_response()

    return wrapper
