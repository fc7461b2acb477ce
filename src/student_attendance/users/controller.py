from __future__ import annotations

import logging

from flask import Flask, g, jsonify, request, send_file

from ..common.qr import encode_identity_payload, render_qr_png
from ..common.validators import optional_enum, require_int
from ..common.web import api_endpoint, json_body, login_record_id, make_token_required
from ..core import authorization
from ..core.constants import DEFAULT_HISTORY_PAGE_SIZE, UNKNOWN_CLIENT
from ..core.enums import SessionStatus
from ..core.exceptions import AuthorizationError, ValidationError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    token_required = make_token_required(container.auth_service)

    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    @api_endpoint
    def login():
        data = json_body()
        user = container.auth_service.authenticate(str(data.get("username") or ""), str(data.get("password") or ""))

        device = request.headers.get("User-Agent") or UNKNOWN_CLIENT
        origin = request.remote_addr or UNKNOWN_CLIENT
        result = container.session_tracker.begin_session(user.user_id, device, origin)
        logger.info("user %s logged in (session %s, %s)", user.username, result.session_id, result.outcome.value)

        return jsonify({
            "success": True,
            "token": container.auth_service.issue_token(user),
            "loginRecordId": str(result.session_id),
            "sessionOutcome": result.outcome.value,
            "data": user.to_public_dict(),
        }), 200

    @app.route("/api/auth/logout", methods=["GET", "POST"], endpoint="logout")
    @api_endpoint
    @token_required
    def logout():
        result = container.session_tracker.end_session(
            session_id=login_record_id(),
            user_id=g.current_user.user_id,
        )
        return jsonify({
            "success": True,
            "message": "Logged out successfully",
            "data": {
                "logoutTime": result.logout_time.isoformat(),
                "recordsUpdated": 1 if result.updated else 0,
                "outcome": result.outcome.value,
                "updatedRecord": result.session.to_dict() if result.session else None,
            },
        }), 200

    @app.route("/api/auth/me", methods=["GET"], endpoint="me")
    @api_endpoint
    @token_required
    def me():
        user = g.current_user
        session_id = login_record_id()
        session = (
            container.session_tracker.get_active_session(session_id, requester_id=user.user_id)
            if session_id is not None
            else None
        )
        return jsonify({
            "success": True,
            "data": user.to_public_dict(),
            "session": session.to_dict() if session else None,
        }), 200

    @app.route("/api/auth/login-history", methods=["GET"], endpoint="login_history")
    @api_endpoint
    @token_required
    def login_history():
        page = require_int(request.args.get("page", 1), "page")
        limit = require_int(request.args.get("limit", DEFAULT_HISTORY_PAGE_SIZE), "limit")
        user_id = request.args.get("userId")
        status = optional_enum(SessionStatus, request.args.get("status"), "status")

        result = container.session_tracker.list_history(
            g.current_user,
            page=page,
            limit=limit,
            user_id=require_int(user_id, "userId") if user_id else None,
            status=status,
        )

        pagination = {}
        if result.next is not None:
            pagination["next"] = {"page": result.next, "limit": result.limit}
        if result.prev is not None:
            pagination["prev"] = {"page": result.prev, "limit": result.limit}

        return jsonify({
            "success": True,
            "count": len(result.items),
            "total": result.total,
            "pagination": pagination,
            "data": [s.to_dict() for s in result.items],
        }), 200

    @app.route("/api/users/me/qr", methods=["GET"], endpoint="my_identity_qr")
    @api_endpoint
    @token_required
    def my_identity_qr():
        """Student's personal identity QR code, scanned by lecturers to mark attendance."""
        user = g.current_user
        if not authorization.is_student(user):
            raise AuthorizationError("Only students have an identity QR code")
        if not user.student_number:
            raise ValidationError("No student number on file")

        buf = render_qr_png(encode_identity_payload(user.student_number))
        return send_file(buf, mimetype="image/png")
