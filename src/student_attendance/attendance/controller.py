from __future__ import annotations

from datetime import date
from typing import Optional

from flask import Flask, g, jsonify, request

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..common.qr import decode_qr_image
from ..common.validators import optional_enum, optional_text, require_int
from ..common.web import api_endpoint, json_body, make_token_required
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    token_required = make_token_required(container.auth_service)
    ledger = container.attendance_ledger

    def _day_from(value: Optional[str]) -> Optional[date]:
        """Accept a plain YYYY-MM-DD day or a full timestamp run through the day boundary."""
        if not value:
            return None
        if not isinstance(value, str):
            raise ValidationError("date must be a string")
        if len(value) == 10:
            return parse_iso_date(value)
        return ledger.day(parse_iso_datetime(value))

    def _status_from(data: dict) -> Optional[AttendanceStatus]:
        return optional_enum(AttendanceStatus, data.get("status"), "status")

    @app.route("/api/attendance", methods=["POST"], endpoint="record_attendance")
    @api_endpoint
    @token_required
    def record_attendance():
        data = json_body()
        if not data.get("courseId") or not data.get("studentId"):
            raise ValidationError("Please provide a course ID and student ID")

        record = ledger.upsert(
            course_id=require_int(data.get("courseId"), "course ID"),
            student_id=require_int(data.get("studentId"), "student ID"),
            actor=g.current_user,
            day=_day_from(data.get("date")),
            status=_status_from(data),
            remarks=optional_text(data.get("remarks")),
        )
        return jsonify({"success": True, "data": record.to_dict()}), 200

    @app.route("/api/attendance/scan", methods=["POST"], endpoint="scan_attendance")
    @api_endpoint
    @token_required
    def scan_attendance():
        data = json_body()
        if not data.get("qrData") or not data.get("courseId"):
            raise ValidationError("Please provide QR data and course ID")

        result = ledger.mark_by_identity_token(
            str(data["qrData"]),
            course_id=require_int(data.get("courseId"), "course ID"),
            actor=g.current_user,
            status=_status_from(data),
        )
        return jsonify({"success": True, "message": result.message, "data": result.record.to_dict()}), 200

    @app.route("/api/attendance/scan/image", methods=["POST"], endpoint="scan_attendance_image")
    @api_endpoint
    @token_required
    def scan_attendance_image():
        """Same as /scan, but the identity QR code arrives as an uploaded photo."""
        if "image" not in request.files:
            raise ValidationError("Missing image file")
        course_id = require_int(request.form.get("courseId"), "course ID")

        qr_data = decode_qr_image(request.files["image"].stream)
        if not qr_data:
            raise ValidationError("No QR code detected in image")

        result = ledger.mark_by_identity_token(
            qr_data,
            course_id=course_id,
            actor=g.current_user,
            status=optional_enum(AttendanceStatus, request.form.get("status"), "status"),
        )
        return jsonify({"success": True, "message": result.message, "data": result.record.to_dict()}), 200

    @app.route("/api/attendance/<int:attendance_id>", methods=["GET"], endpoint="get_attendance")
    @api_endpoint
    @token_required
    def get_attendance(attendance_id: int):
        record = ledger.get(attendance_id, g.current_user)
        return jsonify({"success": True, "data": record.to_dict()}), 200

    @app.route("/api/attendance/<int:attendance_id>", methods=["PUT"], endpoint="update_attendance")
    @api_endpoint
    @token_required
    def update_attendance(attendance_id: int):
        data = json_body()
        record = ledger.amend(
            attendance_id,
            g.current_user,
            status=_status_from(data),
            remarks=optional_text(data.get("remarks")),
        )
        return jsonify({"success": True, "data": record.to_dict()}), 200

    @app.route("/api/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="delete_attendance")
    @api_endpoint
    @token_required
    def delete_attendance(attendance_id: int):
        ledger.delete(attendance_id, g.current_user)
        return jsonify({"success": True, "data": {}}), 200

    @app.route("/api/courses/<int:course_id>/attendance", methods=["GET"], endpoint="course_attendance")
    @api_endpoint
    @token_required
    def course_attendance(course_id: int):
        student_id = request.args.get("studentId")
        rows = ledger.query(
            g.current_user,
            course_id=course_id,
            student_id=require_int(student_id, "student ID") if student_id else None,
            day=_day_from(request.args.get("date")),
        )
        return jsonify({"success": True, "count": len(rows), "data": [r.to_dict() for r in rows]}), 200

    @app.route("/api/students/<int:student_id>/attendance", methods=["GET"], endpoint="student_attendance")
    @api_endpoint
    @token_required
    def student_attendance(student_id: int):
        course_id = request.args.get("courseId")
        report = ledger.stats_for_student(
            student_id,
            g.current_user,
            course_id=require_int(course_id, "course ID") if course_id else None,
        )
        return jsonify({
            "success": True,
            "stats": report.stats.to_dict(),
            "count": len(report.records),
            "data": [r.to_dict() for r in report.records],
        }), 200
