from __future__ import annotations

import io
import json
from typing import BinaryIO, Optional

import qrcode
from PIL import Image
from pyzbar.pyzbar import decode as pyzbar_decode

from ..core.exceptions import ValidationError


def encode_identity_payload(student_number: str) -> str:
    """Payload printed in a student's identity QR code."""
    return json.dumps({"studentId": student_number})


def decode_identity_payload(raw: str) -> str:
    """Return the student number carried by a scanned identity payload."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        raise ValidationError("Invalid QR code format")

    if not isinstance(data, dict):
        raise ValidationError("Invalid QR code format")

    student_number = data.get("studentId")
    if isinstance(student_number, int) and not isinstance(student_number, bool):
        student_number = str(student_number)
    if not isinstance(student_number, str) or not student_number.strip():
        raise ValidationError("Invalid QR code data")
    return student_number.strip()


def render_qr_png(data: str) -> io.BytesIO:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf


def decode_qr_image(stream: BinaryIO) -> Optional[str]:
    """Decode the first QR code found in an uploaded image, if any."""
    try:
        img = Image.open(stream).convert("RGB")
    except (OSError, Image.DecompressionBombError):
        raise ValidationError("Uploaded file is not a readable image")

    decoded = pyzbar_decode(img)
    if not decoded:
        return None
    try:
        return decoded[0].data.decode("utf-8").strip()
    except UnicodeDecodeError:
        raise ValidationError("Invalid QR code format")
