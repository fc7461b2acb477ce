from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Plain data object; holds no database access code.
    `student_number` is the external student id encoded in identity QR codes.
    """

    user_id: int
    full_name: str
    username: str
    password_hash: str
    role: Role
    student_number: Optional[str] = None
    is_active: bool = True

    def to_public_dict(self) -> dict:
        return {
            "id": self.user_id,
            "name": self.full_name,
            "username": self.username,
            "role": self.role.value,
            "studentId": self.student_number,
        }
