import os


def get_settings_module() -> str:
    """Settings module for the current APP_ENV (default: development)."""
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "student_attendance.config.production"

    if env in {"test", "testing"}:
        return "student_attendance.config.testing"

    return "student_attendance.config.development"
