from __future__ import annotations

from student_attendance.database.bootstrap import DEMO_PASSWORDS, apply_seed
from student_attendance.main import load_settings


def main() -> None:
    settings = load_settings()
    db_config = dict(settings.DB_CONFIG)

    apply_seed(db_config)

    print(
        "OK: Seeded database -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )
    for username, password in DEMO_PASSWORDS.items():
        print(f"  {username} / {password}")


if __name__ == "__main__":
    main()
