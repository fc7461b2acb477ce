from __future__ import annotations

from student_attendance.database.bootstrap import apply_schema, list_tables
from student_attendance.main import load_settings


def main() -> None:
    settings = load_settings()
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config)
    tables = list_tables(db_config)
    print(
        "OK: Applied schema.sql -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(tables={len(tables)})"
    )


if __name__ == "__main__":
    main()
