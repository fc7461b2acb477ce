from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

from werkzeug.security import generate_password_hash

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

DEMO_PASSWORDS = {
    "admin": "admin123",
    "lecturer": "lecturer123",
    "bob": "student123",
    "carol": "student123",
}


def _connect(db_config: dict, *, with_database: bool = True):
    return DatabaseConnection(DBConfig.from_mapping(db_config)).connect(with_database=with_database)


def _read_bundled_sql(name: str) -> str:
    return Path(__file__).with_name(name).read_text(encoding="utf-8")


def _strip_create_db_and_use(sql: str) -> str:
    # Keep SQL files usable regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema/seed files (handles ';' inside quotes).
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_sql(db_config: dict, sql: str) -> None:
    conn = _connect(db_config)
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(_strip_create_db_and_use(sql)):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


def ensure_database_exists(db_config: dict) -> None:
    database = DBConfig.from_mapping(db_config).database
    conn = _connect(db_config, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict) -> None:
    ensure_database_exists(db_config)
    _run_sql(db_config, _read_bundled_sql("schema.sql"))
    logger.info("schema applied to %s", DBConfig.from_mapping(db_config).database)


def apply_seed(db_config: dict) -> None:
    """Insert demo users/course, then give the demo users real password hashes."""
    _run_sql(db_config, _read_bundled_sql("seed.sql"))

    conn = _connect(db_config)
    try:
        cur = conn.cursor()
        for username, password in DEMO_PASSWORDS.items():
            cur.execute(
                "UPDATE users SET password_hash=%s, is_active=1 WHERE username=%s",
                (generate_password_hash(password), username),
            )
        conn.commit()
    finally:
        conn.close()
    logger.info("demo seed applied (%d users)", len(DEMO_PASSWORDS))


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(db_config)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
