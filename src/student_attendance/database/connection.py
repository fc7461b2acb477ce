from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

import mysql.connector
from mysql.connector.constants import ClientFlag


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str

    @classmethod
    def from_mapping(cls, db_config: Mapping) -> "DBConfig":
        """Build from a settings `DB_CONFIG` dict, filling local defaults."""
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "student_attendance")),
        )


class DatabaseConnection:
    """Connection factory, one per DB target per process.

    Every repository call opens a short-lived connection and closes it in
    `db_cursor`, so nothing but the config is shared between requests.
    FOUND_ROWS makes UPDATE rowcount report matched rows, not changed rows.
    """

    _instances: dict[DBConfig, "DatabaseConnection"] = {}

    def __init__(self, config: DBConfig):
        self.config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if config not in cls._instances:
            cls._instances[config] = cls(config)
        return cls._instances[config]

    def connect(self, *, with_database: bool = True):
        kwargs = dict(
            host=self.config.host,
            port=self.config.port,
            user=self.config.user,
            password=self.config.password,
            client_flags=[ClientFlag.FOUND_ROWS],
        )
        if with_database:
            kwargs["database"] = self.config.database
        return mysql.connector.connect(**kwargs)
