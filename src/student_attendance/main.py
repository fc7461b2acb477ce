from __future__ import annotations

import importlib
import logging
from types import ModuleType
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed, list_tables
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def load_settings() -> ModuleType:
    load_dotenv(override=False)
    return importlib.import_module(get_settings_module())


def create_app(*, settings: Optional[ModuleType] = None, container: Optional[Container] = None) -> Flask:
    """Build the Flask app.

    Tests pass a container wired over in-memory repositories; otherwise the
    container is built against MySQL from the selected settings module.
    """
    settings = settings or load_settings()

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings.__name__, db_config.get("user"), db_config.get("host"),
            db_config.get("port", 3306), db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed(db_config)

        container = build_container(settings=settings)

    register_users(app, container)
    register_attendance(app, container)

    return app
