from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from .attendance.controller import register as register_attendance
from .attendance.window import WindowConfig
from .common.http import register_error_handlers
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .sessions.controller import register as register_sessions

logger = logging.getLogger(__name__)


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("classroom_sessions").setLevel(level)


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    When `container` is given (tests), no database is touched: auto init/seed
    are skipped and the supplied repositories are used as-is.
    """

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module, db_config.get("user"), db_config.get("host"),
            db_config.get("port", 3306), db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config)
            logger.info("demo seed ready")

        container = build_container(db_config=db_config, window_config=WindowConfig.from_settings(settings))

    register_error_handlers(app)
    register_sessions(app, container)
    register_attendance(app, container)

    @app.get("/health", endpoint="health")
    def health():
        return jsonify({"status": "ok"})

    return app
