from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .container import Container, build_container
from .core.exceptions import (
    ConflictError,
    DomainError,
    NotFoundError,
    ResourceExhaustedError,
    StorageError,
    ValidationError,
)
from .database.bootstrap import apply_schema, list_tables
from .guilds.controller import register as register_guilds
from .reports.controller import register as register_reports
from .shifts.controller import register as register_shifts

logger = logging.getLogger(__name__)

ERROR_STATUS = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (ResourceExhaustedError, 422),
    (StorageError, 503),
)


def _status_for(error: DomainError) -> int:
    for kind, status in ERROR_STATUS:
        if isinstance(error, kind):
            return status
    return 500


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def domain_error(error: DomainError):
        status = _status_for(error)
        if status >= 500:
            logger.error("%s: %s", type(error).__name__, error)
        return jsonify({"error": type(error).__name__, "message": str(error)}), status


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(db_config=db_config, settings=settings)

    app.extensions["shift_ledger"] = container

    register_error_handlers(app)
    register_shifts(app, container)
    register_reports(app, container)
    register_guilds(app, container)

    if bool(getattr(settings, "ROSTER_REFRESH_ENABLED", False)):
        if container.refresher is None:
            logger.warning("Roster refresh enabled but no DISCORD_TOKEN configured; skipping")
        else:
            container.refresher.start()

    return app
