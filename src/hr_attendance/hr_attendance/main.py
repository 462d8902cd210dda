from __future__ import annotations

import atexit
import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .config import get_settings_module
from .logging_config import configure_logging

from .database.bootstrap import apply_schema, list_tables

from .container import Container, build_container
from .attendance.controller import register as register_attendance
from .backfill.controller import register as register_backfill
from .backfill.scheduler import AttendanceScheduler
from .common.http import register_error_handlers
from .geofence.controller import register as register_geofence
from .reports.controller import register as register_reports

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    start_scheduler = container is None and bool(getattr(settings, "SCHEDULER_ENABLED", False))
    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"), db_config.get("host"), db_config.get("port", 3306), db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(db_config=db_config)

    scheduler = AttendanceScheduler(
        container.backfill_service,
        timezone=getattr(settings, "SCHEDULER_TIMEZONE", None),
    )
    if start_scheduler:
        scheduler.start()
        atexit.register(scheduler.shutdown)

    app.extensions["container"] = container
    app.extensions["attendance_scheduler"] = scheduler

    register_error_handlers(app)
    register_attendance(app, container)
    register_backfill(app, container)
    register_geofence(app, container)
    register_reports(app, container)

    return app


def serve_options(app: Flask) -> dict:
    """Keyword arguments for ``app.run``.

    The debug reloader re-imports the app in a child process, which would
    start a second scheduler next to the parent's, so it stays off while
    background jobs run.
    """
    debug = bool(app.config.get("DEBUG", False))
    scheduler = app.extensions.get("attendance_scheduler")
    scheduler_running = scheduler is not None and scheduler.running
    return {"debug": debug, "use_reloader": debug and not scheduler_running}
