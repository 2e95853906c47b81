from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .absences.controller import register as register_absences
from .checkins.controller import register as register_checkins
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig
from .performance.controller import register as register_performance

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def create_app(container: Optional[Container] = None) -> Flask:
    """Flask app factory.

    Pass a prebuilt `container` to skip database wiring (tests do this).
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = settings.SECRET_KEY
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if container is None:
        db_config = settings.DB_CONFIG
        logger.info("settings=%s db=%s", settings_module, DBConfig.from_settings(db_config).describe())
        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            late_grace_minutes=int(getattr(settings, "LATE_GRACE_MINUTES", 15)),
            absence_lookback_days=int(getattr(settings, "ABSENCE_LOOKBACK_DAYS", 90)),
        )
    else:
        logger.info("settings=%s (prebuilt container)", settings_module)

    register_checkins(app, container)
    register_absences(app, container)
    register_performance(app, container)

    return app
