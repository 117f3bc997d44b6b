from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .activities.controller import register as register_activities
from .attendance.admin_controller import register as register_admin_attendance
from .attendance.controller import register as register_attendance
from .common.logging import configure_logging
from .container import Container, build_container

logger = logging.getLogger(__name__)


def load_settings() -> dict:
    """Upper-case names of the active settings module as a plain dict."""
    module = importlib.import_module(get_settings_module())
    return {name: getattr(module, name) for name in dir(module) if name.isupper()}


def create_app(container: Optional[Container] = None, settings: Optional[dict] = None) -> Flask:
    load_dotenv(override=False)
    settings = settings if settings is not None else load_settings()

    configure_logging(settings.get("LOG_LEVEL", "INFO"), json_output=bool(settings.get("LOG_JSON", False)))

    app = Flask(__name__)
    app.secret_key = settings.get("SECRET_KEY")
    app.config["DEBUG"] = bool(settings.get("DEBUG", False))
    app.config["TESTING"] = bool(settings.get("TESTING", False))

    if container is None:
        db_config = settings["DB_CONFIG"]
        logger.info(
            "Connecting to %s@%s:%s/%s",
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        container = build_container(db_config=db_config, settings=settings)

    register_attendance(app, container)
    register_admin_attendance(app, container)
    register_activities(app, container)

    return app
