from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .attendance.model import SemesterWindow
from .common.datetime_utils import now_local, parse_iso_date
from .container import Container, build_container
from .core.constants import DEFAULT_LEAVE_RATIO, DEFAULT_SESSION_DAYS
from .courses.model import CourseCatalog
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables
from .database.connection import DBConfig
from .users.controller import register as register_users
from .users.oauth import init_oauth

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def semester_from_settings(settings) -> SemesterWindow:
    return SemesterWindow(
        start=parse_iso_date(getattr(settings, "SEMESTER_START")),
        end=parse_iso_date(getattr(settings, "SEMESTER_END")),
    )


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the Flask app.

    ``container`` lets callers (tests) supply their own repositories; otherwise the
    MySQL-backed container is built from the active settings module.
    """
    load_dotenv(override=False)
    app = Flask(__name__, template_folder="../../../templates")

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)
    app.config["GOOGLE_CALLBACK_URL"] = getattr(settings, "GOOGLE_CALLBACK_URL", "")

    if app.config["DEBUG"]:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info("settings=%s db=%s", settings_module, DBConfig.from_mapping(db_config).describe())

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_users(db_config)

        container = build_container(
            db_config=db_config,
            semester=semester_from_settings(settings),
            courses=CourseCatalog.from_config(getattr(settings, "COURSES")),
            leave_ratio=int(getattr(settings, "LEAVE_RATIO", DEFAULT_LEAVE_RATIO)),
        )

    app.extensions["class_attendance"] = container
    init_oauth(
        app,
        client_id=getattr(settings, "GOOGLE_CLIENT_ID", ""),
        client_secret=getattr(settings, "GOOGLE_CLIENT_SECRET", ""),
    )

    register_users(app, container)
    register_attendance(app, container)

    @app.route("/health", endpoint="health")
    def health():
        return jsonify({"status": "OK", "timestamp": now_local().isoformat()})

    return app
