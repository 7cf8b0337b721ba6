from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.http import install_error_handlers, ok
from .container import Container, build_container
from .core.constants import DEFAULT_PICKUP_PASS_MAX_AGE
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .database.connection import DBConfig
from .classes.controller import register as register_classes
from .directory.controller import register as register_directory
from .fees.controller import register as register_fees
from .login_history.controller import register as register_login_history
from .notifications.controller import register as register_notifications
from .pickup.controller import register as register_pickup
from .profile.controller import register as register_profile
from .students.controller import register as register_students
from .transport.controller import register as register_transport
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(*, container: Optional[Container] = None, settings_module: Optional[str] = None) -> Flask:
    """Build the Flask app.

    Pass `container` to run against in-memory repositories (tests); the
    database bootstrap steps are skipped in that case.
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.permanent_session_lifetime = timedelta(days=7)
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["PICKUP_PASS_MAX_AGE"] = int(getattr(settings, "PICKUP_PASS_MAX_AGE", DEFAULT_PICKUP_PASS_MAX_AGE))

    if container is None:
        logger.info("settings=%s db=%s", settings_module, DBConfig.from_dict(db_config).describe())

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
            ensure_demo_users(db_config)
            logger.info("Demo seed ready")

        container = build_container(
            db_config=db_config,
            secret_key=app.secret_key,
            pickup_max_age=app.config["PICKUP_PASS_MAX_AGE"],
        )

    app.extensions["container"] = container
    install_error_handlers(app)

    @app.route("/ping", endpoint="ping")
    def ping():
        return ok(message="pong")

    register_users(app, container)
    register_login_history(app, container)
    register_profile(app, container)
    register_students(app, container)
    register_classes(app, container)
    register_directory(app, container)
    register_fees(app, container)
    register_transport(app, container)
    register_notifications(app, container)
    register_pickup(app, container)

    return app
