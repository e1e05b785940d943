from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .auth.controller import register as register_auth
from .common.http import register_error_handlers
from .container import Container, build_container
from .courses.controller import register as register_courses
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_center, list_tables
from .students.controller import register as register_students
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(container: Optional[Container] = None, *, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.json.sort_keys = False

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        container = build_container(
            db_config=db_config,
            secret_key=app.secret_key,
            token_max_age=getattr(settings, "TOKEN_MAX_AGE", None),
            include_untagged=bool(getattr(settings, "ALLOW_UNTAGGED_RECORDS", False)),
        )
        logger.info("settings=%s db=%s", settings_module, container.conn.config.describe())

        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(container.conn, schema_path=REPO_ROOT / "database" / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(container.conn)))
        if getattr(settings, "AUTO_SEED_DB", False):
            apply_seed_sql(container.conn, seed_path=REPO_ROOT / "database" / "seed.sql")
            ensure_demo_center(container.users_repo, container.courses_repo, container.students_repo)

    app.extensions["edu_center"] = container

    register_error_handlers(app)
    register_auth(app, container)
    register_users(app, container)
    register_courses(app, container)
    register_students(app, container)

    return app
