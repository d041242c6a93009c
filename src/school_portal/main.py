from __future__ import annotations

import importlib
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .container import Container, build_container
from .core.logger import get_logger
from .database.bootstrap import apply_schema
from .messages.controller import register as register_messages
from .settings import get_settings_module

log = get_logger("main")


def create_app(*, settings_module: Optional[str] = None, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    db_config = getattr(settings, "DB_CONFIG")
    store_kind = getattr(settings, "MESSAGE_STORE", "mysql")

    log.info("settings=%s store=%s", settings_module, store_kind)

    if container is None:
        if store_kind == "mysql" and bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[2] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            log.info("schema ready at %s@%s/%s", db_config.get("user"), db_config.get("host"), db_config.get("database"))
        container = build_container(db_config=db_config, message_store=store_kind)

    register_messages(app, container)
    register_attendance(app, container)

    return app
