from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from dotenv import load_dotenv
from flask import Flask

from config import load_settings

from .attendance.capture import CaptureSource
from .common.web import register_error_handlers
from .container import build_container, db_config_from
from .database.bootstrap import apply_schema, list_tables
from .matching.gateway import GenerativeBackend
from .storage.repository import DocumentStore

from .tenants.controller import register as register_tenants
from .classes.controller import register as register_classes
from .students.controller import register as register_students
from .enrollment.controller import register as register_enrollment
from .attendance.controller import register as register_attendance
from .fees.controller import register as register_fees
from .reports.controller import register as register_reports
from .assistant.controller import register as register_assistant

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Any] = None,
    *,
    documents: Optional[DocumentStore] = None,
    backend: Optional[GenerativeBackend] = None,
    capture_factory: Optional[Callable[[], CaptureSource]] = None,
) -> Flask:
    load_dotenv(override=False)
    if settings is None:
        settings = load_settings()

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=logging.DEBUG if app.config["DEBUG"] else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    container = build_container(
        settings=settings,
        documents=documents,
        backend=backend,
        capture_factory=capture_factory,
    )
    app.extensions["eduface"] = container

    if container.remote_store and documents is None:
        db_config = db_config_from(settings)
        logger.info("Record store: mysql %s", db_config.describe())
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
    elif documents is None:
        logger.info("Record store: local files under %s", getattr(settings, "LOCAL_STORE_DIR", "instance/data"))

    if not container.provider_configured:
        logger.warning("No recognition API key set; every match will come back as no-match")

    register_error_handlers(app)
    register_tenants(app, container)
    register_classes(app, container)
    register_students(app, container)
    register_enrollment(app, container)
    register_attendance(app, container)
    register_fees(app, container)
    register_reports(app, container)
    register_assistant(app, container)

    return app
