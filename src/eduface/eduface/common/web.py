from __future__ import annotations

import logging
from dataclasses import asdict, is_dataclass
from decimal import Decimal
from functools import wraps

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.exceptions import (
    AuthenticationError,
    CollisionError,
    DomainError,
    IntegrityError,
    NotFoundError,
    StoreUnavailableError,
    TenantRequiredError,
    ValidationError,
)
from .money import to_wire

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (AuthenticationError, 401),
    (TenantRequiredError, 401),
    (NotFoundError, 404),
    (CollisionError, 409),
    (StoreUnavailableError, 503),
    (ValidationError, 400),
    (IntegrityError, 400),
)


def status_for(error: DomainError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(error, cls):
            return status
    return 400


def to_json(value):
    if is_dataclass(value):
        value = asdict(value)
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    if isinstance(value, Decimal):
        return to_wire(value)
    return value


def ok(payload=None, status: int = 200, **extra):
    body = {"success": True}
    if payload is not None:
        body["data"] = to_json(payload)
    body.update(to_json(extra))
    return jsonify(body), status


def fail(message: str, status: int, **extra):
    body = {"success": False, "message": message}
    body.update(extra)
    return jsonify(body), status


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def tenant_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if getattr(g, "tenant", None) is None:
            return fail("Please log in to a school account first", 401)
        return view(*args, **kwargs)

    return wrapper


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = status_for(e)
        if status == 503:
            logger.error("Store unavailable: %s", e)
        return fail(str(e), status, retryable=isinstance(e, StoreUnavailableError))

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return fail(e.description or e.name, e.code or 500)
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        if bool(app.config.get("DEBUG", False)):
            return fail(f"System error: {e}", 500)
        return fail("System error", 500)
