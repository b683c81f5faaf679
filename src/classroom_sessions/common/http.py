from __future__ import annotations

import logging
from functools import wraps

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, DomainError
from ..users.model import Actor

logger = logging.getLogger(__name__)


def error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


def current_actor() -> Actor:
    """Build the caller from the Flask session populated by the login layer."""

    user_id = session.get("user_id")
    role = session.get("role")
    if user_id is None or role is None:
        raise AuthenticationError("Authentication required")

    try:
        return Actor(user_id=int(user_id), role=Role(str(role).lower()))
    except ValueError:
        raise AuthenticationError("Authentication required")


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        return view(current_actor(), *args, **kwargs)

    return wrapper


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        return jsonify(error_body(exc.code, str(exc))), exc.http_status

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        code = (exc.name or "HTTP_ERROR").upper().replace(" ", "_")
        return jsonify(error_body(code, exc.description or exc.name)), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify(error_body("INTERNAL_ERROR", "Internal server error")), 500
