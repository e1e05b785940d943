from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.exceptions import AuthenticationError, DomainError, UsernameTakenError, ValidationError

logger = logging.getLogger(__name__)


def json_body() -> dict[str, Any]:
    """Request JSON as a dict; an empty body counts as ``{}``."""
    if not request.get_data(cache=True):
        return {}
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header.split(" ", 1)[1].strip() or None


def make_token_required(auth_service):
    """Decorator factory: resolve the bearer token into ``g.current_user``."""

    def token_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            token = bearer_token()
            if not token:
                raise AuthenticationError("Token not provided")
            g.current_user = auth_service.resolve_token(token)
            return view(*args, **kwargs)

        return wrapper

    return token_required


def optional_caller(auth_service):
    """The authenticated user when a token was sent, else ``None``."""
    token = bearer_token()
    if not token:
        return None
    return auth_service.resolve_token(token)


def error_response(message: str, status: int, **extra: Any):
    payload: dict[str, Any] = {"message": message}
    payload.update(extra)
    return jsonify(payload), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        if isinstance(e, UsernameTakenError):
            return error_response(e.message, e.status_code, suggestions=e.suggestions)
        return error_response(e.message or e.__class__.__name__, e.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return error_response(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.path)
        if app.config.get("DEBUG"):
            return error_response(str(e) or "Internal server error", 500)
        return error_response("Internal server error", 500)
