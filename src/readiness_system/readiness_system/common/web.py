from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Dict

from flask import jsonify, request, session

from ..core.exceptions import (
    AuthorizationError,
    ConfigurationError,
    DomainError,
    NotFoundError,
    StateViolationError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (StateViolationError, 409),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConfigurationError, 500),
)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Please sign in to continue", "code": "UNAUTHENTICATED"}), 401
        return view(*args, **kwargs)

    return wrapper


def current_user_id() -> int:
    return int(session["user_id"])


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def error_response(exc: DomainError):
    status = 400
    for error_cls, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            status = code
            break

    if status >= 500:
        logger.error("Configuration error while handling %s %s", request.method, request.path, exc_info=exc)
    return jsonify({"success": False, "message": exc.message, "code": exc.code.value}), status


def server_error_response():
    logger.exception("Unhandled error while handling %s %s", request.method, request.path)
    return jsonify({"success": False, "message": "Internal server error", "code": "INTERNAL"}), 500
