from __future__ import annotations

import logging

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.actor import Actor
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ACTOR_HEADER = "X-Actor-Id"


def current_actor() -> Actor:
    """Actor for this request, as established by the upstream auth layer."""
    raw = request.headers.get(ACTOR_HEADER, "").strip()
    if not raw:
        raise AuthorizationError("Actor identity is required")
    try:
        actor_id = int(raw)
    except ValueError:
        raise AuthorizationError("Invalid actor identity")
    return Actor(
        actor_id=actor_id,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _status_for(error: DomainError) -> int:
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, AuthorizationError):
        return 403
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, ConflictError):
        return 409
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        status = _status_for(error)
        logger.info("%s %s rejected (%s): %s", request.method, request.path, status, error)
        return jsonify({"success": False, "message": str(error)}), status

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        # Routing errors (404, 405, ...) keep their own status.
        if isinstance(error, HTTPException):
            return jsonify({"success": False, "message": error.description}), error.code
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"success": False, "message": "Internal server error"}), 500
