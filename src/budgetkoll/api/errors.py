"""Translate domain errors into JSON responses."""

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from budgetkoll.domain.errors import (
    AuthenticationError,
    ConflictError,
    DependencyError,
    DomainError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_CODES = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (NotFoundError, 404),
    (ConflictError, 409),
    (DependencyError, 409),
)


def status_for(error: Exception) -> int:
    """HTTP status for a domain (or plain value) error."""
    for error_type, status in STATUS_CODES:
        if isinstance(error, error_type):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    """Install handlers so every error leaves as ``{"error": message}``."""

    @app.errorhandler(DomainError)
    def handle_domain_error(error):
        return jsonify({"error": str(error)}), status_for(error)

    @app.errorhandler(ValueError)
    def handle_value_error(error):
        return jsonify({"error": str(error)}), status_for(error)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({"error": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500
