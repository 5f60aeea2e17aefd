"""Standardised API error responses.

Usage
-----
    from artifact_review.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Project not found")
    return api_error(E.VALIDATION_REQUIRED, "artifact_id is required")

Service exceptions (``artifact_review.core.exceptions``) are converted by the
handlers installed in ``register_error_handlers``.
"""

from __future__ import annotations

import logging

from flask import current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from artifact_review.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidArtifactTypeError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants."""

    # Validation – HTTP 400
    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"
    INVALID_ARTIFACT_TYPE = "ERR_INVALID_ARTIFACT_TYPE"

    # Auth – HTTP 401 / 403
    UNAUTHORIZED = "ERR_UNAUTHORIZED"
    FORBIDDEN = "ERR_FORBIDDEN"

    # Not-found – HTTP 404
    NOT_FOUND = "ERR_NOT_FOUND"

    # Conflict / duplicate – HTTP 409
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"

    # Any other framework HTTP error (405, 413, ...)
    HTTP_ERROR = "ERR_HTTP"

    # Server – HTTP 500
    INTERNAL = "ERR_INTERNAL"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.INVALID_ARTIFACT_TYPE: 400,
    E.UNAUTHORIZED: 401,
    E.FORBIDDEN: 403,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.INTERNAL: 500,
}

# Framework HTTP errors that have a dedicated code
_HTTP_CODES: dict[int, str] = {
    400: E.VALIDATION_INVALID,
    401: E.UNAUTHORIZED,
    403: E.FORBIDDEN,
    404: E.NOT_FOUND,
    409: E.CONFLICT_DUPLICATE,
}


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Short human-readable explanation.
    status : int, optional
        HTTP status override.  Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict, optional
        Extra structured payload (field errors, valid values, ...).

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """

    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "error": message,
        "code": code,
    }
    if details:
        body["details"] = details

    return jsonify(body), http_status


def register_error_handlers(app):
    """Map service exceptions to HTTP responses for every blueprint."""

    @app.errorhandler(InvalidArtifactTypeError)
    def _handle_invalid_type(error: InvalidArtifactTypeError):
        return api_error(E.INVALID_ARTIFACT_TYPE, str(error), details=error.details)

    @app.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @app.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        return api_error(E.NOT_FOUND, f"{error.resource} not found")

    @app.errorhandler(ForbiddenError)
    def _handle_forbidden(error: ForbiddenError):
        return api_error(E.FORBIDDEN, str(error))

    @app.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        return api_error(E.CONFLICT_DUPLICATE, f"{error.resource} already exists")

    @app.errorhandler(HTTPException)
    def _handle_http(error: HTTPException):
        return api_error(
            _HTTP_CODES.get(error.code, E.HTTP_ERROR),
            error.description or error.name,
            status=error.code,
        )

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        details = {"detail": str(error)} if current_app.debug else None
        return api_error(E.INTERNAL, "Internal server error", details=details)
