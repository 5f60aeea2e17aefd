"""
JWT Auth Middleware: parses the Bearer token from the Authorization header
and sets ``g.jwt_user_id``.

An absent or invalid token leaves ``g.jwt_user_id`` as None; routes decorated
with ``require_auth`` turn that into a 401.
"""

import logging

import jwt as pyjwt
from flask import g, request

from artifact_review.services.jwt_service import decode_access_token

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/health",
    "/static/",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.jwt_user_id = None
        g.jwt_error = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        if path.startswith(JWT_SKIP_PREFIXES):
            return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        token = auth_header[7:]
        try:
            payload = decode_access_token(token)
            g.jwt_user_id = int(payload["sub"])
        except pyjwt.ExpiredSignatureError:
            g.jwt_error = "Token expired"
        except (pyjwt.InvalidTokenError, KeyError, ValueError) as exc:
            logger.debug("Rejected bearer token: %s", exc)
            g.jwt_error = "Invalid token"
