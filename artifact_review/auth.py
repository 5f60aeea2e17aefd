"""
Authentication decorator for API routes.

The JWT middleware (``middleware/jwt_auth.py``) decodes the Bearer token
and stores the user id in ``g.jwt_user_id``. ``require_auth`` loads that
user into ``g.current_user`` and rejects the request with 401 when there is
no valid token or the user no longer exists.
"""

import functools
import logging

from flask import g

from artifact_review.models import db
from artifact_review.models.user import User
from artifact_review.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def require_auth(f):
    """Decorator: require a valid Bearer token for a known user."""

    @functools.wraps(f)
    def decorated(*args, **kwargs):
        user_id = getattr(g, "jwt_user_id", None)
        if user_id is None:
            message = getattr(g, "jwt_error", None) or "Authentication required"
            return api_error(E.UNAUTHORIZED, message)

        user = db.session.get(User, user_id)
        if user is None:
            logger.warning("Token for unknown user %s", user_id, extra={"user_id": user_id})
            return api_error(E.UNAUTHORIZED, "User not found")

        g.current_user = user
        return f(*args, **kwargs)

    return decorated
