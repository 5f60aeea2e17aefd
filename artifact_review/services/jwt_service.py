"""
JWT Service: access token generation and verification.

Access token:  15 minutes (configurable via JWT_ACCESS_EXPIRES)
Algorithm:     HS256

Token payload:
{
    "sub": "<user_id>",
    "role": "admin" | "team_lead" | "user",
    "type": "access",
    "iat": <issued_at>,
    "exp": <expires_at>,
    "jti": <unique_id>
}
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

DEFAULT_ACCESS_EXPIRES = 900
ALGORITHM = "HS256"


def _get_secret():
    return current_app.config.get("JWT_SECRET_KEY") or current_app.config["SECRET_KEY"]


def generate_access_token(user_id: int, role: str | None = None) -> str:
    now = datetime.now(timezone.utc)
    expires = current_app.config.get("JWT_ACCESS_EXPIRES", DEFAULT_ACCESS_EXPIRES)
    payload = {
        # PyJWT requires a string subject
        "sub": str(user_id),
        "type": "access",
        "iat": now,
        "exp": now + timedelta(seconds=expires),
        "jti": str(uuid.uuid4()),
    }
    if role:
        payload["role"] = role
    return jwt.encode(payload, _get_secret(), algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and expiry.

    Raises:
        jwt.ExpiredSignatureError: token expired.
        jwt.InvalidTokenError: bad signature, malformed, or not an access token.
    """
    payload = jwt.decode(token, _get_secret(), algorithms=[ALGORITHM])
    if payload.get("type") != "access":
        raise jwt.InvalidTokenError("Not an access token")
    return payload
