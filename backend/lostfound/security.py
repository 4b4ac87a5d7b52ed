from __future__ import annotations

import os
from typing import Optional, Tuple
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

# 30 days
DEFAULT_TOKEN_MAX_AGE = 60 * 60 * 24 * 30


def _serializer() -> URLSafeTimedSerializer:
    secret = os.getenv("SECRET_KEY", "change-me")
    # Salt provides namespace isolation for tokens
    return URLSafeTimedSerializer(secret_key=secret, salt="lostfound-auth")


def issue_token(user_id: int, role: str) -> str:
    """Issue a signed bearer token carrying ``{"id": int, "role": str}``."""
    return _serializer().dumps({"id": int(user_id), "role": str(role or "student")})


def verify_token(token: str) -> Tuple[Optional[int], Optional[str]]:
    """Return (user_id, role) for a valid token, else (None, None).

    Max age configurable via AUTH_TOKEN_MAX_AGE seconds.
    """
    try:
        max_age = int(os.getenv("AUTH_TOKEN_MAX_AGE", str(DEFAULT_TOKEN_MAX_AGE)))
    except ValueError:
        max_age = DEFAULT_TOKEN_MAX_AGE
    try:
        data = _serializer().loads(token, max_age=max_age)
    except (BadSignature, SignatureExpired):
        return (None, None)
    if not isinstance(data, dict):
        return (None, None)
    try:
        uid = int(data["id"]) if data.get("id") is not None else None
    except (TypeError, ValueError):
        uid = None
    role = str(data["role"]) if data.get("role") is not None else None
    return (uid, role)
