"""Credential and CSRF helpers for the API.

Passwords go through Flask-Bcrypt. The CSRF token is a random value kept in
the signed session cookie; clients echo it back in ``X-CSRF-Token`` on every
write.
"""

from __future__ import annotations

import logging
import secrets

from flask import session

from gestaomei.extensions import bcrypt

logger = logging.getLogger(__name__)

CSRF_SESSION_KEY = "_csrf_token"
CSRF_HEADER = "X-CSRF-Token"


def hash_password(plain_password: str) -> str:
    return bcrypt.generate_password_hash(plain_password).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """False for a wrong password and for a stored value that is not a bcrypt hash."""
    try:
        return bcrypt.check_password_hash(hashed_password, plain_password)
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def csrf_token() -> str:
    token = session.get(CSRF_SESSION_KEY)
    if not token:
        token = secrets.token_hex(32)
        session[CSRF_SESSION_KEY] = token
    return token


def rotate_csrf_token() -> None:
    session.pop(CSRF_SESSION_KEY, None)


def csrf_token_matches(token: str | None) -> bool:
    expected = session.get(CSRF_SESSION_KEY)
    if not token or not expected:
        return False
    return secrets.compare_digest(token, expected)
