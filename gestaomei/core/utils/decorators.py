"""Reusable decorators for controllers/services."""

from __future__ import annotations

from functools import wraps
from typing import Callable, TypeVar

from flask import current_app, g, jsonify, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from pydantic import ValidationError

from gestaomei.core.auth.security import CSRF_HEADER, csrf_token_matches
from gestaomei.core.billing.services import has_access
from gestaomei.core.users.models import User
from gestaomei.core.utils.clock import get_clock
from gestaomei.extensions import db

F = TypeVar("F", bound=Callable)


def jsonable_errors(exc: ValidationError) -> list[dict]:
    errors = exc.errors()
    for err in errors:
        if "ctx" in err and isinstance(err["ctx"], dict):
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        err.pop("url", None)
    return errors


def validation_error_response(exc: ValidationError):
    return (
        jsonify({"ok": False, "error": "validation_error", "details": jsonable_errors(exc)}),
        400,
    )


def subscription_required(fn: F) -> F:
    """Require a valid JWT for a user whose trial or subscription grants access.

    The loaded user is exposed as ``g.current_user``.
    """

    @wraps(fn)
    def wrapper(*args, **kwargs):  # type: ignore[misc]
        try:
            verify_jwt_in_request()
        except (JWTExtendedException, PyJWTError):
            return jsonify({"ok": False, "error": "unauthorized"}), 401
        user = db.session.get(User, int(get_jwt_identity()))
        if not user:
            return jsonify({"ok": False, "error": "unauthorized"}), 401
        if not has_access(user, get_clock().now()):
            return (
                jsonify(
                    {
                        "ok": False,
                        "error": "subscription_inactive",
                        "subscription_status": user.subscription_status,
                    }
                ),
                402,
            )
        g.current_user = user
        return fn(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def csrf_protected(fn: F) -> F:
    """Reject writes whose CSRF header does not match the session token."""

    @wraps(fn)
    def wrapper(*args, **kwargs):  # type: ignore[misc]
        if not current_app.config.get("WTF_CSRF_ENABLED", True):
            return fn(*args, **kwargs)
        if not csrf_token_matches(request.headers.get(CSRF_HEADER)):
            return jsonify({"ok": False, "error": "csrf_failed"}), 403
        return fn(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
