"""Auth HTTP controllers (API only)."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request, session
from flask_jwt_extended import (
    create_access_token,
    get_jwt,
    get_jwt_identity,
    jwt_required,
)
from pydantic import ValidationError

from gestaomei.core.auth.auth_service import (
    authenticate_user,
    issue_tokens,
    register_user,
    revoke_refresh_token,
)
from gestaomei.core.auth.security import csrf_token, rotate_csrf_token
from gestaomei.core.auth.schemas import RegisterRequest
from gestaomei.core.users.models import User
from gestaomei.core.users.schemas import LoginRequest, serialize_user
from gestaomei.core.utils.clock import get_clock
from gestaomei.core.utils.decorators import csrf_protected, jsonable_errors
from gestaomei.extensions import db, limiter

auth_bp = Blueprint("auth_api", __name__)


@auth_bp.post("/register")
@limiter.limit("5/minute")
def register():
    payload = request.get_json(silent=True) or {}
    try:
        data = RegisterRequest.model_validate(payload)
    except ValidationError as exc:
        return (
            jsonify({"ok": False, "error": "bad_request", "details": jsonable_errors(exc)}),
            400,
        )
    try:
        user = register_user(
            data,
            now=get_clock().now(),
            trial_days=current_app.config["TRIAL_DAYS"],
        )
    except ValueError as exc:
        if str(exc) == "email_already_exists":
            return jsonify({"ok": False, "error": "email_already_exists"}), 400
        return jsonify({"ok": False, "error": "registration_failed"}), 400
    return jsonify({"ok": True, "user": serialize_user(user).model_dump(mode="json")}), 201


@auth_bp.post("/login")
@limiter.limit("10/minute")
def login():
    # Ensure login is stateless even if a stale Flask session cookie is present.
    session.clear()
    payload = request.get_json(silent=True) or {}
    try:
        data = LoginRequest.model_validate(payload)
    except ValidationError as exc:
        return (
            jsonify({"ok": False, "error": "bad_request", "details": jsonable_errors(exc)}),
            400,
        )
    user = authenticate_user(data.email, data.password)
    if not user:
        return jsonify({"ok": False, "error": "invalid_credentials"}), 401
    tokens = issue_tokens(user)
    return jsonify(
        {
            "ok": True,
            **tokens,
            "csrf_token": csrf_token(),
            "user": serialize_user(user).model_dump(mode="json"),
        }
    )


@auth_bp.post("/refresh")
@jwt_required(refresh=True)
@limiter.limit("30/minute")
def refresh():
    identity = str(get_jwt_identity())
    new_access = create_access_token(identity=identity)
    return jsonify({"ok": True, "access_token": new_access})


@auth_bp.post("/logout")
@jwt_required(refresh=True)
@csrf_protected
def logout():
    jti = get_jwt().get("jti")
    if jti:
        revoke_refresh_token(jti)
    rotate_csrf_token()
    return jsonify({"ok": True})


@auth_bp.get("/me")
@jwt_required()
def me():
    user = db.session.get(User, int(get_jwt_identity()))
    if not user:
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify({"ok": True, "user": serialize_user(user).model_dump(mode="json")})
