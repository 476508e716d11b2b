"""Subscription plan and payment webhook endpoints."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required
from pydantic import ValidationError

from gestaomei.core.billing.schemas import WebhookPayload
from gestaomei.core.billing.services import (
    InvalidTransition,
    WebhookUserNotFound,
    plan_summary,
    process_webhook,
    verify_signature,
)
from gestaomei.core.users.models import User
from gestaomei.core.utils.clock import get_clock
from gestaomei.core.utils.decorators import validation_error_response
from gestaomei.extensions import db, limiter

billing_api_bp = Blueprint("billing_api", __name__)

SIGNATURE_HEADER = "X-Webhook-Signature"


@billing_api_bp.get("/plan")
@jwt_required()
def plan():
    # Reachable without an active subscription so expired users can see why.
    user = db.session.get(User, int(get_jwt_identity()))
    if not user:
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify({"ok": True, "plan": plan_summary(user, get_clock().now())})


@billing_api_bp.post("/webhook")
@limiter.limit("60/minute")
def webhook():
    body = request.get_data(cache=True)
    secret = current_app.config.get("BILLING_WEBHOOK_SECRET") or ""
    if not verify_signature(secret, body, request.headers.get(SIGNATURE_HEADER)):
        current_app.logger.warning("Rejected billing webhook with invalid signature")
        return jsonify({"ok": False, "error": "invalid_signature"}), 401

    try:
        data = WebhookPayload.model_validate(request.get_json(silent=True) or {})
    except ValidationError as exc:
        return validation_error_response(exc)

    try:
        result = process_webhook(
            webhook_id=data.webhook_id,
            email=data.email,
            status=data.status,
            subscription_id=data.subscription_id,
            now=get_clock().now(),
        )
    except WebhookUserNotFound:
        return jsonify({"ok": False, "error": "not_found"}), 404
    except InvalidTransition as exc:
        db.session.rollback()
        return jsonify({"ok": False, "error": "invalid_transition", "message": str(exc)}), 409
    return jsonify({"ok": True, **result})
