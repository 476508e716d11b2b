"""Notification settings API."""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request
from pydantic import ValidationError

from gestaomei.core.utils.decorators import (
    csrf_protected,
    subscription_required,
    validation_error_response,
)
from gestaomei.domains.notifications.schemas import NotificationSettingsUpdate
from gestaomei.domains.notifications.services import effective_settings, upsert_settings

notifications_api_bp = Blueprint("notifications_api", __name__)


@notifications_api_bp.get("/notifications")
@subscription_required
def get_notifications():
    return jsonify({"ok": True, "settings": effective_settings(g.current_user)})


@notifications_api_bp.put("/notifications")
@subscription_required
@csrf_protected
def update_notifications():
    try:
        data = NotificationSettingsUpdate.model_validate(request.get_json(silent=True) or {})
    except ValidationError as exc:
        return validation_error_response(exc)
    settings = upsert_settings(g.current_user, **data.model_dump(exclude_unset=True))
    return jsonify({"ok": True, "settings": settings})
