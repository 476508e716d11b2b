"""Notification preferences. Stored only; nothing is dispatched from here."""

from __future__ import annotations

from typing import Optional

from gestaomei.core.users.models import User
from gestaomei.domains.notifications.models import NotificationSettings
from gestaomei.extensions import db

LEAD_DAY_OPTIONS = (1, 3, 5, 7)

DEFAULT_SETTINGS = {
    "upcoming_due_enabled": True,
    "weekly_report_enabled": False,
    "mei_limit_alert_enabled": True,
    "lead_days": 3,
}


def get_settings(user_id: int) -> Optional[NotificationSettings]:
    return NotificationSettings.query.filter_by(user_id=user_id).first()


def effective_settings(user: User) -> dict:
    """Stored settings, or the defaults when the user never saved any."""
    stored = get_settings(user.id)
    if not stored:
        return {**DEFAULT_SETTINGS, "notification_email": user.email, "is_default": True}
    return {
        "upcoming_due_enabled": stored.upcoming_due_enabled,
        "weekly_report_enabled": stored.weekly_report_enabled,
        "mei_limit_alert_enabled": stored.mei_limit_alert_enabled,
        "lead_days": stored.lead_days,
        "notification_email": stored.notification_email or user.email,
        "is_default": False,
    }


def upsert_settings(user: User, **fields) -> dict:
    lead_days = fields.get("lead_days")
    if lead_days is not None and lead_days not in LEAD_DAY_OPTIONS:
        raise ValueError("invalid_lead_days")
    settings = get_settings(user.id)
    if not settings:
        settings = NotificationSettings(user_id=user.id, notification_email=user.email, **DEFAULT_SETTINGS)
        db.session.add(settings)
    for key, value in fields.items():
        if value is not None and hasattr(settings, key):
            setattr(settings, key, value)
    db.session.commit()
    return effective_settings(user)
