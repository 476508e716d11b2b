"""Alerts API. Dismissals live in the signed session cookie only."""

from __future__ import annotations

from flask import Blueprint, g, jsonify, session

from gestaomei.core.utils.clock import get_clock
from gestaomei.core.utils.decorators import subscription_required
from gestaomei.domains.alerts.services import alerts_for_user

alerts_api_bp = Blueprint("alerts_api", __name__)

SESSION_KEY = "dismissed_alerts"


def _dismissed() -> list[str]:
    return list(session.get(SESSION_KEY, []))


@alerts_api_bp.get("")
@subscription_required
def list_alerts():
    alerts = alerts_for_user(g.current_user, now=get_clock().now(), dismissed=_dismissed())
    return jsonify({"ok": True, "alerts": [a.to_dict() for a in alerts]})


@alerts_api_bp.post("/<alert_id>/dismiss")
@subscription_required
def dismiss_alert(alert_id: str):
    dismissed = _dismissed()
    if alert_id not in dismissed:
        dismissed.append(alert_id)
        session[SESSION_KEY] = dismissed
    return jsonify({"ok": True, "dismissed": dismissed})


@alerts_api_bp.post("/reset")
@subscription_required
def reset_alerts():
    session.pop(SESSION_KEY, None)
    return jsonify({"ok": True})
