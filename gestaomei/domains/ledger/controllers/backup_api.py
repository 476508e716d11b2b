"""Ledger backup export API."""

from __future__ import annotations

from flask import Blueprint, g, jsonify

from gestaomei.core.utils.clock import get_clock
from gestaomei.core.utils.decorators import subscription_required
from gestaomei.domains.ledger.services.backup_service import export_ledger

backup_api_bp = Blueprint("ledger_backup_api", __name__)


@backup_api_bp.get("/backup")
@subscription_required
def backup():
    payload = export_ledger(g.current_user, now=get_clock().now())
    return jsonify({"ok": True, "backup": payload})
