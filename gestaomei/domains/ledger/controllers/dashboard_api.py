"""Dashboard and period report API."""

from __future__ import annotations

import datetime as dt

from flask import Blueprint, current_app, g, jsonify, request
from pydantic import ValidationError

from gestaomei.core.utils.clock import get_clock
from gestaomei.core.utils.decorators import subscription_required, validation_error_response
from gestaomei.domains.ledger.mappers import plain_numbers
from gestaomei.domains.ledger.schemas.ledger_schemas import PeriodQuery
from gestaomei.domains.ledger.services import aggregation_service
from gestaomei.domains.ledger.services.dashboard_service import get_dashboard

dashboard_api_bp = Blueprint("ledger_dashboard_api", __name__)


MIN_YEAR, MAX_YEAR = 2000, 2100


def _parse_month(raw: str | None) -> dt.date | None:
    if not raw:
        return None
    month = dt.datetime.strptime(raw, "%Y-%m").date()
    if not MIN_YEAR <= month.year <= MAX_YEAR:
        raise ValueError(f"year must be between {MIN_YEAR} and {MAX_YEAR}")
    return month


@dashboard_api_bp.get("/dashboard")
@subscription_required
def dashboard():
    try:
        month = _parse_month(request.args.get("month"))
    except ValueError:
        return (
            jsonify(
                {
                    "ok": False,
                    "error": "validation_error",
                    "details": [{"loc": ["month"], "msg": f"expected YYYY-MM with year {MIN_YEAR}..{MAX_YEAR}"}],
                }
            ),
            400,
        )
    data = get_dashboard(
        g.current_user.id,
        today=get_clock().today(),
        month=month,
        due_soon_days=current_app.config["DUE_SOON_DAYS"],
    )
    return jsonify({"ok": True, **plain_numbers(data)})


@dashboard_api_bp.get("/reports")
@subscription_required
def reports():
    try:
        period = PeriodQuery.model_validate(request.args.to_dict())
    except ValidationError as exc:
        return validation_error_response(exc)
    user_id = g.current_user.id
    report = aggregation_service.period_report(user_id, period.start, period.end)
    series = aggregation_service.monthly_series(user_id, period.end, months=6)
    return jsonify({"ok": True, "report": plain_numbers(report), "series": plain_numbers(series)})
