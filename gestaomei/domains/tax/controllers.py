"""MEI limit and DAS API controllers."""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request
from pydantic import ValidationError

from gestaomei.core.utils.clock import get_clock
from gestaomei.core.utils.decorators import subscription_required, validation_error_response
from gestaomei.domains.ledger.services.aggregation_service import annual_revenue
from gestaomei.domains.tax.fiscal_tables import get_fiscal_table
from gestaomei.domains.tax.mappers import map_das, map_limit, map_table
from gestaomei.domains.tax.schemas import DASRequest, LimitQuery
from gestaomei.domains.tax.services import calculate_das, evaluate_limit

tax_api_bp = Blueprint("tax_api", __name__)


@tax_api_bp.get("/limit")
@subscription_required
def limit():
    try:
        query = LimitQuery.model_validate(request.args.to_dict())
    except ValidationError as exc:
        return validation_error_response(exc)
    year = query.year or get_clock().today().year
    table = get_fiscal_table(year)
    evaluation = evaluate_limit(annual_revenue(g.current_user.id, year), table)
    return jsonify({"ok": True, "limit": map_limit(evaluation, table)})


@tax_api_bp.post("/das")
@subscription_required
def das():
    try:
        data = DASRequest.model_validate(request.get_json(silent=True) or {})
    except ValidationError as exc:
        return validation_error_response(exc)
    year = data.year or get_clock().today().year
    table = get_fiscal_table(year)
    revenue = data.revenue
    source = "estimate"
    if revenue is None:
        revenue = annual_revenue(g.current_user.id, year)
        source = "ledger"
    result = calculate_das(data.category, revenue, table)
    return jsonify({"ok": True, "das": {**map_das(result, table), "revenue_source": source}})


@tax_api_bp.get("/tables")
@subscription_required
def tables():
    registry = current_app.extensions["fiscal_tables"]
    return jsonify(
        {
            "ok": True,
            "years": registry.years,
            "tables": [map_table(registry.for_year(y)) for y in registry.years],
        }
    )
