"""Income and expense entry API controllers."""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request
from pydantic import ValidationError

from gestaomei.core.utils.clock import get_clock
from gestaomei.core.utils.decorators import (
    csrf_protected,
    subscription_required,
    validation_error_response,
)
from gestaomei.domains.ledger.mappers import map_expense, map_income
from gestaomei.domains.ledger.models.ledger_models import ExpenseEntry, IncomeEntry
from gestaomei.domains.ledger.schemas.ledger_schemas import (
    EntryListQuery,
    ExpenseCreate,
    ExpenseUpdate,
    IncomeCreate,
    IncomeUpdate,
)
from gestaomei.domains.ledger.services import ledger_service

entries_api_bp = Blueprint("ledger_entries_api", __name__)

# (model, create schema, update schema, mapper, flag name, response key)
ENTRY_KINDS = {
    "incomes": (IncomeEntry, IncomeCreate, IncomeUpdate, map_income, "received", "income"),
    "expenses": (ExpenseEntry, ExpenseCreate, ExpenseUpdate, map_expense, "paid", "expense"),
}


def _not_found():
    return jsonify({"ok": False, "error": "not_found"}), 404


def _list(kind: str):
    model, _, _, mapper, flag_name, _ = ENTRY_KINDS[kind]
    try:
        filters = EntryListQuery.model_validate(request.args.to_dict())
    except ValidationError as exc:
        return validation_error_response(exc)
    if filters.status not in ("all", "pending", flag_name):
        details = [{"loc": ["status"], "msg": f"status must be all, pending or {flag_name}"}]
        return jsonify({"ok": False, "error": "validation_error", "details": details}), 400
    items = ledger_service.list_entries(
        model,
        g.current_user.id,
        start=filters.start,
        end=filters.end,
        category=filters.category,
        status=filters.status,
    )
    totals = ledger_service.totals_by_flag(items)
    return jsonify(
        {
            "ok": True,
            "items": [mapper(e) for e in items],
            "total": float(totals["total"]),
            f"{flag_name}_total": float(totals["settled"]),
            "pending_total": float(totals["pending"]),
        }
    )


def _create(kind: str):
    model, create_schema, _, mapper, _, key = ENTRY_KINDS[kind]
    try:
        data = create_schema.model_validate(request.get_json(silent=True) or {})
    except ValidationError as exc:
        return validation_error_response(exc)
    entry = ledger_service.insert(
        model, g.current_user.id, today=get_clock().today(), **data.model_dump()
    )
    return jsonify({"ok": True, key: mapper(entry)}), 201


def _get(kind: str, entry_id: int):
    model, _, _, mapper, _, key = ENTRY_KINDS[kind]
    entry = ledger_service.get(model, g.current_user.id, entry_id)
    if not entry:
        return _not_found()
    return jsonify({"ok": True, key: mapper(entry)})


def _update(kind: str, entry_id: int):
    model, _, update_schema, mapper, _, key = ENTRY_KINDS[kind]
    try:
        data = update_schema.model_validate(request.get_json(silent=True) or {})
    except ValidationError as exc:
        return validation_error_response(exc)
    entry = ledger_service.update(
        model,
        g.current_user.id,
        entry_id,
        today=get_clock().today(),
        **data.model_dump(exclude_unset=True),
    )
    if not entry:
        return _not_found()
    return jsonify({"ok": True, key: mapper(entry)})


def _delete(kind: str, entry_id: int):
    model = ENTRY_KINDS[kind][0]
    if not ledger_service.delete(model, g.current_user.id, entry_id):
        return _not_found()
    return jsonify({"ok": True})


def _toggle(kind: str, entry_id: int):
    model, _, _, mapper, _, key = ENTRY_KINDS[kind]
    entry = ledger_service.toggle_flag(model, g.current_user.id, entry_id, today=get_clock().today())
    if not entry:
        return _not_found()
    return jsonify({"ok": True, key: mapper(entry)})


@entries_api_bp.get("/categories")
@subscription_required
def categories():
    return jsonify(
        {
            "ok": True,
            "income": ledger_service.INCOME_CATEGORIES,
            "expense": ledger_service.EXPENSE_CATEGORIES,
        }
    )


@entries_api_bp.get("/incomes")
@subscription_required
def list_incomes():
    return _list("incomes")


@entries_api_bp.post("/incomes")
@subscription_required
@csrf_protected
def create_income():
    return _create("incomes")


@entries_api_bp.get("/incomes/<int:entry_id>")
@subscription_required
def get_income(entry_id: int):
    return _get("incomes", entry_id)


@entries_api_bp.patch("/incomes/<int:entry_id>")
@subscription_required
@csrf_protected
def update_income(entry_id: int):
    return _update("incomes", entry_id)


@entries_api_bp.delete("/incomes/<int:entry_id>")
@subscription_required
@csrf_protected
def delete_income(entry_id: int):
    return _delete("incomes", entry_id)


@entries_api_bp.post("/incomes/<int:entry_id>/toggle-received")
@subscription_required
@csrf_protected
def toggle_income_received(entry_id: int):
    return _toggle("incomes", entry_id)


@entries_api_bp.get("/expenses")
@subscription_required
def list_expenses():
    return _list("expenses")


@entries_api_bp.post("/expenses")
@subscription_required
@csrf_protected
def create_expense():
    return _create("expenses")


@entries_api_bp.get("/expenses/<int:entry_id>")
@subscription_required
def get_expense(entry_id: int):
    return _get("expenses", entry_id)


@entries_api_bp.patch("/expenses/<int:entry_id>")
@subscription_required
@csrf_protected
def update_expense(entry_id: int):
    return _update("expenses", entry_id)


@entries_api_bp.delete("/expenses/<int:entry_id>")
@subscription_required
@csrf_protected
def delete_expense(entry_id: int):
    return _delete("expenses", entry_id)


@entries_api_bp.post("/expenses/<int:entry_id>/toggle-paid")
@subscription_required
@csrf_protected
def toggle_expense_paid(entry_id: int):
    return _toggle("expenses", entry_id)
