"""Payables and receivables API controllers."""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request
from pydantic import ValidationError

from gestaomei.core.utils.clock import get_clock
from gestaomei.core.utils.decorators import (
    csrf_protected,
    subscription_required,
    validation_error_response,
)
from gestaomei.domains.ledger.mappers import map_payable, map_receivable
from gestaomei.domains.ledger.models.ledger_models import Payable, Receivable
from gestaomei.domains.ledger.schemas.ledger_schemas import (
    BillListQuery,
    PayableCreate,
    ReceivableCreate,
)
from gestaomei.domains.ledger.services import ledger_service

bills_api_bp = Blueprint("ledger_bills_api", __name__)

BILL_KINDS = {
    "payables": (Payable, PayableCreate, map_payable, "payable"),
    "receivables": (Receivable, ReceivableCreate, map_receivable, "receivable"),
}


def _list(kind: str):
    model, _, mapper, _ = BILL_KINDS[kind]
    try:
        filters = BillListQuery.model_validate(request.args.to_dict())
    except ValidationError as exc:
        return validation_error_response(exc)
    bills = ledger_service.list_open_bills(
        model,
        g.current_user.id,
        today=get_clock().today(),
        view=filters.view,
        window_days=current_app.config["ALERT_WINDOW_DAYS"],
    )
    total = sum((b.amount for b in bills), start=0)
    return jsonify({"ok": True, "items": [mapper(b) for b in bills], "total": float(total)})


def _create(kind: str):
    model, schema, mapper, key = BILL_KINDS[kind]
    try:
        data = schema.model_validate(request.get_json(silent=True) or {})
    except ValidationError as exc:
        return validation_error_response(exc)
    bill = ledger_service.insert(model, g.current_user.id, today=get_clock().today(), **data.model_dump())
    return jsonify({"ok": True, key: mapper(bill)}), 201


def _delete(kind: str, bill_id: int):
    model = BILL_KINDS[kind][0]
    if not ledger_service.delete(model, g.current_user.id, bill_id):
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify({"ok": True})


def _settle(kind: str, bill_id: int):
    model, _, mapper, key = BILL_KINDS[kind]
    bill = ledger_service.settle(model, g.current_user.id, bill_id, today=get_clock().today())
    if not bill:
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify({"ok": True, key: mapper(bill)})


@bills_api_bp.get("/payables")
@subscription_required
def list_payables():
    return _list("payables")


@bills_api_bp.post("/payables")
@subscription_required
@csrf_protected
def create_payable():
    return _create("payables")


@bills_api_bp.delete("/payables/<int:bill_id>")
@subscription_required
@csrf_protected
def delete_payable(bill_id: int):
    return _delete("payables", bill_id)


@bills_api_bp.post("/payables/<int:bill_id>/pay")
@subscription_required
@csrf_protected
def pay_payable(bill_id: int):
    return _settle("payables", bill_id)


@bills_api_bp.get("/receivables")
@subscription_required
def list_receivables():
    return _list("receivables")


@bills_api_bp.post("/receivables")
@subscription_required
@csrf_protected
def create_receivable():
    return _create("receivables")


@bills_api_bp.delete("/receivables/<int:bill_id>")
@subscription_required
@csrf_protected
def delete_receivable(bill_id: int):
    return _delete("receivables", bill_id)


@bills_api_bp.post("/receivables/<int:bill_id>/receive")
@subscription_required
@csrf_protected
def receive_receivable(bill_id: int):
    return _settle("receivables", bill_id)
