"""Model and aggregate to JSON-ready dict mappers for the ledger domain."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from gestaomei.domains.ledger.models.ledger_models import (
    ExpenseEntry,
    IncomeEntry,
    Payable,
    Receivable,
)


def plain_numbers(value: Any) -> Any:
    """Recursively turn Decimals into floats so aggregates can be jsonified."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {k: plain_numbers(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [plain_numbers(v) for v in value]
    return value


def map_income(entry: IncomeEntry) -> dict:
    return {
        "id": entry.id,
        "description": entry.description,
        "amount": float(entry.amount),
        "date": entry.date.isoformat(),
        "category": entry.category,
        "received": entry.received,
        "received_date": entry.received_date.isoformat() if entry.received_date else None,
    }


def map_expense(entry: ExpenseEntry) -> dict:
    return {
        "id": entry.id,
        "description": entry.description,
        "amount": float(entry.amount),
        "date": entry.date.isoformat(),
        "category": entry.category,
        "paid": entry.paid,
        "paid_date": entry.paid_date.isoformat() if entry.paid_date else None,
    }


def map_payable(bill: Payable) -> dict:
    return {
        "id": bill.id,
        "description": bill.description,
        "amount": float(bill.amount),
        "due_date": bill.due_date.isoformat(),
        "category": bill.category,
        "paid": bill.paid,
    }


def map_receivable(bill: Receivable) -> dict:
    return {
        "id": bill.id,
        "description": bill.description,
        "amount": float(bill.amount),
        "due_date": bill.due_date.isoformat(),
        "received": bill.received,
    }
