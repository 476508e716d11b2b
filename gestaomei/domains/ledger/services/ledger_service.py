"""Ledger store: user-scoped CRUD and range queries for entries and bills."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple, Type, Union

from gestaomei.domains.ledger.models.ledger_models import (
    ExpenseEntry,
    IncomeEntry,
    Payable,
    Receivable,
)
from gestaomei.extensions import db

LedgerModel = Union[IncomeEntry, ExpenseEntry, Payable, Receivable]
LedgerModelType = Type[LedgerModel]

# Which column carries the date used for range filters, and which boolean
# marks the record as settled.
DATE_COLUMN = {
    IncomeEntry: "date",
    ExpenseEntry: "date",
    Payable: "due_date",
    Receivable: "due_date",
}
FLAG_COLUMN = {
    IncomeEntry: "received",
    ExpenseEntry: "paid",
    Payable: "paid",
    Receivable: "received",
}
FLAG_DATE_COLUMN = {
    IncomeEntry: "received_date",
    ExpenseEntry: "paid_date",
}
EDITABLE_FIELDS = {
    IncomeEntry: ("description", "amount", "date", "category"),
    ExpenseEntry: ("description", "amount", "date", "category"),
    Payable: ("description", "amount", "due_date", "category"),
    Receivable: ("description", "amount", "due_date"),
}

INCOME_CATEGORIES = ["Venda Produtos", "Prestação Serviços", "Outras"]
EXPENSE_CATEGORIES = [
    "Fornecedores",
    "Aluguel",
    "Água/Luz",
    "Internet",
    "Produtos",
    "Combustível",
    "Marketing",
    "Outras",
]


class LedgerValidationError(ValueError):
    """Raised when a record would violate ledger invariants."""

    pass


def _check_amount(amount) -> Decimal:
    try:
        value = Decimal(str(amount))
    except ArithmeticError:
        raise LedgerValidationError("amount must be numeric") from None
    if not value.is_finite() or value <= 0:
        raise LedgerValidationError("amount must be greater than zero")
    return value.quantize(Decimal("0.01"))


def _apply_flag(record: LedgerModel, value: bool, today: dt.date) -> None:
    model = type(record)
    setattr(record, FLAG_COLUMN[model], value)
    date_column = FLAG_DATE_COLUMN.get(model)
    if date_column:
        setattr(record, date_column, today if value else None)


def query(
    model: LedgerModelType,
    user_id: int,
    *,
    date_range: Optional[Tuple[dt.date, dt.date]] = None,
    flag: Optional[bool] = None,
    category: Optional[str] = None,
) -> List[LedgerModel]:
    """Records owned by ``user_id``, newest first.

    ``date_range`` is inclusive on both ends and filters on the entry date for
    income/expenses and on the due date for bills.
    """
    date_col = getattr(model, DATE_COLUMN[model])
    q = model.query.filter_by(user_id=user_id)
    if date_range is not None:
        start, end = date_range
        q = q.filter(date_col >= start, date_col <= end)
    if flag is not None:
        q = q.filter(getattr(model, FLAG_COLUMN[model]) == flag)
    if category:
        q = q.filter(model.category == category)
    return q.order_by(date_col.desc(), model.id.desc()).all()


def get(model: LedgerModelType, user_id: int, record_id: int) -> Optional[LedgerModel]:
    return model.query.filter_by(id=record_id, user_id=user_id).first()


def insert(model: LedgerModelType, user_id: int, *, today: dt.date, **fields) -> LedgerModel:
    flag_name = FLAG_COLUMN[model]
    flag_value = bool(fields.pop(flag_name, False))
    record = model(user_id=user_id)
    for key in EDITABLE_FIELDS[model]:
        if key not in fields:
            raise LedgerValidationError(f"{key} is required")
        setattr(record, key, fields[key])
    record.amount = _check_amount(record.amount)
    _apply_flag(record, flag_value, today)
    db.session.add(record)
    db.session.commit()
    return record


def update(
    model: LedgerModelType, user_id: int, record_id: int, *, today: dt.date, **fields
) -> Optional[LedgerModel]:
    record = get(model, user_id, record_id)
    if not record:
        return None
    for key in EDITABLE_FIELDS[model]:
        if key in fields and fields[key] is not None:
            setattr(record, key, fields[key])
    record.amount = _check_amount(record.amount)
    flag_name = FLAG_COLUMN[model]
    if fields.get(flag_name) is not None and bool(fields[flag_name]) != getattr(record, flag_name):
        _apply_flag(record, bool(fields[flag_name]), today)
    db.session.commit()
    return record


def delete(model: LedgerModelType, user_id: int, record_id: int) -> bool:
    record = get(model, user_id, record_id)
    if not record:
        return False
    db.session.delete(record)
    db.session.commit()
    return True


def toggle_flag(model: LedgerModelType, user_id: int, record_id: int, *, today: dt.date) -> Optional[LedgerModel]:
    """Flip received/paid, stamping or clearing the settlement date."""
    record = get(model, user_id, record_id)
    if not record:
        return None
    _apply_flag(record, not getattr(record, FLAG_COLUMN[model]), today)
    db.session.commit()
    return record


def settle(model: LedgerModelType, user_id: int, record_id: int, *, today: dt.date) -> Optional[LedgerModel]:
    """Mark a bill as paid/received. Settling twice is a no-op."""
    record = get(model, user_id, record_id)
    if not record:
        return None
    if not getattr(record, FLAG_COLUMN[model]):
        _apply_flag(record, True, today)
        db.session.commit()
    return record


def list_entries(
    model: LedgerModelType,
    user_id: int,
    *,
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
    category: Optional[str] = None,
    status: str = "all",
) -> List[LedgerModel]:
    """Income/expense listing with the filters of the ledger screens."""
    date_range = None
    if start or end:
        date_range = (start or dt.date.min, end or dt.date.max)
    flag = None
    if status == "pending":
        flag = False
    elif status in ("received", "paid"):
        flag = True
    return query(model, user_id, date_range=date_range, flag=flag, category=category)


def list_open_bills(
    model: LedgerModelType,
    user_id: int,
    *,
    today: dt.date,
    view: str = "all",
    window_days: int = 7,
) -> List[LedgerModel]:
    """Unsettled payables/receivables, soonest first.

    ``overdue`` keeps bills due before today; ``upcoming`` keeps bills due in
    ``today .. today + window_days``.
    """
    date_range = None
    if view == "overdue":
        date_range = (dt.date.min, today - dt.timedelta(days=1))
    elif view == "upcoming":
        date_range = (today, today + dt.timedelta(days=window_days))
    records = query(model, user_id, date_range=date_range, flag=False)
    return sorted(records, key=lambda r: (r.due_date, r.id))


def totals_by_flag(records: Iterable[LedgerModel]) -> dict:
    """Total, settled and pending sums for a listing."""
    total = settled = Decimal("0")
    for record in records:
        total += record.amount
        if getattr(record, FLAG_COLUMN[type(record)]):
            settled += record.amount
    return {"total": total, "settled": settled, "pending": total - settled}
