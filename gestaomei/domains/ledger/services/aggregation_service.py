"""Ledger aggregations: range sums, month-over-month changes, series and reports.

The pure helpers (``sum_in_range``, ``percentage_change``, ``month_bounds``,
``category_breakdown``) work on any objects exposing ``amount`` and a date
attribute. The user-scoped functions fetch through the ledger store and then
aggregate in memory; a failed fetch raises and no partial figure is returned.
"""

from __future__ import annotations

import calendar
import datetime as dt
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from gestaomei.domains.ledger.models.ledger_models import (
    ExpenseEntry,
    IncomeEntry,
    Payable,
    Receivable,
)
from gestaomei.domains.ledger.services import ledger_service

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
MAX_SERIES_MONTHS = 24


def _money(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def sum_in_range(entries: Iterable, start: dt.date, end: dt.date, *, date_attr: str = "date") -> Decimal:
    """Sum ``amount`` of entries dated within ``start..end`` (inclusive)."""
    total = ZERO
    for entry in entries:
        day = getattr(entry, date_attr)
        if start <= day <= end:
            total += _money(entry.amount)
    return total


def percentage_change(current: Decimal, previous: Decimal) -> Decimal:
    current = _money(current)
    previous = _money(previous)
    if current == 0:
        return ZERO
    return (current - previous) / max(previous, ONE) * HUNDRED


def month_bounds(day: dt.date) -> Tuple[dt.date, dt.date]:
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def shift_months(day: dt.date, months: int) -> dt.date:
    """First day of the month ``months`` away from ``day``'s month."""
    index = day.year * 12 + (day.month - 1) + months
    return dt.date(index // 12, index % 12 + 1, 1)


def category_breakdown(entries: Iterable) -> List[dict]:
    """Amount per category, largest first."""
    totals: Dict[str, Decimal] = {}
    for entry in entries:
        totals[entry.category] = totals.get(entry.category, ZERO) + _money(entry.amount)
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [{"category": name, "amount": amount} for name, amount in ranked]


def annual_revenue(user_id: int, year: int) -> Decimal:
    """Income dated in the calendar year, received or not."""
    start, end = dt.date(year, 1, 1), dt.date(year, 12, 31)
    entries = ledger_service.query(IncomeEntry, user_id, date_range=(start, end))
    return sum_in_range(entries, start, end)


def monthly_summary(user_id: int, today: dt.date) -> dict:
    start, end = month_bounds(today)
    prev_start, prev_end = month_bounds(shift_months(today, -1))

    incomes = ledger_service.query(IncomeEntry, user_id, date_range=(prev_start, end))
    expenses = ledger_service.query(ExpenseEntry, user_id, date_range=(prev_start, end))

    revenue = sum_in_range(incomes, start, end)
    prev_revenue = sum_in_range(incomes, prev_start, prev_end)
    expense = sum_in_range(expenses, start, end)
    prev_expense = sum_in_range(expenses, prev_start, prev_end)

    return {
        "month": start.strftime("%Y-%m"),
        "revenue": revenue,
        "previous_revenue": prev_revenue,
        "revenue_change_pct": percentage_change(revenue, prev_revenue),
        "expense": expense,
        "previous_expense": prev_expense,
        "expense_change_pct": percentage_change(expense, prev_expense),
        "profit": revenue - expense,
        "annual_revenue": annual_revenue(user_id, today.year),
    }


def month_breakdown(user_id: int, month: dt.date) -> dict:
    start, end = month_bounds(month)
    incomes = ledger_service.query(IncomeEntry, user_id, date_range=(start, end))
    expenses = ledger_service.query(ExpenseEntry, user_id, date_range=(start, end))
    payables = ledger_service.query(Payable, user_id, date_range=(start, end), flag=False)
    receivables = ledger_service.query(Receivable, user_id, date_range=(start, end), flag=False)

    income_totals = ledger_service.totals_by_flag(incomes)
    expense_totals = ledger_service.totals_by_flag(expenses)
    return {
        "month": start.strftime("%Y-%m"),
        "revenue": income_totals["total"],
        "revenue_received": income_totals["settled"],
        "revenue_pending": income_totals["pending"],
        "expense": expense_totals["total"],
        "expense_paid": expense_totals["settled"],
        "expense_pending": expense_totals["pending"],
        "balance": income_totals["total"] - expense_totals["total"],
        "open_payables": sum_in_range(payables, start, end, date_attr="due_date"),
        "open_receivables": sum_in_range(receivables, start, end, date_attr="due_date"),
    }


def monthly_series(user_id: int, today: dt.date, months: int = 6) -> List[dict]:
    """Revenue, expense and balance for the trailing ``months`` months, oldest first."""
    if not 1 <= months <= MAX_SERIES_MONTHS:
        raise ValueError(f"months must be between 1 and {MAX_SERIES_MONTHS}")
    first = shift_months(today, -(months - 1))
    _, last = month_bounds(today)
    incomes = ledger_service.query(IncomeEntry, user_id, date_range=(first, last))
    expenses = ledger_service.query(ExpenseEntry, user_id, date_range=(first, last))

    series = []
    for offset in range(months):
        start, end = month_bounds(shift_months(first, offset))
        revenue = sum_in_range(incomes, start, end)
        expense = sum_in_range(expenses, start, end)
        series.append(
            {
                "month": start.strftime("%Y-%m"),
                "revenue": revenue,
                "expense": expense,
                "balance": revenue - expense,
            }
        )
    return series


def period_report(user_id: int, start: dt.date, end: dt.date) -> dict:
    incomes = ledger_service.query(IncomeEntry, user_id, date_range=(start, end))
    expenses = ledger_service.query(ExpenseEntry, user_id, date_range=(start, end))
    revenue = sum_in_range(incomes, start, end)
    expense = sum_in_range(expenses, start, end)
    balance = revenue - expense
    return {
        "start": start.isoformat(),
        "end": end.isoformat(),
        "revenue": revenue,
        "expense": expense,
        "balance": balance,
        "profit_margin_pct": balance / revenue * HUNDRED if revenue > 0 else ZERO,
        "income_count": len(incomes),
        "expense_count": len(expenses),
        "income_by_category": category_breakdown(incomes),
        "expense_by_category": category_breakdown(expenses),
    }
