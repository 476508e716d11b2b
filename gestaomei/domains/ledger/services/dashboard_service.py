"""Dashboard aggregation for one month of a user's ledger."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Optional

from gestaomei.domains.ledger.mappers import map_payable, map_receivable
from gestaomei.domains.ledger.models.ledger_models import IncomeEntry, Payable, Receivable
from gestaomei.domains.ledger.services import aggregation_service, ledger_service
from gestaomei.domains.tax.fiscal_tables import FiscalConfigError, get_fiscal_table
from gestaomei.domains.tax.mappers import map_limit
from gestaomei.domains.tax.services import evaluate_limit

logger = logging.getLogger(__name__)


def get_dashboard(
    user_id: int,
    *,
    today: dt.date,
    month: Optional[dt.date] = None,
    due_soon_days: int = 30,
) -> dict:
    # A past or future month is summarized as of its first day.
    reference = today
    if month is not None and (month.year, month.month) != (today.year, today.month):
        reference = month.replace(day=1)

    start, end = aggregation_service.month_bounds(reference)
    incomes = ledger_service.query(IncomeEntry, user_id, date_range=(start, end))

    summary = aggregation_service.monthly_summary(user_id, reference)
    # Ledger figures stay available for years the fiscal tables do not cover.
    mei_limit = None
    try:
        table = get_fiscal_table(reference.year)
    except FiscalConfigError as exc:
        logger.warning("Dashboard for user %s without MEI limit: %s", user_id, exc)
    else:
        mei_limit = map_limit(evaluate_limit(summary["annual_revenue"], table), table)

    horizon = (today, today + dt.timedelta(days=due_soon_days))
    upcoming_payables = sorted(
        ledger_service.query(Payable, user_id, date_range=horizon, flag=False),
        key=lambda b: (b.due_date, b.id),
    )
    upcoming_receivables = sorted(
        ledger_service.query(Receivable, user_id, date_range=horizon, flag=False),
        key=lambda b: (b.due_date, b.id),
    )

    return {
        "summary": summary,
        "breakdown": aggregation_service.month_breakdown(user_id, reference),
        "series": aggregation_service.monthly_series(user_id, reference, months=6),
        "income_by_category": aggregation_service.category_breakdown(incomes),
        "mei_limit": mei_limit,
        "upcoming_payables": [map_payable(b) for b in upcoming_payables],
        "upcoming_receivables": [map_receivable(b) for b in upcoming_receivables],
    }
