from gestaomei.domains.ledger.services import ledger_service
from gestaomei.domains.ledger.services.aggregation_service import (
    annual_revenue,
    category_breakdown,
    month_bounds,
    month_breakdown,
    monthly_series,
    monthly_summary,
    percentage_change,
    period_report,
    sum_in_range,
)

__all__ = [
    "ledger_service",
    "sum_in_range",
    "percentage_change",
    "month_bounds",
    "monthly_summary",
    "month_breakdown",
    "monthly_series",
    "category_breakdown",
    "period_report",
    "annual_revenue",
]
