from __future__ import annotations

from gestaomei.domains.tax.fiscal_tables import FiscalTable
from gestaomei.domains.tax.services import DASResult, LimitEvaluation


def map_limit(evaluation: LimitEvaluation, table: FiscalTable) -> dict:
    return {
        "year": table.year,
        "is_fallback": table.is_fallback,
        "revenue": float(evaluation.revenue),
        "ceiling": float(evaluation.ceiling),
        "percentage_used": round(float(evaluation.percentage_used), 4),
        "remaining": float(evaluation.remaining),
        "status": evaluation.status,
    }


def map_das(result: DASResult, table: FiscalTable) -> dict:
    return {
        "year": table.year,
        "is_fallback": table.is_fallback,
        "category": result.category,
        "revenue": float(result.revenue),
        "monthly": float(result.monthly),
        "annual": float(result.annual),
        "effective_rate": round(float(result.effective_rate), 4),
    }


def map_table(table: FiscalTable) -> dict:
    return {
        "year": table.year,
        "annual_ceiling": float(table.annual_ceiling),
        "near_limit_pct": float(table.near_limit_pct),
        "das_monthly": {k: float(v) for k, v in table.das_monthly.items()},
    }
