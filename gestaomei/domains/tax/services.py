"""MEI revenue-limit evaluation and DAS calculation.

Both functions are pure: they take the fiscal table explicitly and never touch
the database or the clock, so they can be called with identical inputs any
number of times and return identical results.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from gestaomei.domains.tax.fiscal_tables import FiscalConfigError, FiscalTable

Number = Union[Decimal, int, float, str]

STATUS_WITHIN = "within"
STATUS_NEAR_LIMIT = "near_limit"
STATUS_OVER_LIMIT = "over_limit"

CATEGORY_COMMERCE = "commerce"
CATEGORY_SERVICES = "services"
CATEGORY_COMMERCE_AND_SERVICES = "commerce_and_services"
DAS_CATEGORIES = (CATEGORY_COMMERCE, CATEGORY_SERVICES, CATEGORY_COMMERCE_AND_SERVICES)

ONE = Decimal("1")
HUNDRED = Decimal("100")
MONTHS_PER_YEAR = 12


class TaxValidationError(ValueError):
    """Raised for inputs that can never produce a valid calculation."""

    pass


@dataclass(frozen=True)
class LimitEvaluation:
    revenue: Decimal
    ceiling: Decimal
    percentage_used: Decimal
    status: str
    remaining: Decimal


@dataclass(frozen=True)
class DASResult:
    category: str
    revenue: Decimal
    monthly: Decimal
    annual: Decimal
    effective_rate: Decimal


def _to_revenue(revenue: Number) -> Decimal:
    try:
        value = Decimal(str(revenue))
    except ArithmeticError:
        raise TaxValidationError("revenue must be numeric") from None
    if not value.is_finite():
        raise TaxValidationError("revenue must be numeric")
    if value < 0:
        raise TaxValidationError("revenue must not be negative")
    return value


def limit_status(percentage_used: Decimal, near_limit_pct: Decimal = Decimal("80")) -> str:
    if percentage_used <= near_limit_pct:
        return STATUS_WITHIN
    if percentage_used <= HUNDRED:
        return STATUS_NEAR_LIMIT
    return STATUS_OVER_LIMIT


def evaluate_limit(revenue: Number, table: FiscalTable) -> LimitEvaluation:
    """Compare annual revenue against the MEI ceiling."""
    value = _to_revenue(revenue)
    if table.annual_ceiling <= 0:
        raise FiscalConfigError(f"annual ceiling for {table.year} must be positive")
    pct = value / table.annual_ceiling * HUNDRED
    return LimitEvaluation(
        revenue=value,
        ceiling=table.annual_ceiling,
        percentage_used=pct,
        status=limit_status(pct, table.near_limit_pct),
        remaining=max(table.annual_ceiling - value, Decimal("0")),
    )


def calculate_das(category: str, revenue: Number, table: FiscalTable) -> DASResult:
    """Monthly and annual DAS for an activity category, with the effective rate on revenue."""
    value = _to_revenue(revenue)
    monthly = table.das_for(category)
    annual = monthly * MONTHS_PER_YEAR
    return DASResult(
        category=category,
        revenue=value,
        monthly=monthly,
        annual=annual,
        effective_rate=annual / max(value, ONE) * HUNDRED,
    )
