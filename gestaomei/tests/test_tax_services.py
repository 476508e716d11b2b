import json
from decimal import Decimal

import pytest

pytestmark = pytest.mark.unit

from gestaomei.domains.tax.fiscal_tables import (
    FiscalConfigError,
    load_fiscal_tables,
    parse_fiscal_tables,
)
from gestaomei.domains.tax.services import (
    STATUS_NEAR_LIMIT,
    STATUS_OVER_LIMIT,
    STATUS_WITHIN,
    TaxValidationError,
    calculate_das,
    evaluate_limit,
)

RAW_TABLES = {
    "2023": {
        "annual_ceiling": "81000.00",
        "near_limit_pct": "80",
        "das_monthly": {"commerce": "67.00", "services": "71.00", "commerce_and_services": "72.00"},
    },
    "2024": {
        "annual_ceiling": "81000.00",
        "near_limit_pct": "80",
        "das_monthly": {"commerce": "71.60", "services": "71.60", "commerce_and_services": "76.60"},
    },
}


@pytest.fixture()
def tables():
    return parse_fiscal_tables(RAW_TABLES)


@pytest.fixture()
def table_2024(tables):
    return tables.for_year(2024)


def test_limit_status_buckets(table_2024):
    at_80 = evaluate_limit(64800, table_2024)
    assert at_80.percentage_used == Decimal("80")
    assert at_80.status == STATUS_WITHIN

    assert evaluate_limit(64801, table_2024).status == STATUS_NEAR_LIMIT
    assert evaluate_limit(81000, table_2024).status == STATUS_NEAR_LIMIT
    assert evaluate_limit(81001, table_2024).status == STATUS_OVER_LIMIT


def test_limit_remaining_never_negative(table_2024):
    assert evaluate_limit(50000, table_2024).remaining == Decimal("31000.00")
    assert evaluate_limit(90000, table_2024).remaining == Decimal("0")


def test_limit_is_idempotent(table_2024):
    assert evaluate_limit("12345.67", table_2024) == evaluate_limit("12345.67", table_2024)


def test_negative_revenue_rejected(table_2024):
    with pytest.raises(TaxValidationError):
        evaluate_limit(-1, table_2024)
    with pytest.raises(TaxValidationError):
        calculate_das("commerce", Decimal("-0.01"), table_2024)


def test_non_numeric_revenue_rejected(table_2024):
    with pytest.raises(TaxValidationError):
        evaluate_limit("abc", table_2024)
    with pytest.raises(TaxValidationError):
        evaluate_limit(float("nan"), table_2024)


def test_das_for_commerce(table_2024):
    result = calculate_das("commerce", 50000, table_2024)
    assert result.monthly == Decimal("71.60")
    assert result.annual == Decimal("859.20")
    assert result.effective_rate == Decimal("1.7184")


def test_das_zero_revenue_does_not_divide_by_zero(table_2024):
    result = calculate_das("services", 0, table_2024)
    assert result.annual == Decimal("859.20")
    assert result.effective_rate == Decimal("85920")


def test_das_commerce_and_services(table_2024):
    result = calculate_das("commerce_and_services", 10000, table_2024)
    assert result.monthly == Decimal("76.60")
    assert result.annual == Decimal("919.20")


def test_das_unknown_category_is_configuration_error(table_2024):
    with pytest.raises(FiscalConfigError):
        calculate_das("industry", 1000, table_2024)


def test_tables_versioned_per_year(tables):
    assert tables.years == [2023, 2024]
    assert tables.for_year(2023).das_for("commerce") == Decimal("67.00")
    assert tables.for_year(2024).is_fallback is False


def test_missing_year_falls_back_to_latest_earlier(tables):
    table = tables.for_year(2026)
    assert table.year == 2024
    assert table.is_fallback is True


def test_year_before_any_table_raises(tables):
    with pytest.raises(FiscalConfigError):
        tables.for_year(2020)


def test_malformed_tables_raise():
    with pytest.raises(FiscalConfigError):
        parse_fiscal_tables({"2024": {"annual_ceiling": "81000"}})
    with pytest.raises(FiscalConfigError):
        parse_fiscal_tables({"2024": {"annual_ceiling": "lots", "das_monthly": {}}})
    with pytest.raises(FiscalConfigError):
        parse_fiscal_tables({})


def test_load_from_file(tmp_path):
    path = tmp_path / "tables.json"
    path.write_text(json.dumps(RAW_TABLES), encoding="utf-8")
    assert load_fiscal_tables(path).years == [2023, 2024]

    with pytest.raises(FiscalConfigError):
        load_fiscal_tables(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(FiscalConfigError):
        load_fiscal_tables(broken)


def test_bundled_tables_cover_2024(app):
    table = app.extensions["fiscal_tables"].for_year(2024)
    assert table.annual_ceiling == Decimal("81000.00")
    assert table.das_for("services") == Decimal("71.60")
