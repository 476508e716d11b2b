from datetime import date
from decimal import Decimal

import pytest

from gestaomei.domains.ledger.models.ledger_models import ExpenseEntry, IncomeEntry, Payable
from gestaomei.domains.ledger.services import ledger_service

pytestmark = pytest.mark.integration


@pytest.fixture()
def seeded(make_user, auth_headers, freeze):
    freeze(date(2024, 5, 20))
    user = make_user()
    ledger_service.insert(
        IncomeEntry,
        user.id,
        today=date(2024, 4, 10),
        description="Serviço abril",
        amount=Decimal("1000.00"),
        date=date(2024, 4, 10),
        category="Prestação Serviços",
    )
    ledger_service.insert(
        IncomeEntry,
        user.id,
        today=date(2024, 5, 2),
        description="Venda maio",
        amount=Decimal("1500.00"),
        date=date(2024, 5, 2),
        category="Venda Produtos",
        received=True,
    )
    ledger_service.insert(
        ExpenseEntry,
        user.id,
        today=date(2024, 5, 5),
        description="Aluguel",
        amount=Decimal("400.00"),
        date=date(2024, 5, 5),
        category="Aluguel",
    )
    ledger_service.insert(
        Payable,
        user.id,
        today=date(2024, 5, 20),
        description="Fornecedor",
        amount=Decimal("250.00"),
        due_date=date(2024, 6, 1),
        category="Fornecedores",
    )
    return auth_headers(user)


def test_dashboard_current_month(client, seeded):
    resp = client.get("/api/dashboard", headers=seeded)
    assert resp.status_code == 200
    body = resp.get_json()

    assert body["summary"]["month"] == "2024-05"
    assert body["summary"]["revenue"] == 1500.0
    assert body["summary"]["previous_revenue"] == 1000.0
    assert body["summary"]["profit"] == 1100.0
    assert body["breakdown"]["revenue_received"] == 1500.0
    assert body["breakdown"]["expense_pending"] == 400.0
    assert len(body["series"]) == 6
    assert body["income_by_category"] == [{"category": "Venda Produtos", "amount": 1500.0}]

    limit = body["mei_limit"]
    assert limit["revenue"] == 2500.0
    assert limit["ceiling"] == 81000.0
    assert limit["status"] == "within"
    assert [p["due_date"] for p in body["upcoming_payables"]] == ["2024-06-01"]
    assert body["upcoming_receivables"] == []


def test_dashboard_other_month(client, seeded):
    body = client.get("/api/dashboard?month=2024-04", headers=seeded).get_json()
    assert body["summary"]["month"] == "2024-04"
    assert body["summary"]["revenue"] == 1000.0
    assert body["series"][-1]["month"] == "2024-04"


def test_dashboard_before_first_fiscal_year(client, make_user, auth_headers, freeze):
    freeze(date(2024, 5, 20))
    user = make_user()
    ledger_service.insert(
        IncomeEntry,
        user.id,
        today=date(2023, 6, 10),
        description="Venda antiga",
        amount=Decimal("300.00"),
        date=date(2023, 6, 10),
        category="Venda Produtos",
    )
    resp = client.get("/api/dashboard?month=2023-06", headers=auth_headers(user))
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["mei_limit"] is None
    assert body["summary"]["revenue"] == 300.0
    assert body["series"][-1]["month"] == "2023-06"


def test_dashboard_rejects_bad_month(client, seeded):
    resp = client.get("/api/dashboard?month=2024-13", headers=seeded)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"

    for month in ("0001-01", "1999-12", "2101-01"):
        resp = client.get(f"/api/dashboard?month={month}", headers=seeded)
        assert resp.status_code == 400


def test_reports(client, seeded):
    resp = client.get("/api/reports?start=2024-05-01&end=2024-05-31", headers=seeded)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["report"]["revenue"] == 1500.0
    assert body["report"]["balance"] == 1100.0
    assert body["series"][-1]["month"] == "2024-05"

    assert client.get("/api/reports?start=2024-05-31&end=2024-05-01", headers=seeded).status_code == 400
    assert client.get("/api/reports", headers=seeded).status_code == 400
    assert client.get("/api/reports?start=0001-01-01&end=0001-01-31", headers=seeded).status_code == 400


def test_tax_limit_uses_ledger_revenue(client, seeded):
    limit = client.get("/api/tax/limit", headers=seeded).get_json()["limit"]
    assert limit["year"] == 2024
    assert limit["is_fallback"] is False
    assert limit["revenue"] == 2500.0
    assert limit["remaining"] == 78500.0
    assert limit["percentage_used"] == pytest.approx(3.0864, abs=1e-4)

    later = client.get("/api/tax/limit?year=2026", headers=seeded).get_json()["limit"]
    assert later["is_fallback"] is True
    assert later["revenue"] == 0.0


def test_das_estimate_and_ledger(client, seeded):
    resp = client.post("/api/tax/das", json={"category": "commerce", "revenue": "50000"}, headers=seeded)
    assert resp.status_code == 200
    das = resp.get_json()["das"]
    assert das["monthly"] == 71.6
    assert das["annual"] == pytest.approx(859.2)
    assert das["effective_rate"] == pytest.approx(1.7184)
    assert das["revenue_source"] == "estimate"

    das = client.post("/api/tax/das", json={"category": "services"}, headers=seeded).get_json()["das"]
    assert das["revenue_source"] == "ledger"
    assert das["revenue"] == 2500.0


def test_das_errors(client, seeded):
    resp = client.post("/api/tax/das", json={"category": "mining", "revenue": "100"}, headers=seeded)
    assert resp.status_code == 500
    assert resp.get_json()["error"] == "configuration_error"

    resp = client.post("/api/tax/das", json={"category": "commerce", "revenue": "-1"}, headers=seeded)
    assert resp.status_code == 400


def test_tax_tables(client, seeded):
    body = client.get("/api/tax/tables", headers=seeded).get_json()
    assert 2024 in body["years"]
    table = next(t for t in body["tables"] if t["year"] == 2024)
    assert table["annual_ceiling"] == 81000.0
    assert table["das_monthly"]["commerce_and_services"] == 76.6
