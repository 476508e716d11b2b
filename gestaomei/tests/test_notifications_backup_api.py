from datetime import date, datetime

import pytest

pytestmark = pytest.mark.integration


def test_notification_defaults(client, make_user, auth_headers):
    user = make_user()
    resp = client.get("/api/settings/notifications", headers=auth_headers(user))
    assert resp.status_code == 200
    settings = resp.get_json()["settings"]
    assert settings["is_default"] is True
    assert settings["lead_days"] == 3
    assert settings["mei_limit_alert_enabled"] is True
    assert settings["weekly_report_enabled"] is False
    assert settings["notification_email"] == user.email


def test_notification_update_is_partial(client, make_user, auth_headers):
    headers = auth_headers(make_user())
    resp = client.put(
        "/api/settings/notifications",
        json={"lead_days": 7, "weekly_report_enabled": True},
        headers=headers,
    )
    assert resp.status_code == 200
    settings = resp.get_json()["settings"]
    assert settings["is_default"] is False
    assert settings["lead_days"] == 7
    assert settings["weekly_report_enabled"] is True
    assert settings["upcoming_due_enabled"] is True

    client.put(
        "/api/settings/notifications",
        json={"notification_email": "avisos@example.com"},
        headers=headers,
    )
    settings = client.get("/api/settings/notifications", headers=headers).get_json()["settings"]
    assert settings["notification_email"] == "avisos@example.com"
    assert settings["lead_days"] == 7


@pytest.mark.parametrize(
    "payload",
    [{"lead_days": 2}, {"lead_days": "soon"}, {"notification_email": "nope"}],
)
def test_notification_validation(client, make_user, auth_headers, payload):
    resp = client.put("/api/settings/notifications", json=payload, headers=auth_headers(make_user()))
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"


def test_backup_export(client, make_user, auth_headers, freeze):
    freeze(datetime(2024, 5, 10, 12, 0))
    user = make_user()
    headers = auth_headers(user)
    client.post(
        "/api/ledger/incomes",
        json={"description": "Venda", "amount": "80.00", "date": "2024-05-09", "category": "Outras"},
        headers=headers,
    )
    client.post(
        "/api/ledger/receivables",
        json={"description": "Cliente", "amount": "40.00", "due_date": "2024-05-30"},
        headers=headers,
    )

    resp = client.get("/api/backup", headers=headers)
    assert resp.status_code == 200
    backup = resp.get_json()["backup"]
    assert backup["version"] == 1
    assert backup["exported_at"] == "2024-05-10T12:00:00"
    assert backup["account"]["email"] == user.email
    assert [i["amount"] for i in backup["incomes"]] == [80.0]
    assert backup["expenses"] == []
    assert backup["payables"] == []
    assert len(backup["receivables"]) == 1


def test_backup_clears_reminder(client, make_user, auth_headers, freeze):
    freeze(date(2024, 5, 10))
    headers = auth_headers(make_user())

    ids = [a["id"] for a in client.get("/api/alerts", headers=headers).get_json()["alerts"]]
    assert ids == ["backup_reminder"]

    assert client.get("/api/backup", headers=headers).status_code == 200
    assert client.get("/api/alerts", headers=headers).get_json()["alerts"] == []

    freeze(date(2024, 5, 18))
    ids = [a["id"] for a in client.get("/api/alerts", headers=headers).get_json()["alerts"]]
    assert ids == ["tax_due", "backup_reminder"]


def test_backup_marker_is_not_exposed_as_preference(client, make_user, auth_headers, freeze):
    freeze(datetime(2024, 5, 10, 12, 0))
    headers = auth_headers(make_user())
    assert client.get("/api/backup", headers=headers).status_code == 200

    user = client.get("/auth/me", headers=headers).get_json()["user"]
    assert user["preferences"] == {}
