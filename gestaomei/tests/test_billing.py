import json
from datetime import date, datetime, timedelta

import pytest

pytestmark = pytest.mark.integration

from gestaomei.core.billing import services
from gestaomei.core.billing.models import WebhookEvent
from gestaomei.core.billing.services import (
    InvalidTransition,
    compute_signature,
    expire_trials,
    has_access,
    plan_summary,
    transition,
)
from gestaomei.core.users.models import User
from gestaomei.extensions import db

SECRET = "test-webhook-secret"


def _post_webhook(client, payload: dict, secret: str = SECRET):
    body = json.dumps(payload).encode("utf-8")
    return client.post(
        "/api/billing/webhook",
        data=body,
        content_type="application/json",
        headers={"X-Webhook-Signature": compute_signature(secret, body)},
    )


def test_allowed_transitions(app, make_user):
    user = make_user(status="trial")
    transition(user, "active")
    transition(user, "canceled")
    transition(user, "active")
    assert user.subscription_status == "active"


@pytest.mark.parametrize(
    "current,target",
    [
        ("trial", "canceled"),
        ("active", "expired"),
        ("active", "trial"),
        ("expired", "active"),
        ("canceled", "expired"),
    ],
)
def test_rejected_transitions(app, make_user, current, target):
    user = make_user(status=current)
    with pytest.raises(InvalidTransition):
        transition(user, target)
    assert user.subscription_status == current


def test_has_access(app, make_user):
    now = datetime(2024, 5, 2, 12, 0)
    assert has_access(make_user(status="active"), now)
    assert has_access(make_user(status="trial"), now)
    assert not has_access(make_user(status="trial"), datetime(2024, 5, 3, 12, 0))
    assert not has_access(make_user(status="expired"), now)
    assert not has_access(make_user(status="canceled"), now)


def test_plan_summary_days_remaining(app, make_user):
    user = make_user(status="trial")
    plan = plan_summary(user, datetime(2024, 5, 2, 11, 0))
    assert plan["trial_days_remaining"] == 2
    assert plan_summary(user, datetime(2024, 5, 4, 0, 0))["trial_days_remaining"] == 0


def test_expire_trials(app, make_user):
    lapsed = make_user(status="trial")
    fresh = make_user(
        status="trial",
        trial_start=datetime(2024, 5, 2, 12, 0),
        trial_expires_at=datetime(2024, 5, 4, 12, 0),
    )
    active = make_user(status="active")

    assert expire_trials(datetime(2024, 5, 3, 12, 0)) == 1
    assert db.session.get(User, lapsed.id).subscription_status == "expired"
    assert db.session.get(User, fresh.id).subscription_status == "trial"
    assert db.session.get(User, active.id).subscription_status == "active"


def test_expire_trials_cli(app, make_user, freeze):
    make_user(status="trial")
    freeze(datetime(2024, 5, 10, 12, 0))
    result = app.test_cli_runner().invoke(args=["expire-trials"])
    assert result.exit_code == 0
    assert "Expired 1 trial account(s)" in result.output


def test_webhook_rejects_bad_signature(client, make_user):
    user = make_user(status="trial")
    resp = _post_webhook(
        client,
        {"webhook_id": "wh-1", "email": user.email, "status": "approved"},
        secret="wrong-secret",
    )
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "invalid_signature"

    resp = client.post("/api/billing/webhook", json={"webhook_id": "wh-1"})
    assert resp.status_code == 401


def test_webhook_approval_activates_trial(app, client, make_user, freeze):
    freeze(datetime(2024, 5, 2, 9, 30))
    user = make_user(status="trial")
    resp = _post_webhook(
        client,
        {"webhook_id": "wh-2", "email": user.email.upper(), "status": "approved", "subscription_id": "sub-9"},
    )
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["ok"] is True
    assert body["subscription_status"] == "active"

    refreshed = db.session.get(User, user.id)
    assert refreshed.subscription_status == "active"
    assert refreshed.last_charge_date == date(2024, 5, 2)
    assert refreshed.subscription_id == "sub-9"


def test_webhook_is_idempotent(app, client, make_user):
    user = make_user(status="trial")
    payload = {"webhook_id": "wh-3", "email": user.email, "status": "approved"}
    assert _post_webhook(client, payload).status_code == 200

    resp = _post_webhook(client, payload)
    assert resp.status_code == 200
    assert resp.get_json()["duplicate"] is True
    assert WebhookEvent.query.filter_by(webhook_id="wh-3").count() == 1


def test_webhook_concurrent_duplicate_is_ignored(app, make_user, monkeypatch):
    user = make_user(status="trial")
    user_id = user.id
    db.session.add(
        WebhookEvent(webhook_id="wh-race", user_id=user_id, status="approved", received_at=datetime(2024, 5, 2))
    )
    db.session.commit()
    # Another delivery committed between the lookup and our insert.
    monkeypatch.setattr(services, "_already_processed", lambda webhook_id: False)

    result = services.process_webhook(
        webhook_id="wh-race",
        email=user.email,
        status="approved",
        subscription_id=None,
        now=datetime(2024, 5, 2, 9, 0),
    )
    assert result == {"duplicate": True, "applied": False}
    assert db.session.get(User, user_id).subscription_status == "trial"
    assert WebhookEvent.query.filter_by(webhook_id="wh-race").count() == 1


def test_webhook_unknown_user(client):
    resp = _post_webhook(client, {"webhook_id": "wh-4", "email": "ghost@example.com", "status": "approved"})
    assert resp.status_code == 404


def test_webhook_approval_for_expired_account_conflicts(app, client, make_user):
    user = make_user(status="expired")
    resp = _post_webhook(client, {"webhook_id": "wh-5", "email": user.email, "status": "approved"})
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "invalid_transition"
    assert db.session.get(User, user.id).subscription_status == "expired"


def test_webhook_cancellation(app, client, make_user):
    active = make_user(status="active")
    trial = make_user(status="trial")
    assert _post_webhook(
        client, {"webhook_id": "wh-6", "email": active.email, "status": "canceled"}
    ).status_code == 200
    resp = _post_webhook(client, {"webhook_id": "wh-7", "email": trial.email, "status": "canceled"})
    assert resp.status_code == 200
    assert resp.get_json()["applied"] is False

    assert db.session.get(User, active.id).subscription_status == "canceled"
    assert db.session.get(User, trial.id).subscription_status == "trial"


def test_webhook_validation_error(client):
    resp = _post_webhook(client, {"webhook_id": "wh-8", "email": "not-an-email", "status": "approved"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"


def test_subscription_gate(client, make_user, auth_headers, freeze):
    freeze(datetime(2024, 5, 2, 12, 0))
    trial = make_user(status="trial")
    assert client.get("/api/ledger/incomes", headers=auth_headers(trial)).status_code == 200

    freeze(datetime(2024, 5, 3, 12, 0))
    resp = client.get("/api/ledger/incomes", headers=auth_headers(trial))
    assert resp.status_code == 402
    assert resp.get_json()["error"] == "subscription_inactive"

    for status in ("expired", "canceled"):
        user = make_user(status=status)
        assert client.get("/api/tax/limit", headers=auth_headers(user)).status_code == 402

    assert client.get("/api/ledger/incomes").status_code == 401


def test_plan_endpoint_reachable_when_expired(client, make_user, auth_headers, freeze):
    freeze(datetime(2024, 5, 10, 12, 0))
    user = make_user(status="expired")
    resp = client.get("/api/billing/plan", headers=auth_headers(user))
    assert resp.status_code == 200
    plan = resp.get_json()["plan"]
    assert plan["subscription_status"] == "expired"
    assert plan["has_access"] is False
