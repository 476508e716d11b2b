"""Alert generation for the MEI dashboard.

Alerts are computed on demand from a snapshot of the user's situation and are
never stored. Each rule looks at the snapshot on its own and returns zero or
more alerts; the final list keeps rule order and is then stably sorted by
priority.
"""

from __future__ import annotations

import datetime as dt
import math
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Callable, List, Optional, Sequence

from flask import current_app

from gestaomei.core.billing.services import SECONDS_PER_DAY, STATUS_TRIAL
from gestaomei.core.users.models import User
from gestaomei.core.users.preferences import get_last_backup_at
from gestaomei.domains.ledger.models.ledger_models import Payable, Receivable
from gestaomei.domains.ledger.services import ledger_service
from gestaomei.domains.ledger.services.aggregation_service import annual_revenue
from gestaomei.domains.notifications.services import effective_settings
from gestaomei.domains.tax.fiscal_tables import get_fiscal_table
from gestaomei.domains.tax.services import (
    STATUS_OVER_LIMIT,
    STATUS_WITHIN,
    LimitEvaluation,
    evaluate_limit,
)

CATEGORY_TAX_DUE = "tax_due"
CATEGORY_REVENUE_LIMIT = "revenue_limit"
CATEGORY_DUE_DATE = "due_date"
CATEGORY_BACKUP = "backup_reminder"
CATEGORY_TRIAL = "trial_expiring"

PRIORITY_HIGH = "high"
PRIORITY_MEDIUM = "medium"
PRIORITY_LOW = "low"
PRIORITY_RANK = {PRIORITY_HIGH: 0, PRIORITY_MEDIUM: 1, PRIORITY_LOW: 2}

DAS_DUE_DAY = 20
DAS_WARNING_FROM_DAY = 15


@dataclass(frozen=True)
class Alert:
    id: str
    category: str
    title: str
    message: str
    priority: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class AlertSnapshot:
    """Everything the rules need, gathered once per request."""

    today: dt.date
    now: dt.datetime
    limit: Optional[LimitEvaluation] = None
    payables_due: Sequence = field(default_factory=list)
    receivables_due: Sequence = field(default_factory=list)
    subscription_status: Optional[str] = None
    trial_expires_at: Optional[dt.datetime] = None
    last_backup_at: Optional[dt.datetime] = None
    window_days: int = 7
    backup_stale_days: int = 7


def format_brl(value) -> str:
    """``1234.5`` -> ``R$ 1.234,50``."""
    text = f"{Decimal(str(value)):,.2f}"
    return "R$ " + text.replace(",", "_").replace(".", ",").replace("_", ".")


def revenue_limit_rule(snap: AlertSnapshot) -> List[Alert]:
    if snap.limit is None or snap.limit.status == STATUS_WITHIN:
        return []
    over = snap.limit.status == STATUS_OVER_LIMIT
    pct = snap.limit.percentage_used
    return [
        Alert(
            id="revenue_limit",
            category=CATEGORY_REVENUE_LIMIT,
            title="Limite MEI ultrapassado" if over else "Próximo do limite MEI",
            message=(
                f"Você já utilizou {pct:.1f}% do limite anual "
                f"({format_brl(snap.limit.revenue)} de {format_brl(snap.limit.ceiling)})"
            ),
            priority=PRIORITY_HIGH if over else PRIORITY_MEDIUM,
        )
    ]


def tax_due_rule(snap: AlertSnapshot) -> List[Alert]:
    day = snap.today.day
    if not DAS_WARNING_FROM_DAY <= day <= DAS_DUE_DAY:
        return []
    due_today = day == DAS_DUE_DAY
    return [
        Alert(
            id="tax_due",
            category=CATEGORY_TAX_DUE,
            title="DAS vencendo",
            message=(
                f"O DAS vence todo dia {DAS_DUE_DAY}. "
                + ("Vence hoje!" if due_today else f"Faltam {DAS_DUE_DAY - day} dias.")
            ),
            priority=PRIORITY_HIGH if due_today else PRIORITY_MEDIUM,
        )
    ]


def _due_alert(alert_id: str, title: str, bills: Sequence, window_days: int) -> List[Alert]:
    if not bills:
        return []
    total = sum((Decimal(str(b.amount)) for b in bills), Decimal("0"))
    return [
        Alert(
            id=alert_id,
            category=CATEGORY_DUE_DATE,
            title=title,
            message=f"{len(bills)} conta(s) vencem nos próximos {window_days} dias ({format_brl(total)})",
            priority=PRIORITY_MEDIUM,
        )
    ]


def payables_due_rule(snap: AlertSnapshot) -> List[Alert]:
    return _due_alert("due_payables", "Contas a pagar", snap.payables_due, snap.window_days)


def receivables_due_rule(snap: AlertSnapshot) -> List[Alert]:
    return _due_alert("due_receivables", "Contas a receber", snap.receivables_due, snap.window_days)


def trial_expiring_rule(snap: AlertSnapshot) -> List[Alert]:
    if snap.subscription_status != STATUS_TRIAL or snap.trial_expires_at is None:
        return []
    seconds = (snap.trial_expires_at - snap.now).total_seconds()
    days_left = math.ceil(seconds / SECONDS_PER_DAY)
    if days_left > 1:
        return []
    return [
        Alert(
            id="trial_expiring",
            category=CATEGORY_TRIAL,
            title="Período de teste expirando",
            message=(
                "Seu período de teste expira hoje!"
                if days_left <= 0
                else f"Seu período de teste expira em {days_left} dia(s)"
            ),
            priority=PRIORITY_HIGH,
        )
    ]


def backup_reminder_rule(snap: AlertSnapshot) -> List[Alert]:
    last = snap.last_backup_at
    if last is not None and snap.now <= last + dt.timedelta(days=snap.backup_stale_days):
        return []
    return [
        Alert(
            id="backup_reminder",
            category=CATEGORY_BACKUP,
            title="Backup recomendado",
            message="Faça backup dos seus dados financeiros regularmente",
            priority=PRIORITY_LOW,
        )
    ]


Rule = Callable[[AlertSnapshot], List[Alert]]

RULES: List[tuple[str, Rule]] = [
    ("revenue_limit", revenue_limit_rule),
    ("tax_due", tax_due_rule),
    ("payables_due", payables_due_rule),
    ("receivables_due", receivables_due_rule),
    ("trial_expiring", trial_expiring_rule),
    ("backup_reminder", backup_reminder_rule),
]


def generate_alerts(snap: AlertSnapshot) -> List[Alert]:
    alerts: List[Alert] = []
    for _name, rule_fn in RULES:
        alerts.extend(rule_fn(snap))
    # sorted() is stable, so rule order survives within a priority.
    return sorted(alerts, key=lambda a: PRIORITY_RANK[a.priority])


def build_snapshot(user: User, *, now: dt.datetime) -> AlertSnapshot:
    today = now.date()
    window_days = current_app.config["ALERT_WINDOW_DAYS"]
    horizon = (today, today + dt.timedelta(days=window_days))

    limit = None
    if effective_settings(user)["mei_limit_alert_enabled"]:
        limit = evaluate_limit(annual_revenue(user.id, today.year), get_fiscal_table(today.year))

    return AlertSnapshot(
        today=today,
        now=now,
        limit=limit,
        payables_due=ledger_service.query(Payable, user.id, date_range=horizon, flag=False),
        receivables_due=ledger_service.query(Receivable, user.id, date_range=horizon, flag=False),
        subscription_status=user.subscription_status,
        trial_expires_at=user.trial_expires_at,
        last_backup_at=get_last_backup_at(user),
        window_days=window_days,
        backup_stale_days=current_app.config["BACKUP_STALE_DAYS"],
    )


def alerts_for_user(user: User, *, now: dt.datetime, dismissed: Sequence[str] = ()) -> List[Alert]:
    alerts = generate_alerts(build_snapshot(user, now=now))
    hidden = set(dismissed)
    return [a for a in alerts if a.id not in hidden]
