"""JSON export of a user's ledger."""

from __future__ import annotations

import datetime as dt
import logging

from gestaomei.core.users.models import User
from gestaomei.core.users.preferences import set_last_backup_at
from gestaomei.domains.ledger.mappers import (
    map_expense,
    map_income,
    map_payable,
    map_receivable,
)
from gestaomei.domains.ledger.models.ledger_models import (
    ExpenseEntry,
    IncomeEntry,
    Payable,
    Receivable,
)
from gestaomei.domains.ledger.services import ledger_service
from gestaomei.extensions import db

logger = logging.getLogger(__name__)

BACKUP_FORMAT_VERSION = 1


def export_ledger(user: User, *, now: dt.datetime) -> dict:
    """Build the export and record ``now`` as the user's last backup."""
    payload = {
        "version": BACKUP_FORMAT_VERSION,
        "exported_at": now.isoformat(),
        "account": {"id": user.id, "name": user.name, "email": user.email},
        "incomes": [map_income(e) for e in ledger_service.query(IncomeEntry, user.id)],
        "expenses": [map_expense(e) for e in ledger_service.query(ExpenseEntry, user.id)],
        "payables": [map_payable(b) for b in ledger_service.query(Payable, user.id)],
        "receivables": [map_receivable(b) for b in ledger_service.query(Receivable, user.id)],
    }
    set_last_backup_at(user, now)
    db.session.commit()
    logger.info("User %s exported ledger backup", user.id)
    return payload
