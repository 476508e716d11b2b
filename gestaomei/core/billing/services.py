"""Subscription lifecycle: trial access, state transitions, payment webhooks."""

from __future__ import annotations

import hashlib
import hmac
import logging
import math
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from gestaomei.core.billing.models import WebhookEvent
from gestaomei.core.users.models import User
from gestaomei.extensions import db

logger = logging.getLogger(__name__)

STATUS_TRIAL = "trial"
STATUS_ACTIVE = "active"
STATUS_EXPIRED = "expired"
STATUS_CANCELED = "canceled"

ALLOWED_TRANSITIONS = {
    (STATUS_TRIAL, STATUS_ACTIVE),
    (STATUS_TRIAL, STATUS_EXPIRED),
    (STATUS_ACTIVE, STATUS_CANCELED),
    (STATUS_CANCELED, STATUS_ACTIVE),
}

WEBHOOK_APPROVED = "approved"
WEBHOOK_CANCELED = "canceled"

SECONDS_PER_DAY = 86400

DUPLICATE_RESULT = {"duplicate": True, "applied": False}


class InvalidTransition(Exception):
    """Raised when a subscription status change is not part of the lifecycle."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"cannot move subscription from {current} to {target}")
        self.current = current
        self.target = target


class WebhookUserNotFound(Exception):
    pass


def transition(user: User, target: str) -> None:
    """Move ``user`` to ``target`` if the lifecycle allows it. Does not commit."""
    current = user.subscription_status
    if (current, target) not in ALLOWED_TRANSITIONS:
        raise InvalidTransition(current, target)
    user.subscription_status = target


def trial_days_remaining(user: User, now: datetime) -> Optional[int]:
    """Whole days left in the trial, rounded up; ``None`` when no trial is set."""
    if user.trial_expires_at is None:
        return None
    seconds = (user.trial_expires_at - now).total_seconds()
    return math.ceil(seconds / SECONDS_PER_DAY)


def has_access(user: User, now: datetime) -> bool:
    if user.subscription_status == STATUS_ACTIVE:
        return True
    if user.subscription_status == STATUS_TRIAL:
        return user.trial_expires_at is None or now < user.trial_expires_at
    return False


def plan_summary(user: User, now: datetime) -> dict:
    remaining = trial_days_remaining(user, now)
    return {
        "subscription_status": user.subscription_status,
        "has_access": has_access(user, now),
        "trial_start": user.trial_start.isoformat() if user.trial_start else None,
        "trial_expires_at": user.trial_expires_at.isoformat() if user.trial_expires_at else None,
        "trial_days_remaining": max(remaining, 0) if remaining is not None else None,
        "last_charge_date": user.last_charge_date.isoformat() if user.last_charge_date else None,
    }


def expire_trials(now: datetime) -> int:
    """Move every lapsed trial to ``expired``. Returns the number of accounts changed."""
    lapsed = User.query.filter(
        User.subscription_status == STATUS_TRIAL,
        User.trial_expires_at.isnot(None),
        User.trial_expires_at <= now,
    ).all()
    for user in lapsed:
        transition(user, STATUS_EXPIRED)
    db.session.commit()
    if lapsed:
        logger.info("Expired %d trial account(s)", len(lapsed))
    return len(lapsed)


def compute_signature(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, body: bytes, signature: str | None) -> bool:
    if not secret or not signature:
        return False
    return hmac.compare_digest(compute_signature(secret, body), signature.strip().lower())


def _already_processed(webhook_id: str) -> bool:
    return WebhookEvent.query.filter_by(webhook_id=webhook_id).first() is not None


def process_webhook(
    *,
    webhook_id: str,
    email: str,
    status: str,
    subscription_id: str | None,
    now: datetime,
) -> dict:
    """Apply a verified payment notification exactly once per ``webhook_id``."""
    if _already_processed(webhook_id):
        logger.info("Ignoring duplicate webhook %s", webhook_id)
        return DUPLICATE_RESULT

    user = User.query.filter(func.lower(User.email) == email.strip().lower()).first()
    if not user:
        raise WebhookUserNotFound(email)

    applied = False
    if status == WEBHOOK_APPROVED:
        if user.subscription_status != STATUS_ACTIVE:
            transition(user, STATUS_ACTIVE)
        user.last_charge_date = now.date()
        if subscription_id:
            user.subscription_id = subscription_id
        applied = True
    elif status == WEBHOOK_CANCELED and user.subscription_status == STATUS_ACTIVE:
        transition(user, STATUS_CANCELED)
        applied = True

    db.session.add(
        WebhookEvent(
            webhook_id=webhook_id,
            user_id=user.id,
            status=status,
            subscription_id=subscription_id,
            received_at=now,
        )
    )
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent delivery with the same id committed first.
        db.session.rollback()
        logger.info("Ignoring duplicate webhook %s (concurrent delivery)", webhook_id)
        return DUPLICATE_RESULT
    logger.info(
        "Webhook %s (%s) for user %s applied=%s status=%s",
        webhook_id,
        status,
        user.id,
        applied,
        user.subscription_status,
    )
    return {"duplicate": False, "applied": applied, "subscription_status": user.subscription_status}
