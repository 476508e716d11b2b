"""Processed payment webhook deliveries (idempotency ledger)."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from gestaomei.extensions import db


class WebhookEvent(db.Model):
    __tablename__ = "billing_webhook_event"

    id: Mapped[int] = mapped_column(primary_key=True)
    webhook_id: Mapped[str] = mapped_column(db.String(128), unique=True, nullable=False)
    user_id: Mapped[int | None] = mapped_column(db.ForeignKey("user.id"), index=True, nullable=True)
    status: Mapped[str] = mapped_column(db.String(32), nullable=False)
    subscription_id: Mapped[str | None] = mapped_column(db.String(128))
    received_at: Mapped[datetime] = mapped_column(nullable=False)
