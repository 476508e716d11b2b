from __future__ import annotations

from sqlalchemy.orm import Mapped, mapped_column

from gestaomei.core.users.models import TimestampMixin
from gestaomei.extensions import db


class NotificationSettings(db.Model, TimestampMixin):
    __tablename__ = "notification_settings"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), unique=True, nullable=False)
    upcoming_due_enabled: Mapped[bool] = mapped_column(default=True, nullable=False)
    weekly_report_enabled: Mapped[bool] = mapped_column(default=False, nullable=False)
    mei_limit_alert_enabled: Mapped[bool] = mapped_column(default=True, nullable=False)
    lead_days: Mapped[int] = mapped_column(default=3, nullable=False)
    notification_email: Mapped[str | None] = mapped_column(db.String(255))
