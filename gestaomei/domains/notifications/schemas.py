from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, EmailStr


class NotificationSettingsUpdate(BaseModel):
    upcoming_due_enabled: Optional[bool] = None
    weekly_report_enabled: Optional[bool] = None
    mei_limit_alert_enabled: Optional[bool] = None
    lead_days: Optional[Literal[1, 3, 5, 7]] = None
    notification_email: Optional[EmailStr] = None
