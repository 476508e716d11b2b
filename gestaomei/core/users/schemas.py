"""Typed schemas for user IO."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from gestaomei.core.users.preferences import get_preferences

if TYPE_CHECKING:
    from gestaomei.core.users.models import User


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    # Response should not re-validate persisted emails
    id: int
    name: str
    email: str
    subscription_status: str
    trial_expires_at: Optional[datetime] = None
    last_charge_date: Optional[date] = None
    preferences: Dict[str, Any] = {}

    model_config = ConfigDict(from_attributes=True)


def serialize_user(user: "User") -> "UserResponse":
    """Build a UserResponse with merged preferences."""
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        subscription_status=user.subscription_status,
        trial_expires_at=user.trial_expires_at,
        last_charge_date=user.last_charge_date,
        preferences=get_preferences(user),
    )
