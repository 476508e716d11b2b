from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class WebhookPayload(BaseModel):
    webhook_id: str = Field(min_length=1, max_length=128)
    email: EmailStr
    status: str = Field(min_length=1, max_length=32)
    subscription_id: Optional[str] = Field(default=None, max_length=128)

    @field_validator("status")
    @classmethod
    def normalize_status(cls, v: str) -> str:
        return v.strip().lower()
