from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class LimitQuery(BaseModel):
    year: Optional[int] = Field(default=None, ge=2000, le=2100)


class DASRequest(BaseModel):
    # Validated against the fiscal table, so an unknown category surfaces as a
    # configuration error rather than a schema error.
    category: str = Field(min_length=1, max_length=64)
    revenue: Optional[Decimal] = Field(default=None, ge=0)
    year: Optional[int] = Field(default=None, ge=2000, le=2100)
