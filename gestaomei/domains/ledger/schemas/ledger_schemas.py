"""Pydantic schemas for the ledger domain."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _EntryBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(gt=0, max_digits=18, decimal_places=2)
    date: dt.date
    category: str = Field(min_length=1, max_length=128)


class IncomeCreate(_EntryBase):
    received: bool = False


class ExpenseCreate(_EntryBase):
    paid: bool = False


class _EntryUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    description: Optional[str] = Field(default=None, min_length=1, max_length=255)
    amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=18, decimal_places=2)
    date: Optional[dt.date] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=128)


class IncomeUpdate(_EntryUpdate):
    received: Optional[bool] = None


class ExpenseUpdate(_EntryUpdate):
    paid: Optional[bool] = None


class PayableCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(gt=0, max_digits=18, decimal_places=2)
    due_date: dt.date
    category: str = Field(min_length=1, max_length=128)


class ReceivableCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(gt=0, max_digits=18, decimal_places=2)
    due_date: dt.date


class EntryListQuery(BaseModel):
    start: Optional[dt.date] = None
    end: Optional[dt.date] = None
    category: Optional[str] = Field(default=None, max_length=128)
    status: Literal["all", "received", "paid", "pending"] = "all"


class BillListQuery(BaseModel):
    view: Literal["all", "overdue", "upcoming"] = "all"


class PeriodQuery(BaseModel):
    start: dt.date
    end: dt.date

    @field_validator("start", "end")
    @classmethod
    def year_in_range(cls, v: dt.date) -> dt.date:
        if not 2000 <= v.year <= 2100:
            raise ValueError("year must be between 2000 and 2100")
        return v

    @field_validator("end")
    @classmethod
    def end_after_start(cls, v: dt.date, info) -> dt.date:
        start = info.data.get("start")
        if start and v < start:
            raise ValueError("end must not be before start")
        return v
