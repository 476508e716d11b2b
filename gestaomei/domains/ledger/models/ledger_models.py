"""Ledger models: cash entries and open bills."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy.orm import Mapped, mapped_column

from gestaomei.extensions import db


class IncomeEntry(db.Model):
    __tablename__ = "ledger_income_entry"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), index=True, nullable=False)
    description: Mapped[str] = mapped_column(db.String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(db.Numeric(18, 2), nullable=False)
    date: Mapped[dt.date] = mapped_column(db.Date, index=True, nullable=False)
    category: Mapped[str] = mapped_column(db.String(128), nullable=False)
    received: Mapped[bool] = mapped_column(default=False, nullable=False)
    received_date: Mapped[dt.date | None] = mapped_column(db.Date, nullable=True)


class ExpenseEntry(db.Model):
    __tablename__ = "ledger_expense_entry"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), index=True, nullable=False)
    description: Mapped[str] = mapped_column(db.String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(db.Numeric(18, 2), nullable=False)
    date: Mapped[dt.date] = mapped_column(db.Date, index=True, nullable=False)
    category: Mapped[str] = mapped_column(db.String(128), nullable=False)
    paid: Mapped[bool] = mapped_column(default=False, nullable=False)
    paid_date: Mapped[dt.date | None] = mapped_column(db.Date, nullable=True)


class Payable(db.Model):
    __tablename__ = "ledger_payable"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), index=True, nullable=False)
    description: Mapped[str] = mapped_column(db.String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(db.Numeric(18, 2), nullable=False)
    due_date: Mapped[dt.date] = mapped_column(db.Date, index=True, nullable=False)
    category: Mapped[str] = mapped_column(db.String(128), nullable=False)
    paid: Mapped[bool] = mapped_column(default=False, nullable=False)


class Receivable(db.Model):
    __tablename__ = "ledger_receivable"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), index=True, nullable=False)
    description: Mapped[str] = mapped_column(db.String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(db.Numeric(18, 2), nullable=False)
    due_date: Mapped[dt.date] = mapped_column(db.Date, index=True, nullable=False)
    received: Mapped[bool] = mapped_column(default=False, nullable=False)
