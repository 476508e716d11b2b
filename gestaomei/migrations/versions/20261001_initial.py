"""initial schema for GestaoMEI

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def _ledger_common():
    return [
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False, index=True),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
    ]


def upgrade():
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True, index=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("subscription_status", sa.String(length=16), nullable=False, server_default="trial"),
        sa.Column("trial_start", sa.DateTime()),
        sa.Column("trial_expires_at", sa.DateTime()),
        sa.Column("last_charge_date", sa.Date()),
        sa.Column("subscription_id", sa.String(length=128)),
        *_timestamps(),
    )
    op.create_table(
        "user_preference",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), index=True),
        sa.Column("key", sa.String(length=128), nullable=False),
        sa.Column("value", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "key", name="uq_user_preference_key"),
    )
    op.create_table(
        "jwt_blocklist",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("jti", sa.String(length=64), nullable=False, unique=True),
        *_timestamps(),
    )
    op.create_table(
        "billing_webhook_event",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("webhook_id", sa.String(length=128), nullable=False, unique=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), index=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("subscription_id", sa.String(length=128)),
        sa.Column("received_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "ledger_income_entry",
        *_ledger_common(),
        sa.Column("date", sa.Date(), nullable=False, index=True),
        sa.Column("category", sa.String(length=128), nullable=False),
        sa.Column("received", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("received_date", sa.Date()),
    )
    op.create_table(
        "ledger_expense_entry",
        *_ledger_common(),
        sa.Column("date", sa.Date(), nullable=False, index=True),
        sa.Column("category", sa.String(length=128), nullable=False),
        sa.Column("paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("paid_date", sa.Date()),
    )
    op.create_table(
        "ledger_payable",
        *_ledger_common(),
        sa.Column("due_date", sa.Date(), nullable=False, index=True),
        sa.Column("category", sa.String(length=128), nullable=False),
        sa.Column("paid", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_table(
        "ledger_receivable",
        *_ledger_common(),
        sa.Column("due_date", sa.Date(), nullable=False, index=True),
        sa.Column("received", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_table(
        "notification_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False, unique=True),
        sa.Column("upcoming_due_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("weekly_report_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("mei_limit_alert_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("lead_days", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("notification_email", sa.String(length=255)),
        *_timestamps(),
    )


def downgrade():
    for table in (
        "notification_settings",
        "ledger_receivable",
        "ledger_payable",
        "ledger_expense_entry",
        "ledger_income_entry",
        "billing_webhook_event",
        "jwt_blocklist",
        "user_preference",
        "user",
    ):
        op.drop_table(table)
