"""User account and preference models."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestaomei.extensions import db


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)


class User(db.Model, TimestampMixin):
    __tablename__ = "user"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(255), nullable=False)
    email: Mapped[str] = mapped_column(db.String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(db.String(255), nullable=False)

    # trial | active | expired | canceled
    subscription_status: Mapped[str] = mapped_column(db.String(16), nullable=False, default="trial")
    trial_start: Mapped[datetime | None] = mapped_column(nullable=True)
    trial_expires_at: Mapped[datetime | None] = mapped_column(nullable=True)
    last_charge_date: Mapped[date | None] = mapped_column(nullable=True)
    subscription_id: Mapped[str | None] = mapped_column(db.String(128))

    preferences: Mapped[list["UserPreference"]] = relationship(
        "UserPreference", back_populates="user", cascade="all, delete-orphan"
    )


class UserPreference(db.Model, TimestampMixin):
    __tablename__ = "user_preference"
    __table_args__ = (db.UniqueConstraint("user_id", "key", name="uq_user_preference_key"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), index=True)
    key: Mapped[str] = mapped_column(db.String(128), nullable=False)
    value: Mapped[dict] = mapped_column(db.JSON, nullable=False, default=dict)

    user: Mapped[User] = relationship("User", back_populates="preferences")
