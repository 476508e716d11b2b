"""Revoked refresh tokens."""

from __future__ import annotations

from sqlalchemy.orm import Mapped, mapped_column

from gestaomei.core.users.models import TimestampMixin
from gestaomei.extensions import db


class JWTBlocklist(db.Model, TimestampMixin):
    __tablename__ = "jwt_blocklist"

    id: Mapped[int] = mapped_column(primary_key=True)
    jti: Mapped[str] = mapped_column(db.String(64), unique=True, nullable=False)
