"""Authentication service layer."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from flask_jwt_extended import create_access_token, create_refresh_token
from sqlalchemy import func

from gestaomei.core.auth.models import JWTBlocklist
from gestaomei.core.auth.security import hash_password, verify_password
from gestaomei.core.auth.schemas import RegisterRequest
from gestaomei.core.billing.services import STATUS_TRIAL
from gestaomei.core.users.models import User
from gestaomei.extensions import db

logger = logging.getLogger(__name__)


def authenticate_user(email: str, password: str) -> Optional[User]:
    """Return the user if credentials are valid."""
    user = User.query.filter(func.lower(User.email) == email.strip().lower()).first()
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def issue_tokens(user: User) -> dict[str, str]:
    """Create access and refresh tokens for a user."""
    identity = str(user.id)
    access_token = create_access_token(identity=identity)
    refresh_token = create_refresh_token(identity=identity)
    return {"access_token": access_token, "refresh_token": refresh_token}


def revoke_refresh_token(jti: str) -> None:
    """Revoke a refresh token by JTI."""
    if not JWTBlocklist.query.filter_by(jti=jti).first():
        db.session.add(JWTBlocklist(jti=jti))
    db.session.commit()


def is_token_revoked(jti: str) -> bool:
    return JWTBlocklist.query.filter_by(jti=jti).first() is not None


def register_user(payload: RegisterRequest, *, now: datetime, trial_days: int) -> User:
    """Create an account that starts a time-boxed trial at ``now``."""
    existing = User.query.filter(func.lower(User.email) == payload.email).first()
    if existing:
        raise ValueError("email_already_exists")

    user = User(
        name=payload.name,
        email=payload.email,
        password_hash=hash_password(payload.password),
        subscription_status=STATUS_TRIAL,
        trial_start=now,
        trial_expires_at=now + timedelta(days=trial_days),
    )
    db.session.add(user)
    db.session.commit()
    logger.info("Registered user %s with trial until %s", user.id, user.trial_expires_at)
    return user
