"""Per-user preference rows stored as JSON values."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from gestaomei.core.users.models import User, UserPreference

BACKUP_PREF_KEY = "backup"

# Bookkeeping rows written by the app itself, not user-facing settings.
INTERNAL_KEYS = frozenset({BACKUP_PREF_KEY})


def get_preferences(user: User) -> Dict[str, Any]:
    """User-facing preferences as a key to value mapping."""
    return {p.key: p.value for p in user.preferences if p.key not in INTERNAL_KEYS}


def set_preference(user: User, key: str, value: Any) -> None:
    existing = next((p for p in user.preferences if p.key == key), None)
    if existing:
        existing.value = value
    else:
        user.preferences.append(UserPreference(key=key, value=value))


def get_last_backup_at(user: User) -> Optional[datetime]:
    stored = next((p.value for p in user.preferences if p.key == BACKUP_PREF_KEY), None) or {}
    raw = stored.get("last_backup_at")
    return datetime.fromisoformat(raw) if raw else None


def set_last_backup_at(user: User, when: datetime) -> None:
    set_preference(user, BACKUP_PREF_KEY, {"last_backup_at": when.isoformat()})
