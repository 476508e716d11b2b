"""Injectable time source.

Business rules never call ``datetime.utcnow()`` directly; they receive dates
from the clock stored on the app (``app.extensions["clock"]``) so tests can pin
"today" to a fixed value.
"""

from __future__ import annotations

import datetime as dt
from typing import Protocol

from flask import current_app


class Clock(Protocol):
    def now(self) -> dt.datetime: ...

    def today(self) -> dt.date: ...


class SystemClock:
    """Naive UTC wall clock, matching the timestamps stored by the models."""

    def now(self) -> dt.datetime:
        return dt.datetime.utcnow()

    def today(self) -> dt.date:
        return self.now().date()


class FixedClock:
    """Clock frozen at a given instant."""

    def __init__(self, at: dt.datetime | dt.date) -> None:
        if not isinstance(at, dt.datetime):
            at = dt.datetime.combine(at, dt.time(12, 0))
        self._at = at

    def now(self) -> dt.datetime:
        return self._at

    def today(self) -> dt.date:
        return self._at.date()


def get_clock() -> Clock:
    clock = current_app.extensions.get("clock")
    if clock is None:
        clock = SystemClock()
        current_app.extensions["clock"] = clock
    return clock
