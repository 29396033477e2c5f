# app/utils/clock.py
"""
Time source for the scan ledger.
Instants are stored timezone-aware in UTC; DISPLAY_TIMEZONE is applied
only when rendering for the query surface.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from app.config import settings

_TICK = timedelta(microseconds=1)


class MonotonicUTCClock:
    """Wall-clock UTC readings that never repeat or go backwards in-process."""

    def __init__(self):
        self._lock = threading.Lock()
        self._last: Optional[datetime] = None

    def now(self) -> datetime:
        with self._lock:
            current = datetime.now(timezone.utc)
            if self._last is not None and current <= self._last:
                current = self._last + _TICK
            self._last = current
            return current

    __call__ = now


utc_clock = MonotonicUTCClock()


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on the way back out
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_display(value: Optional[datetime]) -> Optional[datetime]:
    """Render a stored instant in the configured display zone."""
    if value is None:
        return None
    return as_utc(value).astimezone(ZoneInfo(settings.DISPLAY_TIMEZONE))
