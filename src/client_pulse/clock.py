from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_iso(instant: datetime | None) -> str | None:
    """Serialize a naive UTC instant the way the API returns it (`...Z`)."""
    if instant is None:
        return None
    return instant.isoformat(timespec='milliseconds') + 'Z'


class SystemClock:
    """Reads the real wall clock."""

    def now(self) -> datetime:
        return utc_now()


class FixedClock:
    """
    A clock that only moves when told to.

    Safe to share between the polling thread and request threads.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._lock = threading.Lock()
        self._now = start or utc_now().replace(microsecond=0)

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, seconds: float) -> datetime:
        with self._lock:
            self._now = self._now + timedelta(seconds=seconds)
            return self._now

    def set(self, instant: datetime) -> None:
        with self._lock:
            self._now = instant
