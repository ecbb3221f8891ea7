"""Single source of "now" for lifecycle operations."""
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock:
    """Clock that only moves when told to. Used by tests."""

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float = 1.0) -> datetime:
        self._now = self._now + timedelta(seconds=seconds)
        return self._now
