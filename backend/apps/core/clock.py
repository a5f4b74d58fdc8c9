from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from django.utils import timezone


class Clock:
    """Wall clock used by every time comparison in the game services."""

    def now(self) -> datetime:
        return timezone.now()

    def today(self, tz: Optional[str] = None) -> date:
        now = self.now()
        if tz:
            return now.astimezone(ZoneInfo(tz)).date()
        return timezone.localdate(now)


class FixedClock(Clock):
    """Clock frozen at a given instant; tests move it with advance()."""

    def __init__(self, at: datetime):
        self._now = at

    def now(self) -> datetime:
        return self._now

    def set(self, at: datetime) -> None:
        self._now = at

    def advance(self, **kwargs) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now


system_clock = Clock()


def week_start(day: date) -> date:
    """Monday of the ISO week containing day."""
    return day - timedelta(days=day.weekday())
