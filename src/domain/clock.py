"""
Clock Module

Time sources for the break workflow. All timestamps are timezone-aware.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo


class Clock(ABC):
    """Provides the current time and the business day it falls on."""

    def __init__(self, business_tz: Optional[tzinfo] = None):
        self.business_tz = business_tz or timezone.utc

    @abstractmethod
    def now(self) -> datetime:
        """Current time, timezone-aware."""
        pass

    def business_date(self, moment: Optional[datetime] = None) -> date:
        """Calendar day of a moment in the business timezone."""
        moment = moment or self.now()
        return moment.astimezone(self.business_tz).date()

    def today(self) -> date:
        return self.business_date(self.now())


class SystemClock(Clock):
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock(Clock):
    """Clock that only moves when told to. Used for replays and tests."""

    def __init__(self, start: datetime, business_tz: Optional[tzinfo] = None):
        super().__init__(business_tz)
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        self._now = start

    def now(self) -> datetime:
        return self._now

    def advance(self, minutes: float = 0, seconds: float = 0) -> datetime:
        self._now = self._now + timedelta(minutes=minutes, seconds=seconds)
        return self._now

    def set(self, moment: datetime) -> None:
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        self._now = moment


def get_timezone(name: str) -> tzinfo:
    """Resolve a timezone name, falling back to UTC for empty names."""
    if not name:
        return timezone.utc
    return ZoneInfo(name)
