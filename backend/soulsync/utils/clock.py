"""Clock abstraction and calendar-day helpers for the quota boundary"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock, always timezone-aware UTC"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Settable clock for deterministic tests and scripted replays"""

    def __init__(self, current: datetime):
        self.current = _aware(current)

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta) -> None:
        self.current = self.current + timedelta(**delta)


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def local_day(moment: datetime, tz_name: str) -> date:
    """Calendar date of ``moment`` in the reference timezone"""
    return _aware(moment).astimezone(ZoneInfo(tz_name)).date()


def next_midnight(moment: datetime, tz_name: str) -> datetime:
    """Start of the next calendar day in the reference timezone"""
    tz = ZoneInfo(tz_name)
    tomorrow = local_day(moment, tz_name) + timedelta(days=1)
    return datetime.combine(tomorrow, time.min, tzinfo=tz)


def to_naive_utc(moment: datetime) -> datetime:
    """Storage form: DateTime columns hold naive UTC"""
    return _aware(moment).astimezone(timezone.utc).replace(tzinfo=None)
