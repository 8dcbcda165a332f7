"""
Clock and calendar capabilities shared by the app and the widget.

Days are plain ``datetime.date`` values: a day is the local calendar day an
instant falls on, so normalizing "start of day" means converting an instant
to the local zone and dropping the time.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Optional, Protocol, Union

DayLike = Union[date, datetime]

SUNDAY = 6  # date.weekday() numbering, Monday == 0


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz

    def now(self) -> datetime:
        if self.tz is None:
            return datetime.now().astimezone()
        return datetime.now(self.tz)


class FixedClock:
    """Always returns the same instant. Used by tests and previews."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant


@dataclass(frozen=True)
class LocalCalendar:
    tz: Optional[tzinfo] = None
    first_weekday: int = SUNDAY

    def day_of(self, value: DayLike) -> date:
        """Truncate a date or datetime to its local calendar day."""
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone(self.tz) if self.tz is not None else value.astimezone()
            return value.date()
        return value

    def today(self, clock: Clock) -> date:
        return self.day_of(clock.now())

    def week_start(self, day: date) -> date:
        offset = (day.weekday() - self.first_weekday) % 7
        return day - timedelta(days=offset)

    def month_start(self, day: date) -> date:
        return day.replace(day=1)

    def days_in_month(self, day: date) -> int:
        first = self.month_start(day)
        if first.month == 12:
            nxt = first.replace(year=first.year + 1, month=1)
        else:
            nxt = first.replace(month=first.month + 1)
        return (nxt - first).days


def day_range(start: date, end: date):
    """Yield every day from start to end, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
