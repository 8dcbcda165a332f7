from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, timedelta
from typing import AbstractSet, Iterable, List, Optional

from streaks.calendar import DayLike, LocalCalendar, day_range

ONE_DAY = timedelta(days=1)
INTENSITY_RADIUS = 3
MAX_GRID_WEEKS = 53


class CellState(enum.Enum):
    FUTURE = "future"
    COMPLETED = "completed"
    EMPTY = "empty"


class Intensity(enum.Enum):
    LOW = 0.4
    LOW_MID = 0.6
    MID_HIGH = 0.8
    HIGH = 1.0

    @property
    def opacity(self) -> float:
        return self.value


@dataclass(frozen=True)
class DailyPoint:
    day: date
    completed: bool

    @property
    def value(self) -> int:
        return 1 if self.completed else 0


@dataclass(frozen=True)
class WeeklyPoint:
    week_start: date
    completed_count: int
    total_count: int

    @property
    def completion_rate(self) -> float:
        if self.total_count <= 0:
            return 0.0
        return self.completed_count / self.total_count


@dataclass(frozen=True)
class GridCell:
    day: date
    state: CellState

    @property
    def is_interactive(self) -> bool:
        return self.state is not CellState.FUTURE


def completed_days(values: Iterable[DayLike], calendar: Optional[LocalCalendar] = None) -> frozenset:
    """Normalize raw dates/instants into the set of completed days."""
    calendar = calendar or LocalCalendar()
    return frozenset(calendar.day_of(v) for v in values)


def current_streak(days: AbstractSet[date], today: date) -> int:
    """
    Consecutive completed days ending today, or ending yesterday when today
    has not been marked yet. Resets only once a full day is skipped.
    """
    cursor = today
    if cursor not in days:
        cursor = today - ONE_DAY
        if cursor not in days:
            return 0

    streak = 0
    while cursor in days:
        streak += 1
        cursor -= ONE_DAY
    return streak


def best_streak(days: AbstractSet[date]) -> int:
    """Longest run of consecutive completed days."""
    ordered = sorted(days)
    if not ordered:
        return 0

    best = 1
    cur = 1
    for prev, nxt in zip(ordered, ordered[1:]):
        if nxt == prev + ONE_DAY:
            cur += 1
            if cur > best:
                best = cur
        else:
            cur = 1
    return best


def daily_points(days: AbstractSet[date], end: date, count: int) -> List[DailyPoint]:
    count = max(1, count)
    start = end - timedelta(days=count - 1)
    return [DailyPoint(day=d, completed=d in days) for d in day_range(start, end)]


def completion_rate(days: AbstractSet[date], end: date, count: int) -> float:
    points = daily_points(days, end, count)
    if not points:
        return 0.0
    return sum(p.value for p in points) / len(points)


def lifetime_completion_rate(total_completed: int, created: date, today: date) -> float:
    """Completed days over days since the habit was created, capped at 1."""
    active_days = max((today - created).days, 1)
    return min(1.0, total_completed / active_days)


def last_weeks(today: date, count: int, calendar: Optional[LocalCalendar] = None) -> List[List[date]]:
    """
    The last `count` calendar weeks as lists of 7 days each, oldest first.
    The final week is the one containing today, so it may hold future days.
    """
    calendar = calendar or LocalCalendar()
    count = min(max(1, count), MAX_GRID_WEEKS)
    start = calendar.week_start(today) - timedelta(weeks=count - 1)
    return [
        [start + timedelta(days=w * 7 + i) for i in range(7)]
        for w in range(count)
    ]


def weekly_points(
    days: AbstractSet[date],
    today: date,
    weeks: int,
    end: Optional[date] = None,
    calendar: Optional[LocalCalendar] = None,
) -> List[WeeklyPoint]:
    end = end or today
    points = []
    for week in last_weeks(today, weeks, calendar):
        valid = [d for d in week if d <= end]
        points.append(
            WeeklyPoint(
                week_start=week[0],
                completed_count=sum(1 for d in valid if d in days),
                total_count=len(valid),
            )
        )
    return points


def cell_state(day: date, days: AbstractSet[date], today: date) -> CellState:
    if day > today:
        return CellState.FUTURE
    if day in days:
        return CellState.COMPLETED
    return CellState.EMPTY


def contribution_grid(
    days: AbstractSet[date],
    today: date,
    weeks: int,
    calendar: Optional[LocalCalendar] = None,
) -> List[List[GridCell]]:
    return [
        [GridCell(day=d, state=cell_state(d, days, today)) for d in week]
        for week in last_weeks(today, weeks, calendar)
    ]


def intensity(day: date, days: AbstractSet[date]) -> Intensity:
    """Density tier of completions in the 7-day window centred on `day`."""
    nearby = sum(
        1
        for offset in range(-INTENSITY_RADIUS, INTENSITY_RADIUS + 1)
        if day + timedelta(days=offset) in days
    )
    if nearby <= 1:
        return Intensity.LOW
    if nearby <= 3:
        return Intensity.LOW_MID
    if nearby <= 5:
        return Intensity.MID_HIGH
    return Intensity.HIGH


def month_grid(day: date, calendar: Optional[LocalCalendar] = None) -> List[Optional[date]]:
    """
    Dates of the month containing `day`, preceded by None placeholders so
    that the first column is the calendar's first weekday.
    """
    calendar = calendar or LocalCalendar()
    first = calendar.month_start(day)
    padding = (first.weekday() - calendar.first_weekday) % 7
    cells: List[Optional[date]] = [None] * padding
    cells.extend(first + timedelta(days=i) for i in range(calendar.days_in_month(first)))
    return cells
