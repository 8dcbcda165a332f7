"""
Widget side of the snapshot channel.

The widget never touches the habit database. Everything it shows is derived
from the published snapshot, and streaks are recomputed from the raw
completed dates because the published streak may be from an earlier day.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from streaks import algorithms
from streaks.algorithms import CellState, Intensity
from streaks.calendar import Clock, LocalCalendar, SystemClock
from streaks.snapshot import SnapshotDecodeError, WidgetSnapshot, decode_snapshot
from streaks.storage import DEFAULT_KEY, SharedSnapshotStore, StoredValue

logger = logging.getLogger(__name__)

EMPTY_MESSAGE = "Open app to add habits"
STALE_MESSAGE = "Open app to refresh"
DEFAULT_GRID_WEEKS = 11


class WidgetState(enum.Enum):
    HABIT = "habit"
    EMPTY = "empty"
    STALE = "stale"


@dataclass(frozen=True)
class WidgetCell:
    day: date
    state: CellState
    intensity: Optional[Intensity] = None

    @property
    def opacity(self) -> Optional[float]:
        return self.intensity.opacity if self.intensity is not None else None

    def to_dict(self) -> dict:
        return {"day": self.day.isoformat(), "state": self.state.value, "opacity": self.opacity}


@dataclass(frozen=True)
class WidgetHabit:
    id: str
    name: str
    icon: str
    color_hex: str
    current_streak: int
    completed_today: bool
    weeks: Tuple[Tuple[WidgetCell, ...], ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "colorHex": self.color_hex,
            "currentStreak": self.current_streak,
            "completedToday": self.completed_today,
            "weeks": [[c.to_dict() for c in week] for week in self.weeks],
        }


@dataclass(frozen=True)
class WidgetEntry:
    date: datetime
    state: WidgetState
    habit: Optional[WidgetHabit] = None

    @property
    def message(self) -> Optional[str]:
        if self.state is WidgetState.EMPTY:
            return EMPTY_MESSAGE
        if self.state is WidgetState.STALE:
            return STALE_MESSAGE
        return None

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "state": self.state.value,
            "message": self.message,
            "habit": self.habit.to_dict() if self.habit is not None else None,
        }


def build_widget_habit(row: WidgetSnapshot, today: date, weeks: int = DEFAULT_GRID_WEEKS,
                       calendar: Optional[LocalCalendar] = None) -> WidgetHabit:
    days = row.completed_set
    grid = []
    for week in algorithms.contribution_grid(days, today, weeks, calendar):
        grid.append(tuple(
            WidgetCell(
                day=cell.day,
                state=cell.state,
                intensity=algorithms.intensity(cell.day, days) if cell.state is CellState.COMPLETED else None,
            )
            for cell in week
        ))
    return WidgetHabit(
        id=row.id,
        name=row.name,
        icon=row.icon,
        color_hex=row.color_hex,
        current_streak=algorithms.current_streak(days, today),
        completed_today=today in days,
        weeks=tuple(grid),
    )


class SnapshotConsumer:
    def __init__(
        self,
        store: SharedSnapshotStore,
        clock: Optional[Clock] = None,
        calendar: Optional[LocalCalendar] = None,
        key: str = DEFAULT_KEY,
        selected_habit_id: Optional[str] = None,
        max_staleness: Optional[timedelta] = None,
        grid_weeks: int = DEFAULT_GRID_WEEKS,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.calendar = calendar or LocalCalendar()
        self.key = key
        self.selected_habit_id = selected_habit_id
        self.max_staleness = max_staleness
        self.grid_weeks = grid_weeks

    def _read(self) -> Optional[StoredValue]:
        try:
            return self.store.get(self.key)
        except OSError as exc:
            logger.warning("Widget snapshot unreadable: %s", exc)
            return None

    def _decode(self, stored: Optional[StoredValue]) -> List[WidgetSnapshot]:
        if stored is None:
            return []
        try:
            return decode_snapshot(stored.data)
        except SnapshotDecodeError as exc:
            logger.warning("Ignoring corrupt widget snapshot: %s", exc)
            return []

    def load(self) -> List[WidgetSnapshot]:
        return self._decode(self._read())

    def is_stale(self, stored: StoredValue) -> bool:
        if self.max_staleness is None:
            return False
        now = self.clock.now()
        # naive clocks read as local time
        if now.tzinfo is None:
            now = now.astimezone()
        return now - stored.updated_at > self.max_staleness

    def select(self, habits: List[WidgetSnapshot]) -> Optional[WidgetSnapshot]:
        if not habits:
            return None
        if self.selected_habit_id is not None:
            for row in habits:
                if row.id == self.selected_habit_id:
                    return row
            logger.info("Selected habit %s not in snapshot, showing the first one", self.selected_habit_id)
        return habits[0]

    def entry(self) -> WidgetEntry:
        now = self.clock.now()
        stored = self._read()
        row = self.select(self._decode(stored))
        if row is None:
            return WidgetEntry(date=now, state=WidgetState.EMPTY)

        today = self.calendar.day_of(now)
        habit = build_widget_habit(row, today, self.grid_weeks, self.calendar)
        state = WidgetState.STALE if self.is_stale(stored) else WidgetState.HABIT
        return WidgetEntry(date=now, state=state, habit=habit)
