from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from streaks.storage import FileTimelineReloader
from widget.consumer import SnapshotConsumer, WidgetEntry, WidgetHabit, WidgetState


@dataclass(frozen=True)
class Timeline:
    entries: List[WidgetEntry]
    next_refresh: datetime


class HabitTimelineProvider:
    """Hands widget entries to the host on its refresh schedule."""

    def __init__(self, consumer: SnapshotConsumer, refresh_interval: timedelta = timedelta(hours=1)):
        self.consumer = consumer
        self.refresh_interval = refresh_interval
        self.reloader = FileTimelineReloader(consumer.store, consumer.key)

    def placeholder(self) -> WidgetEntry:
        return WidgetEntry(
            date=self.consumer.clock.now(),
            state=WidgetState.HABIT,
            habit=WidgetHabit(
                id="placeholder",
                name="Exercise",
                icon="figure.run",
                color_hex="#FF5A5F",
                current_streak=7,
                completed_today=False,
            ),
        )

    def snapshot(self) -> WidgetEntry:
        """Entry for the widget gallery preview."""
        entry = self.consumer.entry()
        if entry.habit is None:
            return self.placeholder()
        return entry

    def timeline(self) -> Timeline:
        entry = self.consumer.entry()
        return Timeline(entries=[entry], next_refresh=entry.date + self.refresh_interval)

    def needs_reload(self, since: Optional[datetime]) -> bool:
        """True when the app signalled a reload after `since`."""
        last = self.reloader.last_reload()
        if last is None:
            return False
        return since is None or last > since
