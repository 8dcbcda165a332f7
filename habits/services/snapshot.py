import logging

from django.conf import settings
from django.db import transaction

from habits.models import Habit
from habits.services.clock import DjangoClock, local_calendar
from habits.services.ledger import completed_days
from streaks import algorithms
from streaks.colors import normalize_color_hex
from streaks.snapshot import WidgetSnapshot, encode_snapshot
from streaks.storage import FileTimelineReloader, SharedSnapshotStore, SnapshotWriteError

logger = logging.getLogger(__name__)


def store_for_owner(owner_id) -> SharedSnapshotStore:
    return SharedSnapshotStore.for_group(settings.WIDGET_SNAPSHOT["ROOT"], str(owner_id))


def build_snapshot(habits, today):
    rows = []
    for habit in habits:
        days = completed_days(habit)
        rows.append(
            WidgetSnapshot(
                id=str(habit.pk),
                name=habit.name,
                icon=habit.icon,
                color_hex=normalize_color_hex(habit.color_hex),
                current_streak=algorithms.current_streak(days, today),
                completed_dates=tuple(sorted(days)),
            )
        )
    return rows


class SnapshotPublisher:
    """
    Writes the complete widget projection of a habit set, then asks the
    widget host to reload. A failed publish leaves the previous snapshot.
    """

    def __init__(self, store: SharedSnapshotStore, reloader=None, clock=None, calendar=None, key=None):
        self.key = key or settings.WIDGET_SNAPSHOT["KEY"]
        self.store = store
        self.reloader = reloader or FileTimelineReloader(store, self.key)
        self.clock = clock or DjangoClock()
        self.calendar = calendar or local_calendar()

    def publish(self, habits) -> bool:
        today = self.calendar.today(self.clock)
        try:
            rows = build_snapshot(habits, today)
            self.store.set(encode_snapshot(rows), key=self.key)
        except (SnapshotWriteError, TypeError, ValueError) as exc:
            logger.warning("Widget snapshot not published, keeping the previous one: %s", exc)
            return False

        try:
            self.reloader.reload_all_timelines()
        except OSError as exc:
            logger.warning("Widget reload signal failed: %s", exc)

        logger.info("Published widget snapshot with %d habit(s) to %s", len(rows), self.store.directory)
        return True


def publisher_for_owner(owner_id) -> SnapshotPublisher:
    return SnapshotPublisher(store_for_owner(owner_id))


def publish_for_owner(owner) -> bool:
    habits = (
        Habit.objects.filter(owner=owner)
        .order_by("created_at")
        .prefetch_related("entries")
    )
    return publisher_for_owner(owner.pk).publish(habits)


def schedule_publish(owner):
    """Publish once the surrounding transaction commits."""
    transaction.on_commit(lambda: publish_for_owner(owner), robust=True)
