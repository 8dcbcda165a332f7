import json
from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from streaks.calendar import LocalCalendar, SystemClock
from streaks.storage import SharedSnapshotStore
from widget.consumer import SnapshotConsumer
from widget.timeline import HabitTimelineProvider


class Command(BaseCommand):
    help = "Render the widget entry for an app group from its published snapshot."

    def add_arguments(self, parser):
        parser.add_argument("--group", required=True, help="App group (owner id) to read.")
        parser.add_argument("--habit", default=None, help="Habit id to display.")
        parser.add_argument("--weeks", type=int, default=None)

    def handle(self, *args, **options):
        conf = settings.WIDGET_SNAPSHOT
        tz = timezone.get_current_timezone()
        consumer = SnapshotConsumer(
            SharedSnapshotStore.for_group(conf["ROOT"], options["group"]),
            clock=SystemClock(tz),
            calendar=LocalCalendar(tz=tz),
            key=conf["KEY"],
            selected_habit_id=options["habit"],
            max_staleness=timedelta(hours=conf["MAX_STALENESS_HOURS"]),
            grid_weeks=options["weeks"] or conf["GRID_WEEKS"],
        )
        provider = HabitTimelineProvider(consumer, timedelta(minutes=conf["REFRESH_MINUTES"]))
        timeline = provider.timeline()
        payload = {
            "entries": [e.to_dict() for e in timeline.entries],
            "nextRefresh": timeline.next_refresh.isoformat(),
        }
        self.stdout.write(json.dumps(payload, indent=2))
