from django.utils import timezone

from streaks.calendar import LocalCalendar


class DjangoClock:
    """Wall clock in the active Django time zone."""

    def now(self):
        return timezone.localtime()


def local_calendar() -> LocalCalendar:
    return LocalCalendar(tz=timezone.get_current_timezone())


def local_today(clock=None, calendar=None):
    calendar = calendar or local_calendar()
    return calendar.today(clock or DjangoClock())
