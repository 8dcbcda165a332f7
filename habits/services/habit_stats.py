from datetime import timedelta
from django.db.models import Count, Exists, OuterRef, Q

from habits.models import CompletionEntry, Habit
from habits.services.clock import local_calendar, local_today
from habits.services.ledger import prefetched_entries_or_none, completed_days
from streaks import algorithms


def with_habit_stats(qs, today=None):
    """
    Adds efficient annotations used by derived GraphQL fields.

    - total_completed_anno
    - last_7_days_count_anno
    - completed_today_anno
    """
    today = today or local_today()
    start = today - timedelta(days=6)

    today_entry_exists = CompletionEntry.objects.filter(
        habit_id=OuterRef("pk"), date=today, completed=True
    )

    return qs.annotate(
        total_completed_anno=Count(
            "entries",
            filter=Q(entries__completed=True),
            distinct=True,
        ),
        last_7_days_count_anno=Count(
            "entries",
            filter=Q(entries__completed=True, entries__date__range=(start, today)),
            distinct=True,
        ),
        completed_today_anno=Exists(today_entry_exists),
    )


def total_completed(habit: Habit) -> int:
    val = getattr(habit, "total_completed_anno", None)
    if val is not None:
        return int(val)
    return len(completed_days(habit))


def completed_today(habit: Habit, today=None) -> bool:
    val = getattr(habit, "completed_today_anno", None)
    if val is not None and today is None:
        return bool(val)
    today = today or local_today()
    return today in completed_days(habit)


def last_7_days_count(habit: Habit, today=None) -> int:
    val = getattr(habit, "last_7_days_count_anno", None)
    if val is not None and today is None:
        return int(val)
    today = today or local_today()
    start = today - timedelta(days=6)
    return sum(1 for d in completed_days(habit) if start <= d <= today)


def current_streak(habit: Habit, today=None) -> int:
    return algorithms.current_streak(completed_days(habit), today or local_today())


def best_streak(habit: Habit) -> int:
    return algorithms.best_streak(completed_days(habit))


def completion_rate(habit: Habit, days: int = 30, end=None) -> float:
    return algorithms.completion_rate(completed_days(habit), end or local_today(), days)


def lifetime_completion_rate(habit: Habit, today=None) -> float:
    calendar = local_calendar()
    return algorithms.lifetime_completion_rate(
        total_completed(habit),
        calendar.day_of(habit.created_at),
        today or local_today(),
    )


def daily_points(habit: Habit, days: int = 14, end=None):
    return algorithms.daily_points(completed_days(habit), end or local_today(), days)


def weekly_points(habit: Habit, weeks: int = 10, today=None, end=None):
    return algorithms.weekly_points(
        completed_days(habit),
        today or local_today(),
        weeks,
        end=end,
        calendar=local_calendar(),
    )


def contribution_grid(habit: Habit, weeks: int = 11, today=None):
    return algorithms.contribution_grid(
        completed_days(habit), today or local_today(), weeks, calendar=local_calendar()
    )


def month_grid(habit: Habit, month=None, today=None):
    """
    Cells for a monthly calendar: (day, state) pairs, or None for the
    padding before the first of the month.
    """
    today = today or local_today()
    days = completed_days(habit)
    return [
        None if d is None else algorithms.GridCell(day=d, state=algorithms.cell_state(d, days, today))
        for d in algorithms.month_grid(month or today, calendar=local_calendar())
    ]


def days_with_media(habit: Habit) -> frozenset:
    entries = prefetched_entries_or_none(habit)
    if entries is not None:
        return frozenset(e.date for e in entries if e.has_media)
    return frozenset(
        habit.entries.filter(media__isnull=False).values_list("date", flat=True).distinct()
    )


def has_media(habit: Habit, day) -> bool:
    return local_calendar().day_of(day) in days_with_media(habit)
