import random
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from habits.models import CompletionEntry, Habit
from habits.services.clock import local_today
from streaks.colors import PRESET_COLORS

DEMO_HABITS = [
    ("Morning Run", "figure.run"),
    ("Meditation", "brain.head.profile"),
    ("Read Books", "book.fill"),
    ("Drink Water", "drop.fill"),
    ("Exercise", "dumbbell.fill"),
    ("Yoga", "figure.yoga"),
    ("Journal", "book.closed.fill"),
    ("Sleep Early", "moon.fill"),
    ("Eat Healthy", "fork.knife"),
    ("Learn Coding", "keyboard.fill"),
    ("Practice Piano", "music.note"),
    ("No Sugar", "cup.and.saucer.fill"),
    ("Cold Shower", "drop.fill"),
    ("Gratitude", "heart.fill"),
    ("Walk 10k Steps", "figure.walk"),
]


def _chance(offset: int, base_rate: float) -> float:
    # recent days are likelier so the demo shows a live streak
    if offset < 7:
        return 0.85
    if offset < 30:
        return base_rate + 0.1
    return base_rate


@transaction.atomic
def seed_demo_habit(*, owner, days: int = 120, rng=None) -> Habit:
    """Random habit created four months ago with plausible history."""
    rng = rng or random.Random()
    name, icon = rng.choice(DEMO_HABITS)
    habit = Habit.objects.create(
        owner=owner,
        name=name,
        icon=icon,
        color_hex=rng.choice(list(PRESET_COLORS.values())),
    )
    Habit.objects.filter(pk=habit.pk).update(created_at=timezone.now() - timedelta(days=days))
    habit.refresh_from_db(fields=["created_at"])

    today = local_today()
    base_rate = rng.uniform(0.4, 0.8)
    CompletionEntry.objects.bulk_create([
        CompletionEntry(habit=habit, date=today - timedelta(days=offset), completed=True)
        for offset in range(days)
        if rng.random() < _chance(offset, base_rate)
    ])
    return habit
