import json
import random
from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError
from django.utils import timezone

from habits.models import Habit
from habits.services import ledger
from habits.services.demo import seed_demo_habit
from habits.services.snapshot import store_for_owner
from streaks.snapshot import decode_snapshot

pytestmark = pytest.mark.django_db


@pytest.fixture()
def user(django_user_model):
    return django_user_model.objects.create_user(
        username="u1",
        password="pass12345",
        email="u1@example.com",
    )


def test_publish_then_render_widget__end_to_end(user):
    today = timezone.localdate()
    habit = ledger.create_habit(owner=user, name="Read", color_hex="#FF5A5F")
    ledger.toggle_completion(habit, today)
    ledger.toggle_completion(habit, today - timedelta(days=1))

    out = StringIO()
    call_command("publish_widget_snapshots", stdout=out)
    assert "Published 1 snapshot(s), 0 failed." in out.getvalue()

    out = StringIO()
    call_command("render_widget", group=str(user.pk), weeks=2, stdout=out)
    payload = json.loads(out.getvalue())

    entry = payload["entries"][0]
    assert entry["state"] == "habit"
    assert entry["habit"]["id"] == str(habit.pk)
    assert entry["habit"]["currentStreak"] == 2
    assert entry["habit"]["completedToday"] is True
    assert len(entry["habit"]["weeks"]) == 2


def test_render_widget__unknown_group_is_empty_state():
    out = StringIO()
    call_command("render_widget", group="nobody", stdout=out)

    entry = json.loads(out.getvalue())["entries"][0]
    assert entry["state"] == "empty"
    assert entry["habit"] is None


def test_seed_demo_habit__creates_recent_history(user):
    habit = seed_demo_habit(owner=user, days=120, rng=random.Random(7))

    today = timezone.localdate()
    dates = set(habit.entries.values_list("date", flat=True))

    assert habit.name
    assert habit.color_hex.startswith("#")
    assert dates
    assert all(today - timedelta(days=119) <= d <= today for d in dates)
    assert (timezone.now() - habit.created_at).days >= 119


def test_seed_demo_habit_command__publishes_snapshot(user):
    out = StringIO()
    call_command("seed_demo_habit", "u1", "--seed", "3", stdout=out)

    assert Habit.objects.filter(owner=user).count() == 1
    rows = decode_snapshot(store_for_owner(user.pk).get().data)
    assert len(rows) == 1


def test_seed_demo_habit_command__unknown_user():
    with pytest.raises(CommandError):
        call_command("seed_demo_habit", "ghost")
