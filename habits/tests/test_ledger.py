from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.core.exceptions import ValidationError
from django.utils import timezone

from habits.models import CompletionEntry, EntryMedia, Habit
from habits.services import ledger
from streaks.calendar import LocalCalendar

pytestmark = pytest.mark.django_db


@pytest.fixture()
def user(django_user_model):
    return django_user_model.objects.create_user(
        username="u1",
        password="pass12345",
        email="u1@example.com",
    )


@pytest.fixture()
def habit(user):
    return ledger.create_habit(owner=user, name="Read", color_hex="#FF5A5F")


def test_create_habit__trims_name_and_normalizes_color(user):
    habit = ledger.create_habit(owner=user, name="  Run  ", icon="figure.run", color_hex="00a699")

    assert habit.name == "Run"
    assert habit.icon == "figure.run"
    assert habit.color_hex == "#00A699"


def test_create_habit__malformed_color_falls_back_to_default(user):
    habit = ledger.create_habit(owner=user, name="Swim", color_hex="blue-ish")
    assert habit.color_hex == "#FF5A5F"


def test_create_habit__blank_name_is_rejected(user):
    with pytest.raises(ValidationError):
        ledger.create_habit(owner=user, name="   ")
    assert Habit.objects.count() == 0


def test_is_completed__missing_entry_is_not_completed(habit):
    today = timezone.localdate()

    assert ledger.is_completed(habit, today) is False
    assert ledger.entry_for(habit, today) is None


def test_is_completed__repeated_calls_agree(habit):
    today = timezone.localdate()
    ledger.toggle_completion(habit, today)

    assert ledger.is_completed(habit, today) is True
    assert ledger.is_completed(habit, today) is True


def test_is_completed__accepts_any_instant_within_the_day(habit):
    today = timezone.localdate()
    ledger.toggle_completion(habit, today)

    late = timezone.localtime().replace(hour=23, minute=59, second=59)
    early = timezone.localtime().replace(hour=0, minute=0, second=1)

    assert ledger.is_completed(habit, late) is True
    assert ledger.is_completed(habit, early) is True


def test_toggle_completion__normalizes_foreign_zone_instants(habit):
    calendar = LocalCalendar(tz=dt_timezone.utc)
    plus_five = dt_timezone(timedelta(hours=5))
    instant = datetime(2025, 12, 10, 2, 0, tzinfo=plus_five)

    entry = ledger.toggle_completion(habit, instant, calendar=calendar)

    assert entry.date.isoformat() == "2025-12-09"


def test_toggle_completion__applied_twice_restores_state(habit):
    today = timezone.localdate()

    entry = ledger.toggle_completion(habit, today)
    assert entry.completed is True
    assert ledger.is_completed(habit, today) is True

    assert ledger.toggle_completion(habit, today) is None
    assert ledger.is_completed(habit, today) is False
    assert not CompletionEntry.objects.filter(habit=habit).exists()


def test_toggle_completion__visible_on_prefetched_instance(habit):
    today = timezone.localdate()
    obj = Habit.objects.prefetch_related("entries").get(pk=habit.pk)
    assert ledger.is_completed(obj, today) is False

    ledger.toggle_completion(obj, today)

    assert ledger.is_completed(obj, today) is True
    assert ledger.completed_days(obj) == frozenset({today})


def test_toggle_completion__keeps_annotated_entry_as_incomplete(habit):
    today = timezone.localdate()
    ledger.toggle_completion(habit, today)
    ledger.set_note(habit, today, "Chapter 3")

    entry = ledger.toggle_completion(habit, today)

    assert entry is not None
    assert entry.completed is False
    assert entry.note == "Chapter 3"
    assert ledger.is_completed(habit, today) is False

    entry = ledger.toggle_completion(habit, today)
    assert entry.completed is True
    assert CompletionEntry.objects.filter(habit=habit).count() == 1


def test_toggle_completion__media_survives_toggle_off(habit):
    today = timezone.localdate()
    media = ledger.attach_media(habit, today, b"jpeg-bytes")

    entry = ledger.toggle_completion(habit, today)

    assert entry.completed is False
    assert EntryMedia.objects.filter(pk=media.pk).exists()


def test_get_or_create_entry__is_idempotent(habit):
    today = timezone.localdate()

    first, created = ledger.get_or_create_entry(habit, today)
    second, created_again = ledger.get_or_create_entry(habit, today)

    assert created is True
    assert created_again is False
    assert first.pk == second.pk
    assert first.completed is True


def test_set_note__blank_note_on_empty_day_creates_nothing(habit):
    today = timezone.localdate()

    assert ledger.set_note(habit, today, "   ") is None
    assert not CompletionEntry.objects.exists()


def test_set_note__clearing_note_prunes_incomplete_entry(habit):
    today = timezone.localdate()
    ledger.set_note(habit, today, "felt tired")
    ledger.toggle_completion(habit, today)  # off, kept because of the note

    assert ledger.set_note(habit, today, "") is None
    assert not CompletionEntry.objects.exists()


def test_remove_media__prunes_bare_incomplete_entry(habit):
    today = timezone.localdate()
    media = ledger.attach_media(habit, today, b"png", "image/png")
    ledger.toggle_completion(habit, today)

    assert ledger.remove_media(media) is None
    assert not CompletionEntry.objects.exists()


def test_remove_media__keeps_completed_entry(habit):
    today = timezone.localdate()
    media = ledger.attach_media(habit, today, b"png", "image/png")

    entry = ledger.remove_media(media)

    assert entry is not None
    assert entry.completed is True


def test_delete_habit__cascades_entries_and_media(habit):
    today = timezone.localdate()
    ledger.attach_media(habit, today, b"png")
    ledger.toggle_completion(habit, today - timedelta(days=1))

    ledger.delete_habit(habit)

    assert not Habit.objects.exists()
    assert not CompletionEntry.objects.exists()
    assert not EntryMedia.objects.exists()


def test_update_habit__changes_only_given_fields(habit):
    ledger.update_habit(habit, color_hex="#abcdef")
    habit.refresh_from_db()

    assert habit.name == "Read"
    assert habit.color_hex == "#ABCDEF"
