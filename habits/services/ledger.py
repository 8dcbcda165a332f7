"""
Per-day completion ledger.

An entry exists for a day only while that day is completed, or while it
carries a note or media. Toggling an annotated day off keeps the row with
``completed=False`` so the note and photos survive; a bare entry is deleted.
"""
import logging
from datetime import date

from django.db import transaction

from habits.models import CompletionEntry, EntryMedia, Habit
from habits.services.clock import local_calendar
from streaks import algorithms
from streaks.colors import DEFAULT_COLOR_HEX, normalize_color_hex

logger = logging.getLogger(__name__)


def _day(value, calendar=None) -> date:
    return (calendar or local_calendar()).day_of(value)


def prefetched_entries_or_none(habit):
    cache = getattr(habit, "_prefetched_objects_cache", None) or {}
    if "entries" not in cache:
        return None
    return list(cache["entries"])


def _forget_prefetched_entries(habit):
    # later reads on the same instance must see the mutation
    cache = getattr(habit, "_prefetched_objects_cache", None)
    if cache:
        cache.pop("entries", None)


def entry_for(habit: Habit, day, calendar=None):
    target = _day(day, calendar)
    entries = prefetched_entries_or_none(habit)
    if entries is not None:
        return next((e for e in entries if e.date == target), None)
    return habit.entries.filter(date=target).first()


def is_completed(habit: Habit, day, calendar=None) -> bool:
    entry = entry_for(habit, day, calendar)
    return entry is not None and entry.completed is True


def completed_days(habit: Habit) -> frozenset:
    entries = prefetched_entries_or_none(habit)
    if entries is not None:
        values = [e.date for e in entries if e.completed]
    else:
        values = habit.entries.filter(completed=True).values_list("date", flat=True)
    # rows with an unreadable date count as "no entry"
    return algorithms.completed_days(d for d in values if isinstance(d, date))


def _lock(habit: Habit):
    Habit.objects.select_for_update().only("pk").get(pk=habit.pk)


def _prune_if_bare(entry: CompletionEntry):
    if entry.completed or entry.is_annotated:
        return entry
    entry.delete()
    return None


@transaction.atomic
def toggle_completion(habit: Habit, day, calendar=None):
    """
    Flip a day between completed and not completed.

    Returns the entry that now represents the day, or None when the day no
    longer has a ledger row.
    """
    target = _day(day, calendar)
    _lock(habit)

    entry = CompletionEntry.objects.filter(habit=habit, date=target).first()
    if entry is None:
        entry = CompletionEntry.objects.create(habit=habit, date=target, completed=True)
    elif entry.completed:
        entry.completed = False
        entry.save(update_fields=["completed"])
        entry = _prune_if_bare(entry)
    else:
        entry.completed = True
        entry.save(update_fields=["completed"])

    _forget_prefetched_entries(habit)
    logger.info(
        "Toggled %s on %s: %s",
        habit.pk, target, "completed" if entry is not None and entry.completed else "not completed",
    )
    return entry


@transaction.atomic
def get_or_create_entry(habit: Habit, day, calendar=None):
    target = _day(day, calendar)
    entry, created = CompletionEntry.objects.get_or_create(
        habit=habit,
        date=target,
        defaults={"completed": True},
    )
    if created:
        _forget_prefetched_entries(habit)
    return entry, created


@transaction.atomic
def set_note(habit: Habit, day, note, calendar=None):
    note = (note or "").strip() or None
    if note is None and entry_for(habit, day, calendar) is None:
        return None

    entry, _ = get_or_create_entry(habit, day, calendar)
    entry.note = note
    entry.save(update_fields=["note"])
    _forget_prefetched_entries(habit)
    return _prune_if_bare(entry)


@transaction.atomic
def attach_media(habit: Habit, day, data: bytes, content_type="image/jpeg", calendar=None) -> EntryMedia:
    entry, _ = get_or_create_entry(habit, day, calendar)
    return EntryMedia.objects.create(entry=entry, data=data, content_type=content_type)


@transaction.atomic
def remove_media(media: EntryMedia):
    entry = CompletionEntry.objects.select_related("habit").get(pk=media.entry_id)
    media.delete()
    _forget_prefetched_entries(entry.habit)
    return _prune_if_bare(entry)


def create_habit(*, owner, name: str, icon=None, color_hex=None) -> Habit:
    habit = Habit(
        owner=owner,
        name=(name or "").strip(),
        icon=icon or "star.fill",
        color_hex=normalize_color_hex(color_hex) if color_hex is not None else DEFAULT_COLOR_HEX,
    )
    habit.full_clean()
    habit.save()
    logger.info("Created habit %s (%s) for %s", habit.pk, habit.name, owner.pk)
    return habit


def update_habit(habit: Habit, *, name=None, icon=None, color_hex=None) -> Habit:
    if name is not None:
        habit.name = name
    if icon is not None:
        habit.icon = icon
    if color_hex is not None:
        habit.color_hex = normalize_color_hex(color_hex)
    habit.full_clean()
    habit.save(update_fields=["name", "icon", "color_hex"])
    return habit


@transaction.atomic
def delete_habit(habit: Habit) -> None:
    habit_id = habit.pk
    # entries and their media go with the habit (on_delete=CASCADE)
    habit.delete()
    logger.info("Deleted habit %s", habit_id)
