from __future__ import annotations
from typing import TYPE_CHECKING
import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from streaks.colors import DEFAULT_COLOR_HEX, normalize_color_hex


class Habit(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='habits',
    )
    name = models.CharField(max_length=120)
    icon = models.CharField(max_length=64, default="star.fill")
    color_hex = models.CharField(max_length=7, default=DEFAULT_COLOR_HEX)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]

    if TYPE_CHECKING:
        # Django dynamically injects this via related_name="entries"
        entries = None

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError({"name": "Habit name cannot be blank."})

    def save(self, *args, **kwargs):
        self.name = (self.name or "").strip()
        self.color_hex = normalize_color_hex(self.color_hex)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.name


class CompletionEntry(models.Model):
    habit = models.ForeignKey(Habit, on_delete=models.CASCADE,
                              related_name="entries")
    date = models.DateField()
    completed = models.BooleanField(default=True)
    note = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["habit", "date"], name="unique_entry_per_habit_per_day")
        ]
        ordering = ["-date", "-created_at"]

    if TYPE_CHECKING:
        media = None

    @property
    def has_media(self) -> bool:
        cache = getattr(self, "_prefetched_objects_cache", None) or {}
        if "media" in cache:
            return bool(cache["media"])
        return self.media.exists()

    @property
    def is_annotated(self) -> bool:
        """Holds a note or media, so it outlives being toggled off."""
        return bool(self.note) or self.has_media

    def __str__(self) -> str:
        mark = "done" if self.completed else "open"
        return f"{self.habit.name} @ {self.date} ({mark})"


class EntryMedia(models.Model):
    entry = models.ForeignKey(CompletionEntry, on_delete=models.CASCADE,
                              related_name="media")
    data = models.BinaryField()
    content_type = models.CharField(max_length=100, default="image/jpeg")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.content_type} for {self.entry}"
