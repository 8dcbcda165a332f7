from django.contrib import admin

from .models import CompletionEntry, EntryMedia, Habit


class CompletionEntryInline(admin.TabularInline):
    model = CompletionEntry
    extra = 0
    fields = ("date", "completed", "note")


@admin.register(Habit)
class HabitAdmin(admin.ModelAdmin):
    list_display = ("name", "owner", "icon", "color_hex", "created_at")
    search_fields = ("name",)
    inlines = [CompletionEntryInline]


@admin.register(EntryMedia)
class EntryMediaAdmin(admin.ModelAdmin):
    list_display = ("entry", "content_type", "created_at")
    exclude = ("data",)
