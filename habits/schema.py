import graphene
from django.contrib.auth import get_user_model
from graphene_django import DjangoObjectType

from habits.models import Habit, CompletionEntry
from habits.services import habit_stats, ledger
from habits.services.clock import local_today
from habits.services.snapshot import build_snapshot, publish_for_owner, schedule_publish
from streaks.algorithms import CellState

CellStateEnum = graphene.Enum.from_enum(CellState)


def _require_user(info):
    user = info.context.user
    if user.is_anonymous:
        raise Exception("Authentication required")
    return user


class DailyPointType(graphene.ObjectType):
    day = graphene.Date()
    completed = graphene.Boolean()


class WeeklyPointType(graphene.ObjectType):
    week_start = graphene.Date()
    completed_count = graphene.Int()
    total_count = graphene.Int()
    completion_rate = graphene.Float()


class GridCellType(graphene.ObjectType):
    day = graphene.Date()
    state = graphene.Field(CellStateEnum)
    is_interactive = graphene.Boolean()


class CompletionEntryType(DjangoObjectType):
    has_media = graphene.Boolean()

    class Meta:
        model = CompletionEntry
        fields = ("id", "habit", "date", "completed", "note", "created_at")

    def resolve_has_media(self, info):
        return self.has_media


class HabitType(DjangoObjectType):
    total_completed_days = graphene.Int()
    completed_today = graphene.Boolean()
    last_7_days_count = graphene.Int()
    current_streak = graphene.Int()
    best_streak = graphene.Int()
    completion_rate = graphene.Float(days=graphene.Int(default_value=30))
    lifetime_completion_rate = graphene.Float()
    is_completed = graphene.Boolean(date=graphene.Date(required=True))
    daily_points = graphene.List(DailyPointType, days=graphene.Int(default_value=14))
    weekly_points = graphene.List(WeeklyPointType, weeks=graphene.Int(default_value=10))
    contribution_grid = graphene.List(graphene.List(GridCellType), weeks=graphene.Int(default_value=11))
    month_grid = graphene.List(GridCellType, month=graphene.Date(required=False))

    class Meta:
        model = Habit
        fields = ("id", "name", "icon", "color_hex", "created_at", "entries")

    def resolve_total_completed_days(self, info):
        return habit_stats.total_completed(self)

    def resolve_completed_today(self, info):
        return habit_stats.completed_today(self)

    def resolve_last_7_days_count(self, info):
        return habit_stats.last_7_days_count(self)

    def resolve_current_streak(self, info):
        return habit_stats.current_streak(self)

    def resolve_best_streak(self, info):
        return habit_stats.best_streak(self)

    def resolve_completion_rate(self, info, days):
        return habit_stats.completion_rate(self, days)

    def resolve_lifetime_completion_rate(self, info):
        return habit_stats.lifetime_completion_rate(self)

    def resolve_is_completed(self, info, date):
        return ledger.is_completed(self, date)

    def resolve_daily_points(self, info, days):
        return habit_stats.daily_points(self, days)

    def resolve_weekly_points(self, info, weeks):
        return habit_stats.weekly_points(self, weeks)

    def resolve_contribution_grid(self, info, weeks):
        return habit_stats.contribution_grid(self, weeks)

    def resolve_month_grid(self, info, month=None):
        return habit_stats.month_grid(self, month)


class WidgetSnapshotType(graphene.ObjectType):
    id = graphene.ID()
    name = graphene.String()
    icon = graphene.String()
    color_hex = graphene.String()
    current_streak = graphene.Int()
    completed_dates = graphene.List(graphene.Date)


class UserType(DjangoObjectType):
    class Meta:
        model = get_user_model()
        fields = ("id", "username", "email")


class Query(graphene.ObjectType):
    me = graphene.Field(UserType)
    habits = graphene.List(HabitType)
    habit = graphene.Field(HabitType, id=graphene.ID(required=True))
    widget_snapshot = graphene.List(WidgetSnapshotType)

    def resolve_habits(self, info):
        user = info.context.user
        if user.is_anonymous:
            return Habit.objects.none()

        qs = Habit.objects.filter(owner=user).order_by("name")
        qs = habit_stats.with_habit_stats(qs).prefetch_related("entries")
        return qs

    def resolve_habit(self, info, id):
        user = _require_user(info)

        qs = habit_stats.with_habit_stats(
            Habit.objects.filter(owner=user)
        ).prefetch_related("entries")
        return qs.get(pk=id)

    def resolve_widget_snapshot(self, info):
        user = _require_user(info)
        habits = Habit.objects.filter(owner=user).order_by("created_at").prefetch_related("entries")
        return build_snapshot(habits, local_today())

    def resolve_me(self, info):
        user = info.context.user
        return None if user.is_anonymous else user


class CreateHabit(graphene.Mutation):
    class Arguments:
        name = graphene.String(required=True)
        icon = graphene.String(required=False)
        color_hex = graphene.String(required=False)

    habit = graphene.Field(HabitType)

    def mutate(self, info, name, icon=None, color_hex=None):
        user = _require_user(info)

        habit = ledger.create_habit(owner=user, name=name, icon=icon, color_hex=color_hex)
        schedule_publish(user)
        return CreateHabit(habit=habit)


class UpdateHabit(graphene.Mutation):
    class Arguments:
        id = graphene.ID(required=True)
        name = graphene.String(required=False)
        icon = graphene.String(required=False)
        color_hex = graphene.String(required=False)

    habit = graphene.Field(HabitType)

    def mutate(self, info, id, name=None, icon=None, color_hex=None):
        user = _require_user(info)

        habit = Habit.objects.get(pk=id, owner=user)
        ledger.update_habit(habit, name=name, icon=icon, color_hex=color_hex)
        schedule_publish(user)
        return UpdateHabit(habit=habit)


class ToggleCompletion(graphene.Mutation):
    class Arguments:
        habit_id = graphene.ID(required=True)
        date = graphene.Date(required=False)

    completed = graphene.Boolean(required=True)
    entry = graphene.Field(CompletionEntryType)
    habit = graphene.Field(HabitType)

    @classmethod
    def mutate(cls, root, info, habit_id, date=None):
        user = _require_user(info)

        habit = Habit.objects.get(pk=habit_id, owner=user)
        today = local_today()
        day = date or today
        if day > today:
            raise Exception("Future days cannot be toggled")

        entry = ledger.toggle_completion(habit, day)
        schedule_publish(user)
        return cls(
            completed=entry is not None and entry.completed,
            entry=entry,
            habit=habit,
        )


class SetEntryNote(graphene.Mutation):
    class Arguments:
        habit_id = graphene.ID(required=True)
        date = graphene.Date(required=True)
        note = graphene.String(required=False)

    entry = graphene.Field(CompletionEntryType)

    def mutate(self, info, habit_id, date, note=None):
        user = _require_user(info)

        habit = Habit.objects.get(pk=habit_id, owner=user)
        entry = ledger.set_note(habit, date, note)
        schedule_publish(user)
        return SetEntryNote(entry=entry)


class DeleteHabit(graphene.Mutation):
    class Arguments:
        id = graphene.ID(required=True)

    ok = graphene.Boolean(required=True)
    deleted_id = graphene.ID(required=True)

    def mutate(self, info, id):
        user = _require_user(info)

        habit = Habit.objects.get(pk=id, owner=user)
        ledger.delete_habit(habit)
        schedule_publish(user)
        return DeleteHabit(ok=True, deleted_id=id)


class PublishWidgetSnapshot(graphene.Mutation):
    """Called when the app comes to the foreground."""

    ok = graphene.Boolean(required=True)

    def mutate(self, info):
        user = _require_user(info)
        return PublishWidgetSnapshot(ok=publish_for_owner(user))


class Mutation(graphene.ObjectType):
    create_habit = CreateHabit.Field()
    update_habit = UpdateHabit.Field()
    toggle_completion = ToggleCompletion.Field()
    set_entry_note = SetEntryNote.Field()
    delete_habit = DeleteHabit.Field()
    publish_widget_snapshot = PublishWidgetSnapshot.Field()
