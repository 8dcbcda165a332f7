import random

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from habits.services.demo import seed_demo_habit
from habits.services.snapshot import publish_for_owner


class Command(BaseCommand):
    help = "Create a random demo habit with about four months of history."

    def add_arguments(self, parser):
        parser.add_argument("username")
        parser.add_argument("--days", type=int, default=120)
        parser.add_argument("--seed", type=int, default=None)

    def handle(self, *args, **options):
        try:
            owner = get_user_model().objects.get(username=options["username"])
        except get_user_model().DoesNotExist:
            raise CommandError(f"No user named {options['username']!r}")

        habit = seed_demo_habit(owner=owner, days=options["days"], rng=random.Random(options["seed"]))
        publish_for_owner(owner)
        self.stdout.write(f"Created {habit.name} ({habit.pk}) with {habit.entries.count()} entries.")
