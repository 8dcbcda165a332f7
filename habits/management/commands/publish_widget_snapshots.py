from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from habits.services.snapshot import publish_for_owner


class Command(BaseCommand):
    help = "Republish the widget snapshot of every user that has habits."

    def add_arguments(self, parser):
        parser.add_argument("--user", default=None, help="Only this username.")

    def handle(self, *args, **options):
        users = get_user_model().objects.filter(habits__isnull=False).distinct()
        if options["user"]:
            users = users.filter(username=options["user"])

        published = failed = 0
        for user in users:
            if publish_for_owner(user):
                published += 1
            else:
                failed += 1

        self.stdout.write(f"Published {published} snapshot(s), {failed} failed.")
