"""Grant a global privilege to an existing user.

Usage: `python manage.py grant_privilege alice ADMIN`. Used to bootstrap
the first administrator, so it runs as the system actor.
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from accounts.models import Privilege
from accounts.services import grant_privilege
from core.exceptions import WorkflowError


class Command(BaseCommand):
    help = "Grant ADMIN, COORDINATOR or DEPUTY_DEAN to a user"

    def add_arguments(self, parser):
        parser.add_argument("username")
        parser.add_argument("privilege", choices=[p.value for p in Privilege])

    def handle(self, *args, **options):
        User = get_user_model()
        try:
            user = User.objects.get(username=options["username"])
        except User.DoesNotExist:
            raise CommandError(f"No user named '{options['username']}'")
        try:
            grant_privilege(None, user, options["privilege"])
        except WorkflowError as exc:
            raise CommandError(str(exc.detail))
        self.stdout.write(self.style.SUCCESS(f"{user.username} now holds {options['privilege']}"))
