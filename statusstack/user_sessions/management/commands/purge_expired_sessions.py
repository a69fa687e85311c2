from django.core.management.base import BaseCommand

from user_sessions.services import get_session_manager


class Command(BaseCommand):
    help = "Delete cookie sessions whose expiry has passed"

    def handle(self, *args, **kwargs):
        deleted = get_session_manager().purge_expired()
        self.stdout.write(self.style.SUCCESS(f"Purged {deleted} expired session(s)."))
