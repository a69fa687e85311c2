from django.db import models
from django.conf import settings
from django.utils import timezone


class Session(models.Model):
    """Opaque bearer session handed to the browser as the session_id cookie.

    Valid while it exists and expires_at is in the future. The user reference
    carries no database constraint: rows can outlive their user (raw deletes,
    another service sharing the table) and are cleaned up on validation.
    """
    token = models.CharField(max_length=64, primary_key=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        db_constraint=False,
        related_name='status_sessions',
    )
    expires_at = models.DateTimeField()
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'sessions'
        indexes = [
            models.Index(fields=['expires_at'], name='sessions_expires_at_idx'),
        ]

    def __str__(self):
        return f"{self.user_id} - {self.token[:8]}…"

    def is_valid(self, now=None):
        """Check if session is still valid"""
        return self.expires_at > (now or timezone.now())
