import uuid
from django.db import models
from django.conf import settings
from django.utils import timezone


class TeamMember(models.Model):
    """Link a user to a status page with a per-page role.

    A user may belong to many pages; a page has at least one owner.
    """

    ROLE_OWNER = "owner"
    ROLE_ADMIN = "admin"
    ROLE_MEMBER = "member"
    ROLE_CHOICES = [
        (ROLE_OWNER, "Owner"),
        (ROLE_ADMIN, "Admin"),
        (ROLE_MEMBER, "Member"),
    ]
    MANAGER_ROLES = (ROLE_OWNER, ROLE_ADMIN)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    page = models.ForeignKey("tenants.Page", on_delete=models.CASCADE, related_name="team_members")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="team_memberships")
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=ROLE_MEMBER)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "team_members"
        unique_together = ("page", "user")

    def __str__(self) -> str:
        return f"{self.user_id}@{self.page_id} ({self.role})"


class MagicLink(models.Model):
    """Single-use, short-lived login token sent by email"""
    token = models.CharField(max_length=64, primary_key=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="magic_links")
    expires_at = models.DateTimeField()
    used_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "magic_links"

    def __str__(self) -> str:
        return f"{self.user_id} - {self.token[:8]}…"

    def is_usable(self):
        return self.used_at is None and self.expires_at > timezone.now()
