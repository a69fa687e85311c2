import uuid
from django.db import models


class Page(models.Model):
    """A tenant's public status page, addressed by its unique subdomain."""

    INDICATOR_NONE = "none"
    INDICATOR_MINOR = "minor"
    INDICATOR_MAJOR = "major"
    INDICATOR_CRITICAL = "critical"
    INDICATOR_MAINTENANCE = "maintenance"
    STATUS_INDICATOR_CHOICES = [
        (INDICATOR_NONE, "All systems operational"),
        (INDICATOR_MINOR, "Minor"),
        (INDICATOR_MAJOR, "Major"),
        (INDICATOR_CRITICAL, "Critical"),
        (INDICATOR_MAINTENANCE, "Maintenance"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=128)
    subdomain = models.SlugField(max_length=63, unique=True)
    custom_domain = models.CharField(max_length=255, blank=True, null=True, db_index=True)
    status_indicator = models.CharField(
        max_length=16, choices=STATUS_INDICATOR_CHOICES, default=INDICATOR_NONE
    )
    status_description = models.CharField(max_length=255, blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "pages"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.subdomain
