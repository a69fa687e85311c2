import uuid
from django.db import models
from django.utils import timezone


class ComponentGroup(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    page = models.ForeignKey("tenants.Page", on_delete=models.CASCADE, related_name="component_groups")
    name = models.CharField(max_length=100)
    position = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "component_groups"
        ordering = ["position", "created_at"]
        indexes = [
            models.Index(fields=["page", "position"], name="component_groups_position_idx"),
        ]

    def __str__(self) -> str:
        return self.name


class Component(models.Model):
    STATUS_OPERATIONAL = "operational"
    STATUS_DEGRADED = "degraded_performance"
    STATUS_PARTIAL_OUTAGE = "partial_outage"
    STATUS_MAJOR_OUTAGE = "major_outage"
    STATUS_MAINTENANCE = "under_maintenance"
    STATUS_CHOICES = [
        (STATUS_OPERATIONAL, "Operational"),
        (STATUS_DEGRADED, "Degraded performance"),
        (STATUS_PARTIAL_OUTAGE, "Partial outage"),
        (STATUS_MAJOR_OUTAGE, "Major outage"),
        (STATUS_MAINTENANCE, "Under maintenance"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    page = models.ForeignKey("tenants.Page", on_delete=models.CASCADE, related_name="components")
    group = models.ForeignKey(
        ComponentGroup, on_delete=models.SET_NULL, null=True, blank=True, related_name="components"
    )
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_OPERATIONAL)
    position = models.IntegerField(default=0)
    # Hidden components are kept out of the public status page
    showcase = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "components"
        ordering = ["position", "created_at"]
        indexes = [
            models.Index(fields=["page", "position"], name="components_position_idx"),
            models.Index(fields=["page", "status"], name="components_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.status})"


class Incident(models.Model):
    STATUS_INVESTIGATING = "investigating"
    STATUS_IDENTIFIED = "identified"
    STATUS_MONITORING = "monitoring"
    STATUS_RESOLVED = "resolved"
    STATUS_SCHEDULED = "scheduled"
    STATUS_IN_PROGRESS = "in_progress"
    STATUS_COMPLETED = "completed"
    STATUS_CHOICES = [
        (STATUS_INVESTIGATING, "Investigating"),
        (STATUS_IDENTIFIED, "Identified"),
        (STATUS_MONITORING, "Monitoring"),
        (STATUS_RESOLVED, "Resolved"),
        (STATUS_SCHEDULED, "Scheduled"),
        (STATUS_IN_PROGRESS, "In progress"),
        (STATUS_COMPLETED, "Completed"),
    ]
    CLOSED_STATUSES = (STATUS_RESOLVED, STATUS_COMPLETED)

    IMPACT_CHOICES = [
        ("none", "None"),
        ("minor", "Minor"),
        ("major", "Major"),
        ("critical", "Critical"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    page = models.ForeignKey("tenants.Page", on_delete=models.CASCADE, related_name="incidents")
    name = models.CharField(max_length=255)
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_INVESTIGATING)
    impact = models.CharField(max_length=16, choices=IMPACT_CHOICES, default="none")
    scheduled_for = models.DateTimeField(null=True, blank=True)
    scheduled_until = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    components = models.ManyToManyField(
        Component, through="IncidentComponent", related_name="incidents", blank=True
    )

    class Meta:
        db_table = "incidents"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["page", "status"], name="incidents_status_idx"),
            models.Index(fields=["page", "resolved_at"], name="incidents_resolved_at_idx"),
            models.Index(fields=["page", "scheduled_for"], name="incidents_scheduled_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} [{self.status}]"

    def apply_status(self, status, now=None):
        """Move to status, stamping resolved_at when the incident closes."""
        self.status = status
        if status in self.CLOSED_STATUSES:
            if self.resolved_at is None:
                self.resolved_at = now or timezone.now()
        else:
            self.resolved_at = None


class IncidentUpdate(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    incident = models.ForeignKey(Incident, on_delete=models.CASCADE, related_name="updates")
    status = models.CharField(max_length=32, choices=Incident.STATUS_CHOICES)
    body = models.TextField()
    display_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "incident_updates"
        ordering = ["-display_at", "-created_at"]
        indexes = [
            models.Index(fields=["incident", "display_at"], name="incident_updates_display_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.incident_id} {self.status} @ {self.display_at:%Y-%m-%d %H:%M}"


class IncidentComponent(models.Model):
    incident = models.ForeignKey(Incident, on_delete=models.CASCADE, related_name="affected")
    component = models.ForeignKey(Component, on_delete=models.CASCADE, related_name="incident_links")
    old_status = models.CharField(max_length=32, blank=True, null=True)
    new_status = models.CharField(max_length=32, blank=True, null=True)

    class Meta:
        db_table = "incident_components"
        unique_together = ("incident", "component")


class Subscriber(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    page = models.ForeignKey("tenants.Page", on_delete=models.CASCADE, related_name="subscribers")
    email = models.EmailField()
    # Empty or null means "all components"
    component_ids = models.JSONField(default=list, blank=True, null=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    quarantined_at = models.DateTimeField(null=True, blank=True)
    unsubscribed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "subscribers"
        indexes = [
            models.Index(fields=["page", "email"], name="subscribers_page_email_idx"),
            models.Index(fields=["email"], name="subscribers_email_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.email} -> {self.page_id}"

    @property
    def is_active(self):
        return bool(self.confirmed_at) and not self.quarantined_at and not self.unsubscribed_at

    def wants(self, component_ids):
        """True if this subscriber should hear about the given components."""
        if not self.component_ids or not component_ids:
            return True
        wanted = {str(c) for c in self.component_ids}
        return any(str(c) in wanted for c in component_ids)


class SubscriberConfirmation(models.Model):
    token = models.CharField(max_length=64, primary_key=True)
    subscriber = models.ForeignKey(Subscriber, on_delete=models.CASCADE, related_name="confirmations")
    # Component filter requested with this link; replaces the subscriber's on confirm
    component_ids = models.JSONField(null=True, blank=True)
    expires_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "subscriber_confirmations"

    def __str__(self) -> str:
        return f"{self.subscriber_id} - {self.token[:8]}…"

    def is_expired(self, now=None):
        return self.expires_at <= (now or timezone.now())
