import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

COMPONENT_STATUSES = [
    ("operational", "Operational"),
    ("degraded_performance", "Degraded performance"),
    ("partial_outage", "Partial outage"),
    ("major_outage", "Major outage"),
    ("under_maintenance", "Under maintenance"),
]

INCIDENT_STATUSES = [
    ("investigating", "Investigating"),
    ("identified", "Identified"),
    ("monitoring", "Monitoring"),
    ("resolved", "Resolved"),
    ("scheduled", "Scheduled"),
    ("in_progress", "In progress"),
    ("completed", "Completed"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("tenants", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ComponentGroup",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100)),
                ("position", models.IntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "page",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="component_groups",
                        to="tenants.page",
                    ),
                ),
            ],
            options={
                "db_table": "component_groups",
                "ordering": ["position", "created_at"],
                "indexes": [models.Index(fields=["page", "position"], name="component_groups_position_idx")],
            },
        ),
        migrations.CreateModel(
            name="Component",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100)),
                ("description", models.TextField(blank=True, null=True)),
                ("status", models.CharField(choices=COMPONENT_STATUSES, default="operational", max_length=32)),
                ("position", models.IntegerField(default=0)),
                ("showcase", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "group",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="components",
                        to="statuspages.componentgroup",
                    ),
                ),
                (
                    "page",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="components",
                        to="tenants.page",
                    ),
                ),
            ],
            options={
                "db_table": "components",
                "ordering": ["position", "created_at"],
                "indexes": [
                    models.Index(fields=["page", "position"], name="components_position_idx"),
                    models.Index(fields=["page", "status"], name="components_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Incident",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("status", models.CharField(choices=INCIDENT_STATUSES, default="investigating", max_length=32)),
                (
                    "impact",
                    models.CharField(
                        choices=[("none", "None"), ("minor", "Minor"), ("major", "Major"), ("critical", "Critical")],
                        default="none",
                        max_length=16,
                    ),
                ),
                ("scheduled_for", models.DateTimeField(blank=True, null=True)),
                ("scheduled_until", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("resolved_at", models.DateTimeField(blank=True, null=True)),
                (
                    "page",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="incidents",
                        to="tenants.page",
                    ),
                ),
            ],
            options={
                "db_table": "incidents",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["page", "status"], name="incidents_status_idx"),
                    models.Index(fields=["page", "resolved_at"], name="incidents_resolved_at_idx"),
                    models.Index(fields=["page", "scheduled_for"], name="incidents_scheduled_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="IncidentComponent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("old_status", models.CharField(blank=True, max_length=32, null=True)),
                ("new_status", models.CharField(blank=True, max_length=32, null=True)),
                (
                    "component",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="incident_links",
                        to="statuspages.component",
                    ),
                ),
                (
                    "incident",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="affected",
                        to="statuspages.incident",
                    ),
                ),
            ],
            options={
                "db_table": "incident_components",
                "unique_together": {("incident", "component")},
            },
        ),
        migrations.AddField(
            model_name="incident",
            name="components",
            field=models.ManyToManyField(
                blank=True,
                related_name="incidents",
                through="statuspages.IncidentComponent",
                to="statuspages.component",
            ),
        ),
        migrations.CreateModel(
            name="IncidentUpdate",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("status", models.CharField(choices=INCIDENT_STATUSES, max_length=32)),
                ("body", models.TextField()),
                ("display_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "incident",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="updates",
                        to="statuspages.incident",
                    ),
                ),
            ],
            options={
                "db_table": "incident_updates",
                "ordering": ["-display_at", "-created_at"],
                "indexes": [models.Index(fields=["incident", "display_at"], name="incident_updates_display_idx")],
            },
        ),
        migrations.CreateModel(
            name="Subscriber",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("email", models.EmailField(max_length=254)),
                ("component_ids", models.JSONField(blank=True, default=list, null=True)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("quarantined_at", models.DateTimeField(blank=True, null=True)),
                ("unsubscribed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "page",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="subscribers",
                        to="tenants.page",
                    ),
                ),
            ],
            options={
                "db_table": "subscribers",
                "indexes": [
                    models.Index(fields=["page", "email"], name="subscribers_page_email_idx"),
                    models.Index(fields=["email"], name="subscribers_email_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SubscriberConfirmation",
            fields=[
                ("token", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("component_ids", models.JSONField(blank=True, null=True)),
                ("expires_at", models.DateTimeField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "subscriber",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="confirmations",
                        to="statuspages.subscriber",
                    ),
                ),
            ],
            options={
                "db_table": "subscriber_confirmations",
            },
        ),
    ]
