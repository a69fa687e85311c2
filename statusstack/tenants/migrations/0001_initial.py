import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Page",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=128)),
                ("subdomain", models.SlugField(max_length=63, unique=True)),
                ("custom_domain", models.CharField(blank=True, db_index=True, max_length=255, null=True)),
                (
                    "status_indicator",
                    models.CharField(
                        choices=[
                            ("none", "All systems operational"),
                            ("minor", "Minor"),
                            ("major", "Major"),
                            ("critical", "Critical"),
                            ("maintenance", "Maintenance"),
                        ],
                        default="none",
                        max_length=16,
                    ),
                ),
                ("status_description", models.CharField(blank=True, max_length=255, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "pages",
                "ordering": ["name"],
            },
        ),
    ]
