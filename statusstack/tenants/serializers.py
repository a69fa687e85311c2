import re

from django.conf import settings
from rest_framework import serializers

from .models import Page

SUBDOMAIN_RE = re.compile(r"^[a-z0-9](?:[a-z0-9-]{1,61}[a-z0-9])$")


class PageSerializer(serializers.ModelSerializer):
    class Meta:
        model = Page
        fields = [
            "id",
            "name",
            "subdomain",
            "custom_domain",
            "status_indicator",
            "status_description",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ("id", "created_at", "updated_at")

    def to_representation(self, instance):
        data = super().to_representation(instance)
        # UUIDs must survive a json round trip through the subdomain cache
        data["id"] = str(instance.id)
        return data


class PageCreateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Page
        fields = ["name", "subdomain"]

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        return value

    def validate_subdomain(self, value):
        value = (value or "").strip().lower()
        if not SUBDOMAIN_RE.match(value):
            raise serializers.ValidationError(
                "Subdomain must be 3-63 characters of lowercase letters, digits or hyphens, "
                "and may not start or end with a hyphen"
            )
        reserved = {s.lower() for s in getattr(settings, "STATUSPAGE_RESERVED_SUBDOMAINS", [])}
        if value in reserved:
            raise serializers.ValidationError("This subdomain is reserved")
        if Page.objects.filter(subdomain=value).exists():
            raise serializers.ValidationError("This subdomain is already taken")
        return value


class PageUpdateSerializer(serializers.ModelSerializer):
    """Settings update. The subdomain is immutable once a page exists."""

    class Meta:
        model = Page
        fields = ["name", "custom_domain", "status_indicator", "status_description"]

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("Name cannot be empty")
        return value

    def validate_custom_domain(self, value):
        value = (value or "").strip().lower()
        return value or None
