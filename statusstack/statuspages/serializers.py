from rest_framework import serializers

from tenants.models import Page
from .models import (
    Component,
    ComponentGroup,
    Incident,
    IncidentComponent,
    IncidentUpdate,
    Subscriber,
)
from .services import IncidentService
from accounts.validators import normalize_email
from django.core.exceptions import ValidationError as DjangoValidationError


def _required_name(value, max_length=100):
    value = (value or "").strip()
    if not value:
        raise serializers.ValidationError("Name is required")
    if len(value) > max_length:
        raise serializers.ValidationError(f"Name must be {max_length} characters or less")
    return value


class ComponentGroupSerializer(serializers.ModelSerializer):
    class Meta:
        model = ComponentGroup
        fields = ["id", "page", "name", "position", "created_at", "updated_at"]
        read_only_fields = ("id", "created_at", "updated_at")

    def validate_name(self, value):
        return _required_name(value)

    def validate(self, attrs):
        # The owning page never changes after creation
        if self.instance is not None and "page" in attrs and attrs["page"].pk != self.instance.page_id:
            raise serializers.ValidationError({"page": "A group cannot move to another page"})
        return attrs


class ComponentSerializer(serializers.ModelSerializer):
    name = serializers.CharField(max_length=255)

    class Meta:
        model = Component
        fields = [
            "id",
            "page",
            "group",
            "name",
            "description",
            "status",
            "position",
            "showcase",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ("id", "position", "created_at", "updated_at")

    def validate_name(self, value):
        return _required_name(value)

    def validate_description(self, value):
        if value is None:
            return None
        return value.strip() or None

    def validate(self, attrs):
        if self.instance is not None:
            if "page" in attrs and attrs["page"].pk != self.instance.page_id:
                raise serializers.ValidationError({"page": "A component cannot move to another page"})
            page_id = self.instance.page_id
        else:
            page_id = attrs["page"].pk
        group = attrs.get("group")
        if group is not None and group.page_id != page_id:
            raise serializers.ValidationError({"group": "Invalid group ID"})
        return attrs


class ComponentReorderSerializer(serializers.Serializer):
    page = serializers.PrimaryKeyRelatedField(queryset=Page.objects.all())
    component_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)

    def validate(self, attrs):
        ids = attrs["component_ids"]
        if len(set(ids)) != len(ids):
            raise serializers.ValidationError({"component_ids": "Duplicate component IDs"})
        found = Component.objects.filter(page=attrs["page"], pk__in=ids).count()
        if found != len(ids):
            raise serializers.ValidationError({"component_ids": "Unknown component for this page"})
        return attrs


class IncidentUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = IncidentUpdate
        fields = ["id", "status", "body", "display_at", "created_at"]
        read_only_fields = ("id", "created_at")
        extra_kwargs = {"display_at": {"required": False}}

    def validate_body(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("Message is required")
        return value


class IncidentComponentSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="component.name", read_only=True)

    class Meta:
        model = IncidentComponent
        fields = ["component", "name", "old_status", "new_status"]


class IncidentSerializer(serializers.ModelSerializer):
    updates = IncidentUpdateSerializer(many=True, read_only=True)
    affected = IncidentComponentSerializer(many=True, read_only=True)

    class Meta:
        model = Incident
        fields = [
            "id",
            "page",
            "name",
            "status",
            "impact",
            "scheduled_for",
            "scheduled_until",
            "created_at",
            "updated_at",
            "resolved_at",
            "updates",
            "affected",
        ]
        read_only_fields = ("id", "page", "created_at", "updated_at", "resolved_at")

    def validate_name(self, value):
        return _required_name(value, max_length=255)

    def validate(self, attrs):
        start = attrs.get("scheduled_for", getattr(self.instance, "scheduled_for", None))
        end = attrs.get("scheduled_until", getattr(self.instance, "scheduled_until", None))
        if start and end and end <= start:
            raise serializers.ValidationError({"scheduled_until": "Must be after scheduled_for"})
        return attrs

    def update(self, instance, validated_data):
        status = validated_data.pop("status", None)
        if status is not None:
            instance.apply_status(status)
        return super().update(instance, validated_data)


class IncidentCreateSerializer(IncidentSerializer):
    page = serializers.PrimaryKeyRelatedField(queryset=Page.objects.all())
    message = serializers.CharField(required=False, allow_blank=True, write_only=True)
    components = serializers.DictField(
        child=serializers.ChoiceField(choices=Component.STATUS_CHOICES),
        required=False,
        write_only=True,
    )

    class Meta(IncidentSerializer.Meta):
        fields = IncidentSerializer.Meta.fields + ["message", "components"]
        read_only_fields = ("id", "created_at", "updated_at", "resolved_at")

    def validate(self, attrs):
        attrs = super().validate(attrs)
        mapping = attrs.get("components") or {}
        if mapping:
            found = {
                str(pk)
                for pk in Component.objects.filter(page=attrs["page"], pk__in=list(mapping.keys())).values_list("pk", flat=True)
            }
            missing = [k for k in mapping if k not in found]
            if missing:
                raise serializers.ValidationError({"components": f"Unknown component(s): {', '.join(missing)}"})
        return attrs

    def create(self, validated_data):
        return IncidentService.open(
            page=validated_data.pop("page"),
            message=validated_data.pop("message", ""),
            components=validated_data.pop("components", None),
            **validated_data,
        )


class SubscriberSerializer(serializers.ModelSerializer):
    is_active = serializers.BooleanField(read_only=True)

    class Meta:
        model = Subscriber
        fields = [
            "id",
            "page",
            "email",
            "component_ids",
            "confirmed_at",
            "quarantined_at",
            "unsubscribed_at",
            "created_at",
            "is_active",
        ]
        read_only_fields = fields


class SubscribeSerializer(serializers.Serializer):
    email = serializers.CharField()
    component_ids = serializers.ListField(child=serializers.UUIDField(), required=False, allow_empty=True)

    def validate_email(self, value):
        try:
            return normalize_email(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(list(e.messages))

    def validate_component_ids(self, value):
        page = self.context["page"]
        ids = [str(v) for v in value]
        known = {str(pk) for pk in Component.objects.filter(page_id=page["id"], pk__in=ids).values_list("pk", flat=True)}
        if len(known) != len(set(ids)):
            raise serializers.ValidationError("Unknown component for this page")
        return sorted(known)


class SubscribeConfirmSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=64)


class UnsubscribeSerializer(serializers.Serializer):
    subscriber = serializers.UUIDField()
