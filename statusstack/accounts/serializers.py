from django.contrib.auth.models import User
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from .models import TeamMember
from .validators import normalize_email


def _email_field(value):
    try:
        return normalize_email(value)
    except DjangoValidationError as e:
        raise serializers.ValidationError(list(e.messages))


class UserSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="first_name")

    class Meta:
        model = User
        fields = ["id", "email", "name", "last_login", "date_joined"]


class MeSerializer(UserSerializer):
    pages = serializers.SerializerMethodField()

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ["pages"]

    def get_pages(self, obj):
        memberships = TeamMember.objects.filter(user=obj).select_related("page").order_by("page__name")
        return [
            {
                "id": str(m.page_id),
                "name": m.page.name,
                "subdomain": m.page.subdomain,
                "role": m.role,
            }
            for m in memberships
        ]


class SignupSerializer(serializers.Serializer):
    email = serializers.CharField(max_length=254)
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    name = serializers.CharField(max_length=150)

    def validate_email(self, value):
        return _email_field(value)

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        return value

    def validate(self, attrs):
        candidate = User(username=attrs["email"], email=attrs["email"], first_name=attrs["name"])
        try:
            validate_password(attrs["password"], user=candidate)
        except DjangoValidationError as e:
            raise serializers.ValidationError({"password": list(e.messages)})
        return attrs

    def email_taken(self):
        return User.objects.filter(username=self.validated_data["email"]).exists()

    def create(self, validated_data):
        return User.objects.create_user(
            username=validated_data["email"],
            email=validated_data["email"],
            password=validated_data["password"],
            first_name=validated_data["name"],
        )


class LoginSerializer(serializers.Serializer):
    email = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)

    def validate_email(self, value):
        value = (value or "").strip().lower()
        if not value:
            raise serializers.ValidationError("Email is required")
        return value


class MagicLinkRequestSerializer(serializers.Serializer):
    email = serializers.CharField()

    def validate_email(self, value):
        return _email_field(value)


class MagicLinkVerifySerializer(serializers.Serializer):
    token = serializers.CharField(max_length=64)


class TeamMemberSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(source="user.email", read_only=True)
    name = serializers.CharField(source="user.first_name", read_only=True)

    class Meta:
        model = TeamMember
        fields = ["id", "page", "email", "name", "role", "created_at"]
        read_only_fields = ("id", "page", "created_at")


class TeamMemberCreateSerializer(serializers.Serializer):
    email = serializers.CharField()
    role = serializers.ChoiceField(choices=TeamMember.ROLE_CHOICES, default=TeamMember.ROLE_MEMBER)

    def validate_email(self, value):
        value = _email_field(value)
        user = User.objects.filter(username=value).first()
        if user is None:
            raise serializers.ValidationError("No account exists for this email")
        self.context["user"] = user
        return value
