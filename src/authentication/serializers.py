"""Serializers for authentication flows (register, login, profile, moderation)."""

from typing import cast

from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed, PermissionDenied

from .managers import UserManager
from .models import UserStatus

User = get_user_model()


class RegisterSerializer(serializers.Serializer):
    """Validate and create a user with the ``regular`` role."""

    username = serializers.CharField(min_length=2, max_length=24)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    repeat_password = serializers.CharField(write_only=True, min_length=8)
    display_name = serializers.CharField(required=False, allow_blank=True, max_length=150)

    @staticmethod
    def validate_username(value):
        if User.objects.filter(username=value).exists():
            raise serializers.ValidationError("Username already in use")
        return value

    @staticmethod
    def validate_email(value):
        """Ensure email is unique before creation."""
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email already in use")
        return value

    def validate(self, attrs):
        """Ensure provided passwords match before creation."""
        if attrs.get("password") != attrs.get("repeat_password"):
            raise serializers.ValidationError("Passwords do not match")
        return attrs

    def create(self, validated_data):
        validated_data.pop("repeat_password")
        if not validated_data.get("display_name"):
            validated_data["display_name"] = validated_data["username"]
        manager = cast(UserManager, User.objects)
        return manager.create_user(**validated_data)


class LoginSerializer(serializers.Serializer):
    """Authenticate a user by username or email using bcrypt verification."""

    login = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        """Authenticate credentials and attach the user to validated_data."""
        manager = cast(UserManager, User.objects)
        try:
            user = manager.get_by_login(attrs.get("login"))
        except User.DoesNotExist:
            raise AuthenticationFailed("Invalid credentials")

        if not UserManager.verify_password(user, attrs.get("password")):
            raise AuthenticationFailed("Invalid credentials")

        # Checked after the password so bans are not disclosed to guessers.
        if user.is_banned:
            raise PermissionDenied("This account has been banned. Contact a maintainer.")

        attrs["user"] = user
        return attrs


class UserDetailSerializer(serializers.ModelSerializer):
    """Read-only user profile payload for responses."""

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "display_name",
            "email",
            "bio",
            "role",
            "status",
        ]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Patchable fields for /auth/me updates."""

    class Meta:
        model = User
        fields = ["display_name", "bio"]
        extra_kwargs = {field: {"required": False, "allow_blank": True} for field in fields}

    def validate(self, attrs):
        """Reject attempts to change identity or privilege fields here."""
        forbidden = {"email", "username", "role", "status"} & set(getattr(self, "initial_data", {}))
        if forbidden:
            raise serializers.ValidationError(
                f"{', '.join(sorted(forbidden))} cannot be updated via this endpoint"
            )
        return super().validate(attrs)


class UserStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=UserStatus.choices)
