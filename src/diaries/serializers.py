"""Serializers for diary payloads and collaboration review bodies."""

from django.contrib.auth import get_user_model
from rest_framework import serializers

from access_control.states import ReviewAction
from .models import Diary

User = get_user_model()


class DiaryOwnerSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "username", "display_name"]
        read_only_fields = fields


class DiarySerializer(serializers.ModelSerializer):
    """Diary fields; ownership and ``updated_at`` are read-only.

    ``owner_username`` lets staff file a diary on behalf of another user;
    the view decides whether the caller may use it.
    """

    owner = DiaryOwnerSerializer(read_only=True)
    owner_username = serializers.CharField(write_only=True, required=False)
    created_at = serializers.DateTimeField(required=False)

    class Meta:
        model = Diary
        fields = [
            "id",
            "title",
            "content",
            "cover_image",
            "is_pinned",
            "is_locked",
            "owner",
            "owner_username",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "owner", "updated_at"]

    def validate_owner_username(self, value):
        try:
            return User.objects.get(username=value)
        except User.DoesNotExist:
            raise serializers.ValidationError("The specified user does not exist.")

    def update(self, instance, validated_data):
        # Ownership never moves through an update.
        validated_data.pop("owner_username", None)
        return super().update(instance, validated_data)


class CollaborationReviewSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=ReviewAction.choices)


__all__ = ["DiarySerializer", "DiaryOwnerSerializer", "CollaborationReviewSerializer"]
