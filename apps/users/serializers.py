"""Serializers for user-related API endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

from shared.infrastructure.serializers import StrictSerializerMixin

from .models import RoleChangeRequest

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Основной сериализатор пользователя."""

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "phone",
            "role",
            "status",
            "approved_by",
            "approved_at",
            "date_joined",
        ]
        read_only_fields = fields


class StaffAccountSerializer(StrictSerializerMixin, serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True)
    role = serializers.ChoiceField(choices=User.RoleChoices.choices)
    first_name = serializers.CharField(required=False, allow_blank=True)
    last_name = serializers.CharField(required=False, allow_blank=True)


class AssignRoleSerializer(StrictSerializerMixin, serializers.Serializer):
    role = serializers.ChoiceField(choices=User.RoleChoices.choices)


class DecisionReasonSerializer(StrictSerializerMixin, serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class RoleChangeRequestSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = RoleChangeRequest
        fields = [
            "id",
            "user",
            "requested_role",
            "reason",
            "status",
            "reviewed_by",
            "reviewed_at",
            "admin_notes",
            "created_at",
        ]
        read_only_fields = ["status", "reviewed_by", "reviewed_at", "admin_notes", "created_at"]


class RoleChangeRequestCreateSerializer(StrictSerializerMixin, serializers.Serializer):
    requested_role = serializers.ChoiceField(choices=RoleChangeRequest.RequestedRole.choices)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class RoleChangeReviewSerializer(StrictSerializerMixin, serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")
