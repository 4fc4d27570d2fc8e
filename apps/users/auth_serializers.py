"""Serializers for authentication flows (register, login)."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

from shared.infrastructure.serializers import StrictSerializerMixin

User = get_user_model()

SELF_SERVICE_ROLES = [
    (User.RoleChoices.CLIENT.value, User.RoleChoices.CLIENT.label),
    (User.RoleChoices.PROPERTY_OWNER.value, User.RoleChoices.PROPERTY_OWNER.label),
    (User.RoleChoices.SERVICE_PROVIDER.value, User.RoleChoices.SERVICE_PROVIDER.label),
    (User.RoleChoices.COUNTRY_MANAGER.value, User.RoleChoices.COUNTRY_MANAGER.label),
    (User.RoleChoices.CITY_MANAGER.value, User.RoleChoices.CITY_MANAGER.label),
]


class RegisterSerializer(StrictSerializerMixin, serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True)
    first_name = serializers.CharField(required=False, allow_blank=True, default="")
    last_name = serializers.CharField(required=False, allow_blank=True, default="")
    role = serializers.ChoiceField(choices=SELF_SERVICE_ROLES, default=User.RoleChoices.CLIENT.value)


class LoginSerializer(StrictSerializerMixin, serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
