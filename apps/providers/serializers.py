"""Serializers for the provider catalog."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from shared.infrastructure.serializers import StrictSerializerMixin

from .models import MenuItem, ProviderMenu, ProviderTaskConfig, ServiceCategory, ServiceProvider


class ServiceCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ServiceCategory
        fields = ["id", "name", "description", "icon"]


class ServiceProviderSerializer(serializers.ModelSerializer):
    category = ServiceCategorySerializer(read_only=True)

    class Meta:
        model = ServiceProvider
        fields = [
            "id",
            "user",
            "category",
            "business_name",
            "description",
            "hourly_rate",
            "fixed_rate",
            "location",
            "years_experience",
            "approval_status",
            "rejection_reason",
            "decided_at",
            "is_verified",
            "is_active",
            "created_at",
        ]
        read_only_fields = fields


class ProviderApplicationSerializer(StrictSerializerMixin, serializers.ModelSerializer):
    """Данные заявки; статус и владелец выставляются сервером."""

    category = serializers.PrimaryKeyRelatedField(queryset=ServiceCategory.objects.all())

    class Meta:
        model = ServiceProvider
        fields = [
            "category",
            "business_name",
            "description",
            "hourly_rate",
            "fixed_rate",
            "location",
            "years_experience",
        ]

    def validate(self, attrs):  # type: ignore
        if attrs.get("hourly_rate") is None and attrs.get("fixed_rate") is None:
            raise serializers.ValidationError("Укажите почасовую или фиксированную ставку.")
        return attrs


class ProviderDecisionSerializer(StrictSerializerMixin, serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class MenuItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = MenuItem
        fields = ["id", "dish_name", "description", "price", "is_available"]


class ProviderMenuSerializer(serializers.ModelSerializer):
    items = serializers.SerializerMethodField()

    class Meta:
        model = ProviderMenu
        fields = ["id", "category_name", "description", "items"]

    def get_items(self, obj):  # type: ignore
        items = [item for item in obj.items.all() if item.is_available]
        return MenuItemSerializer(items, many=True).data


class ProviderTaskConfigSerializer(serializers.ModelSerializer):
    task_name = serializers.CharField(source="task.task_name", read_only=True)
    task_code = serializers.CharField(source="task.task_code", read_only=True)

    class Meta:
        model = ProviderTaskConfig
        fields = ["id", "task", "task_code", "task_name", "custom_price", "estimated_duration"]
