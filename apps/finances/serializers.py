"""Serializers for platform settings and earnings."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from shared.infrastructure.serializers import StrictSerializerMixin

from .models import PlatformSetting


class PlatformSettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = PlatformSetting
        fields = [
            "id",
            "key",
            "value",
            "type",
            "description",
            "category",
            "is_public",
            "updated_by",
            "updated_at",
        ]
        read_only_fields = fields


class PlatformSettingWriteSerializer(StrictSerializerMixin, serializers.Serializer):
    key = serializers.SlugField(max_length=100)
    value = serializers.CharField(allow_blank=True)
    type = serializers.ChoiceField(choices=PlatformSetting.ValueType.choices, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    category = serializers.CharField(required=False, max_length=50)
    is_public = serializers.BooleanField(required=False)


class PublicSettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = PlatformSetting
        fields = ["key", "value", "type", "category"]
        read_only_fields = fields


class EarningsSummarySerializer(serializers.Serializer):
    order_count = serializers.IntegerField()
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    platform_fee_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    provider_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
