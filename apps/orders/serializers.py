"""Serializers for service orders."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.bookings.serializers import StatusOverrideSerializer
from shared.infrastructure.serializers import StrictSerializerMixin

from .models import ServiceOrder, ServiceOrderItem


class OrderItemRequestSerializer(StrictSerializerMixin, serializers.Serializer):
    """Позиция в запросе. Цена не принимается, её определяет каталог поставщика."""

    item_type = serializers.ChoiceField(choices=ServiceOrderItem.ItemType.choices)
    menu_item = serializers.IntegerField(required=False, allow_null=True)
    task = serializers.IntegerField(required=False, allow_null=True)
    quantity = serializers.IntegerField(required=False, min_value=1, default=1)


class ServiceOrderCreateSerializer(StrictSerializerMixin, serializers.Serializer):
    service_provider = serializers.IntegerField()
    booking = serializers.IntegerField(required=False, allow_null=True, default=None)
    service_date = serializers.DateField()
    start_time = serializers.TimeField()
    end_time = serializers.TimeField(required=False, allow_null=True, default=None)
    duration = serializers.IntegerField(required=False, allow_null=True, min_value=1, default=None)
    special_instructions = serializers.CharField(required=False, allow_blank=True, default="")
    service_location = serializers.CharField(required=False, allow_blank=True, default="")
    service_country = serializers.CharField(required=False, allow_blank=True, default="")
    items = OrderItemRequestSerializer(many=True)

    def validate_items(self, value):  # type: ignore
        if not value:
            raise serializers.ValidationError("Заказ должен содержать хотя бы одну позицию.")
        return value


class ServiceOrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = ServiceOrderItem
        fields = [
            "id",
            "item_type",
            "menu_item",
            "task",
            "item_name",
            "quantity",
            "unit_price",
            "total_price",
            "is_completed",
            "completed_at",
            "notes",
        ]
        read_only_fields = fields


class ServiceOrderSerializer(serializers.ModelSerializer):
    items = ServiceOrderItemSerializer(many=True, read_only=True)
    provider_name = serializers.ReadOnlyField(source="service_provider.business_name")

    class Meta:
        model = ServiceOrder
        fields = [
            "id",
            "order_code",
            "booking",
            "client",
            "service_provider",
            "provider_name",
            "service_date",
            "start_time",
            "end_time",
            "duration",
            "status",
            "payment_status",
            "refund_status",
            "subtotal",
            "tax_amount",
            "total_amount",
            "platform_fee_percentage",
            "platform_fee_amount",
            "provider_amount",
            "payment_intent_id",
            "stripe_refund_id",
            "special_instructions",
            "provider_notes",
            "cancellation_reason",
            "rejection_reason",
            "service_location",
            "service_country",
            "accepted_at",
            "completed_at",
            "cancelled_at",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderReasonSerializer(StrictSerializerMixin, serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class OrderCompleteSerializer(StrictSerializerMixin, serializers.Serializer):
    provider_notes = serializers.CharField(required=False, allow_blank=True, default="")


class ItemCompletionSerializer(StrictSerializerMixin, serializers.Serializer):
    is_completed = serializers.BooleanField(default=True)


class OrderStatusOverrideSerializer(StatusOverrideSerializer):
    status = serializers.ChoiceField(choices=ServiceOrder.Status.choices, required=False)
    payment_status = serializers.ChoiceField(choices=ServiceOrder.PaymentStatus.choices, required=False)
