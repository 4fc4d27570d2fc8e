"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from shared.infrastructure.serializers import StrictSerializerMixin

from .models import Booking, BookingCancellation, BookingEvent, ServiceBooking


class ServiceRequestSerializer(StrictSerializerMixin, serializers.Serializer):
    """Дополнительная услуга в запросе на бронирование."""

    service_provider = serializers.IntegerField()
    service_name = serializers.CharField(required=False, allow_blank=True, default="")
    service_date = serializers.DateTimeField()
    duration = serializers.IntegerField(required=False, allow_null=True, min_value=1, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class BookingCreateSerializer(StrictSerializerMixin, serializers.Serializer):
    """Создание брони клиентом. Цены рассчитываются сервером."""

    property = serializers.IntegerField()
    check_in = serializers.DateTimeField()
    check_out = serializers.DateTimeField()
    guests = serializers.IntegerField(min_value=1, default=1)
    services = ServiceRequestSerializer(many=True, required=False, default=list)

    def validate(self, attrs):  # type: ignore
        if attrs["check_in"] >= attrs["check_out"]:
            raise serializers.ValidationError("Дата выезда должна быть позже даты заезда.")
        return attrs


class ServiceBookingSerializer(serializers.ModelSerializer):
    booking_code = serializers.ReadOnlyField(source="booking.booking_code")

    class Meta:
        model = ServiceBooking
        fields = [
            "id",
            "booking",
            "booking_code",
            "service_provider",
            "preferred_provider",
            "service_name",
            "service_date",
            "duration",
            "rate",
            "total",
            "status",
            "notes",
            "completed_at",
        ]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    """Детальный сериализатор бронирования."""

    service_bookings = ServiceBookingSerializer(many=True, read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_code",
            "client",
            "property",
            "check_in",
            "check_out",
            "guests",
            "property_total",
            "services_total",
            "discount_amount",
            "total_amount",
            "status",
            "payment_status",
            "payment_intent_id",
            "cancellation_reason",
            "cancelled_at",
            "service_bookings",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ConfirmPaymentSerializer(StrictSerializerMixin, serializers.Serializer):
    payment_intent_id = serializers.CharField()


class StatusOverrideSerializer(StrictSerializerMixin, serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.Status.choices, required=False)
    payment_status = serializers.ChoiceField(choices=Booking.PaymentStatus.choices, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):  # type: ignore
        if not attrs.get("status") and not attrs.get("payment_status"):
            raise serializers.ValidationError("Укажите status или payment_status.")
        return attrs


class BookingEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = BookingEvent
        fields = [
            "id",
            "event_type",
            "old_status",
            "new_status",
            "performed_by",
            "performed_by_role",
            "notes",
            "metadata",
            "created_at",
        ]
        read_only_fields = fields


class CancellationRequestSerializer(StrictSerializerMixin, serializers.Serializer):
    reason = serializers.CharField()


class CancellationDecisionSerializer(StrictSerializerMixin, serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class BookingCancellationSerializer(serializers.ModelSerializer):
    booking_code = serializers.ReadOnlyField(source="booking.booking_code")

    class Meta:
        model = BookingCancellation
        fields = [
            "id",
            "booking",
            "booking_code",
            "requested_by",
            "reason",
            "cancellation_fee",
            "refund_amount",
            "status",
            "approved_by",
            "rejection_reason",
            "stripe_refund_id",
            "refunded_at",
            "created_at",
        ]
        read_only_fields = fields
