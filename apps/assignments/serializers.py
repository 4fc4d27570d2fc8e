"""Serializers for job assignments."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.bookings.serializers import ServiceBookingSerializer
from shared.infrastructure.serializers import StrictSerializerMixin

from .models import JobAssignment


class JobAssignmentSerializer(serializers.ModelSerializer):
    service_booking_detail = ServiceBookingSerializer(source="service_booking", read_only=True)
    provider_name = serializers.ReadOnlyField(source="service_provider.business_name")

    class Meta:
        model = JobAssignment
        fields = [
            "id",
            "service_booking",
            "service_booking_detail",
            "service_provider",
            "provider_name",
            "assigned_by",
            "status",
            "rejection_reason",
            "responded_at",
            "created_at",
        ]
        read_only_fields = fields


class AssignSerializer(StrictSerializerMixin, serializers.Serializer):
    service_booking = serializers.IntegerField()
    service_provider = serializers.IntegerField()


class ReassignSerializer(StrictSerializerMixin, serializers.Serializer):
    service_provider = serializers.IntegerField()


class AssignmentRejectSerializer(StrictSerializerMixin, serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")
