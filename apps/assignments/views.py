"""API views for the job assignment protocol."""

from __future__ import annotations

from rest_framework import mixins, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.models import ServiceBooking
from apps.bookings.serializers import ServiceBookingSerializer
from apps.users.permissions import IsApprovedUser

from . import services
from .models import JobAssignment
from .serializers import (
    AssignmentRejectSerializer,
    AssignSerializer,
    JobAssignmentSerializer,
    ReassignSerializer,
)


class JobAssignmentViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Координатор видит все назначения, поставщик только адресованные ему."""

    serializer_class = JobAssignmentSerializer
    permission_classes = [IsApprovedUser]
    filterset_fields = ["status", "service_provider", "service_booking"]

    def get_queryset(self):  # type: ignore
        qs = JobAssignment.objects.select_related("service_booking", "service_provider", "assigned_by")
        user = self.request.user
        if user.is_coordinator() or user.is_back_office():
            return qs
        return qs.filter(service_provider__user=user)

    def create(self, request):  # type: ignore
        serializer = AssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignment = services.assign(
            request.user,
            serializer.validated_data["service_booking"],
            serializer.validated_data["service_provider"],
        )
        return Response(self.get_serializer(assignment).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def accept(self, request, pk=None):  # type: ignore
        assignment = services.accept(request.user, self.get_object())
        return Response(self.get_serializer(assignment).data)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):  # type: ignore
        serializer = AssignmentRejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignment = services.reject(request.user, self.get_object(), serializer.validated_data["reason"])
        return Response(self.get_serializer(assignment).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        assignment = services.coordinator_cancel(request.user, self.get_object())
        return Response(self.get_serializer(assignment).data)

    @action(detail=True, methods=["post"])
    def reassign(self, request, pk=None):  # type: ignore
        serializer = ReassignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cancelled, created = services.reassign(
            request.user,
            self.get_object(),
            serializer.validated_data["service_provider"],
        )
        return Response(
            {
                "cancelled": self.get_serializer(cancelled).data,
                "assignment": self.get_serializer(created).data,
            },
            status=status.HTTP_201_CREATED,
        )


class ServiceBookingViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Услуги из бронирований: очередь координатора и работы поставщика."""

    serializer_class = ServiceBookingSerializer
    permission_classes = [IsApprovedUser]
    filterset_fields = ["status", "service_provider"]

    def get_queryset(self):  # type: ignore
        qs = ServiceBooking.objects.select_related("booking", "service_provider")
        user = self.request.user
        if user.is_coordinator() or user.is_back_office():
            return qs
        return qs.filter(service_provider__user=user)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):  # type: ignore
        service_booking = services.complete_service_booking(request.user, self.get_object())
        return Response(self.get_serializer(service_booking).data)
