"""API views for the booking domain."""

from __future__ import annotations

from django.db.models import Q  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.permissions import IsApprovedUser, IsPlatformAdmin

from . import services
from .models import Booking, BookingCancellation
from .serializers import (
    BookingCancellationSerializer,
    BookingCreateSerializer,
    BookingEventSerializer,
    BookingSerializer,
    CancellationDecisionSerializer,
    CancellationRequestSerializer,
    ConfirmPaymentSerializer,
    StatusOverrideSerializer,
)


class IsBookingStakeholder(permissions.BasePermission):
    """Клиент, владелец объекта и сотрудники имеют доступ к бронированию."""

    def has_object_permission(self, request, view, obj: Booking):  # type: ignore
        user = request.user
        if user.is_back_office():
            return True
        return obj.client_id == user.id or obj.property.owner_id == user.id


class BookingViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Viewset для создания бронирований и переходов по их жизненному циклу."""

    queryset = Booking.objects.select_related("property", "client", "property__owner").prefetch_related(
        "service_bookings"
    )
    serializer_class = BookingSerializer
    permission_classes = [IsApprovedUser, IsBookingStakeholder]
    filterset_fields = ["status", "payment_status", "property"]

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if user.is_back_office():
            return qs
        return qs.filter(Q(client=user) | Q(property__owner=user))

    def create(self, request):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        booking = services.create_booking(
            request.user,
            property_id=data["property"],
            check_in=data["check_in"],
            check_out=data["check_out"],
            guests=data["guests"],
            services=data["services"],
        )
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"], url_path=r"code/(?P<code>[^/.]+)")
    def by_code(self, request, code=None):  # type: ignore
        booking = self.get_queryset().filter(booking_code=code).first()
        if booking is None:
            return Response({"detail": "Бронирование не найдено."}, status=status.HTTP_404_NOT_FOUND)
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=["post"], url_path="payment-intent")
    def payment_intent(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        return Response(services.create_payment_intent(request.user, booking))

    @action(detail=True, methods=["post"], url_path="confirm-payment")
    def confirm_payment(self, request, pk=None):  # type: ignore
        serializer = ConfirmPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking, changed = services.confirm_payment(
            request.user,
            self.get_object(),
            serializer.validated_data["payment_intent_id"],
        )
        data = BookingSerializer(booking).data
        data["already_confirmed"] = not changed
        return Response(data)

    @action(detail=True, methods=["patch"], url_path="status")
    def override_status(self, request, pk=None):  # type: ignore
        serializer = StatusOverrideSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = services.override_status(request.user, self.get_object(), **serializer.validated_data)
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=["get"])
    def events(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        return Response(BookingEventSerializer(booking.events.all(), many=True).data)

    @action(detail=True, methods=["post"], url_path="request-cancellation")
    def request_cancellation(self, request, pk=None):  # type: ignore
        serializer = CancellationRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cancellation = services.request_cancellation(
            request.user,
            self.get_object(),
            serializer.validated_data["reason"],
        )
        return Response(BookingCancellationSerializer(cancellation).data, status=status.HTTP_201_CREATED)


class BookingCancellationViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Запросы на отмену: клиент видит свои, администратор рассматривает все."""

    serializer_class = BookingCancellationSerializer
    permission_classes = [IsApprovedUser]
    filterset_fields = ["status"]

    def get_queryset(self):  # type: ignore
        qs = BookingCancellation.objects.select_related("booking", "requested_by")
        if self.request.user.is_admin():
            return qs
        return qs.filter(requested_by=self.request.user)

    def _decide(self, request, approve: bool):
        serializer = CancellationDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cancellation = services.decide_cancellation(
            request.user,
            self.get_object(),
            approve=approve,
            reason=serializer.validated_data["reason"],
        )
        return Response(self.get_serializer(cancellation).data)

    @action(detail=True, methods=["post"], permission_classes=[IsPlatformAdmin])
    def approve(self, request, pk=None):  # type: ignore
        return self._decide(request, approve=True)

    @action(detail=True, methods=["post"], permission_classes=[IsPlatformAdmin])
    def reject(self, request, pk=None):  # type: ignore
        return self._decide(request, approve=False)
