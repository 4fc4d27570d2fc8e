"""API views for service orders."""

from __future__ import annotations

from django.db.models import Q  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.serializers import BookingEventSerializer, ConfirmPaymentSerializer
from apps.users.permissions import IsApprovedUser

from . import services
from .models import ServiceOrder
from .serializers import (
    ItemCompletionSerializer,
    OrderCompleteSerializer,
    OrderReasonSerializer,
    OrderStatusOverrideSerializer,
    ServiceOrderCreateSerializer,
    ServiceOrderItemSerializer,
    ServiceOrderSerializer,
)


class IsOrderParticipant(permissions.BasePermission):
    def has_object_permission(self, request, view, obj: ServiceOrder):  # type: ignore
        user = request.user
        if user.is_back_office():
            return True
        return obj.client_id == user.id or obj.service_provider.user_id == user.id


class ServiceOrderViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Заказы услуг: клиент видит свои, поставщик полученные, сотрудники все."""

    queryset = ServiceOrder.objects.select_related("client", "service_provider", "service_provider__user").prefetch_related(
        "items"
    )
    serializer_class = ServiceOrderSerializer
    permission_classes = [IsApprovedUser, IsOrderParticipant]
    filterset_fields = ["status", "payment_status", "service_provider", "booking"]

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if user.is_back_office():
            return qs
        return qs.filter(Q(client=user) | Q(service_provider__user=user))

    def create(self, request):  # type: ignore
        serializer = ServiceOrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = services.create_order(request.user, **serializer.validated_data)
        return Response(ServiceOrderSerializer(order).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def mine(self, request):  # type: ignore
        qs = self.filter_queryset(self.get_queryset().filter(client=request.user))
        return Response(self.get_serializer(qs, many=True).data)

    @action(detail=False, methods=["get"])
    def received(self, request):  # type: ignore
        qs = self.filter_queryset(self.get_queryset().filter(service_provider__user=request.user))
        return Response(self.get_serializer(qs, many=True).data)

    @action(detail=True, methods=["post"], url_path="payment-intent")
    def payment_intent(self, request, pk=None):  # type: ignore
        return Response(services.create_payment_intent(request.user, self.get_object()))

    @action(detail=True, methods=["post"], url_path="confirm-payment")
    def confirm_payment(self, request, pk=None):  # type: ignore
        serializer = ConfirmPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order, changed = services.confirm_payment(
            request.user,
            self.get_object(),
            serializer.validated_data["payment_intent_id"],
        )
        data = ServiceOrderSerializer(order).data
        data["already_confirmed"] = not changed
        return Response(data)

    @action(detail=True, methods=["post"])
    def accept(self, request, pk=None):  # type: ignore
        order = services.accept_order(request.user, self.get_object())
        return Response(ServiceOrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):  # type: ignore
        serializer = OrderReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order, refund = services.reject_order(request.user, self.get_object(), serializer.validated_data["reason"])
        data = ServiceOrderSerializer(order).data
        data["refund"] = refund
        return Response(data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        serializer = OrderReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order, refund = services.cancel_order(request.user, self.get_object(), serializer.validated_data["reason"])
        data = ServiceOrderSerializer(order).data
        data["refund"] = refund
        return Response(data)

    @action(detail=True, methods=["post"])
    def start(self, request, pk=None):  # type: ignore
        order = services.start_order(request.user, self.get_object())
        return Response(ServiceOrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):  # type: ignore
        serializer = OrderCompleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = services.complete_order(request.user, self.get_object(), serializer.validated_data["provider_notes"])
        return Response(ServiceOrderSerializer(order).data)

    @action(detail=True, methods=["patch"], url_path=r"items/(?P<item_id>\d+)")
    def item(self, request, pk=None, item_id=None):  # type: ignore
        serializer = ItemCompletionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = services.set_item_completed(
            request.user,
            self.get_object(),
            item_id,
            serializer.validated_data["is_completed"],
        )
        return Response(ServiceOrderItemSerializer(item).data)

    @action(detail=True, methods=["patch"], url_path="status")
    def override_status(self, request, pk=None):  # type: ignore
        serializer = OrderStatusOverrideSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = services.override_status(request.user, self.get_object(), **serializer.validated_data)
        return Response(ServiceOrderSerializer(order).data)

    @action(detail=True, methods=["get"])
    def events(self, request, pk=None):  # type: ignore
        order = self.get_object()
        return Response(BookingEventSerializer(order.events.all(), many=True).data)
