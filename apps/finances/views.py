"""API views for commission settings, earnings and the payment webhook."""

from __future__ import annotations

import logging

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.orders.models import ServiceOrder
from apps.providers.services import get_provider_profile
from apps.users.models import CustomUser
from apps.users.permissions import IsApprovedUser, IsPlatformAdmin
from shared.domain.exceptions import ExternalServiceError

from . import stripe_service
from .filters import EarningsFilterSet
from .models import PlatformSetting
from .serializers import (
    EarningsSummarySerializer,
    PlatformSettingSerializer,
    PlatformSettingWriteSerializer,
    PublicSettingSerializer,
)
from .services import get_commission_rate, summarize_earnings, upsert_setting
from .webhooks import dispatch

logger = logging.getLogger(__name__)

REPORT_ROLES = (CustomUser.RoleChoices.ADMIN, CustomUser.RoleChoices.BILLING)


class PlatformSettingViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Настройки платформы. Изменение доступно только администратору."""

    queryset = PlatformSetting.objects.all()
    serializer_class = PlatformSettingSerializer
    permission_classes = [IsPlatformAdmin]
    lookup_field = "key"
    filterset_fields = ["category", "is_public"]

    def create(self, request):  # type: ignore
        serializer = PlatformSettingWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        setting = upsert_setting(request.user, data.pop("key"), data.pop("value"), **data)
        return Response(self.get_serializer(setting).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], permission_classes=[permissions.AllowAny])
    def public(self, request):  # type: ignore
        qs = PlatformSetting.objects.filter(is_public=True)
        return Response(PublicSettingSerializer(qs, many=True).data)

    @action(detail=False, methods=["get"], url_path="commission-rate", permission_classes=[permissions.AllowAny])
    def commission_rate(self, request):  # type: ignore
        return Response({"rate": str(get_commission_rate())})


class EarningsView(APIView):
    """
    Сводка по зафиксированным комиссиям.

    Администратор и биллинг видят все заказы с фильтрами, поставщик
    только собственные заказы.
    """

    permission_classes = [IsApprovedUser]

    def get(self, request):  # type: ignore
        user = request.user
        qs = ServiceOrder.objects.all()
        if user.role not in REPORT_ROLES and not user.is_admin():
            provider = get_provider_profile(user)
            qs = qs.filter(service_provider=provider)
        filterset = EarningsFilterSet(request.query_params, queryset=qs, request=request)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        summary = summarize_earnings(filterset.qs)
        return Response(EarningsSummarySerializer(summary).data)


class StripeWebhookView(APIView):
    """Приём событий платёжного шлюза. Подлинность проверяется подписью."""

    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        signature = request.META.get("HTTP_STRIPE_SIGNATURE", "")
        try:
            event = stripe_service.construct_webhook_event(request.body, signature)
        except ExternalServiceError as exc:
            logger.warning(f"Rejected webhook: {exc}")
            return Response({"detail": "Invalid signature"}, status=status.HTTP_400_BAD_REQUEST)
        result = dispatch(event)
        return Response({"received": True, "result": result})
