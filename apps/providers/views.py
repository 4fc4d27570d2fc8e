"""API views for service providers and their catalog."""

from __future__ import annotations

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.permissions import IsApprovedUser

from . import services
from .models import ProviderMenu, ProviderTaskConfig, ServiceCategory, ServiceProvider
from .serializers import (
    ProviderApplicationSerializer,
    ProviderDecisionSerializer,
    ProviderMenuSerializer,
    ProviderTaskConfigSerializer,
    ServiceCategorySerializer,
    ServiceProviderSerializer,
)


class ServiceCategoryViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = ServiceCategory.objects.all()
    serializer_class = ServiceCategorySerializer
    permission_classes = [permissions.AllowAny]


class ServiceProviderViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Каталог поставщиков и рассмотрение заявок.

    Публичный список содержит только одобренных и активных поставщиков;
    администраторы и менеджеры видят все заявки.
    """

    serializer_class = ServiceProviderSerializer
    filterset_fields = ["category", "approval_status", "is_active"]

    def get_permissions(self):  # type: ignore
        if self.action in {"list", "retrieve", "catalog"}:
            return [permissions.AllowAny()]
        return [IsApprovedUser()]

    def get_queryset(self):  # type: ignore
        qs = ServiceProvider.objects.select_related("category", "user")
        user = self.request.user
        if user.is_authenticated and user.role in services.DECIDER_ROLES:
            return qs
        if self.action in {"approve", "reject", "destroy"}:
            return qs
        return qs.filter(approval_status=ServiceProvider.ApprovalStatus.APPROVED, is_active=True)

    def create(self, request):  # type: ignore
        """Подача заявки поставщика текущим пользователем."""
        serializer = ProviderApplicationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        provider = services.submit_application(request.user, serializer.validated_data)
        return Response(ServiceProviderSerializer(provider).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, pk=None):  # type: ignore
        services.delete_provider(request.user, self.get_object())
        return Response(status=status.HTTP_204_NO_CONTENT)

    def _decide(self, request, outcome: str):
        serializer = ProviderDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        provider = services.decide_application(
            request.user,
            self.get_object(),
            outcome,
            serializer.validated_data["reason"],
        )
        return Response(ServiceProviderSerializer(provider).data)

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):  # type: ignore
        return self._decide(request, ServiceProvider.ApprovalStatus.APPROVED)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):  # type: ignore
        return self._decide(request, ServiceProvider.ApprovalStatus.REJECTED)

    @action(detail=False, methods=["get"])
    def me(self, request):  # type: ignore
        provider = services.get_provider_profile(request.user)
        return Response(ServiceProviderSerializer(provider).data)

    @action(detail=True, methods=["get"])
    def catalog(self, request, pk=None):  # type: ignore
        """Активные меню с доступными блюдами и включённые задачи с ценами."""
        provider = self.get_object()
        menus = (
            ProviderMenu.objects.filter(service_provider=provider, is_active=True)
            .prefetch_related("items")
        )
        tasks = (
            ProviderTaskConfig.objects.filter(service_provider=provider, is_enabled=True)
            .select_related("task")
        )
        return Response(
            {
                "provider": ServiceProviderSerializer(provider).data,
                "menus": ProviderMenuSerializer(menus, many=True).data,
                "tasks": ProviderTaskConfigSerializer(tasks, many=True).data,
            }
        )
