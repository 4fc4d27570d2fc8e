"""User API views."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import mixins, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from . import services
from .models import RoleChangeRequest
from .permissions import IsApprovedUser, IsPlatformAdmin
from .serializers import (
    AssignRoleSerializer,
    DecisionReasonSerializer,
    RoleChangeRequestCreateSerializer,
    RoleChangeRequestSerializer,
    RoleChangeReviewSerializer,
    StaffAccountSerializer,
    UserSerializer,
)

User = get_user_model()


class UserViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Администрирование пользователей.

    - список, создание сотрудников, одобрение и назначение ролей доступны
      только администраторам
    - пользователи удаляются только деактивацией (не входит в API)
    """

    serializer_class = UserSerializer
    queryset = User.objects.all()
    permission_classes = [IsPlatformAdmin]
    filterset_fields = ["role", "status"]

    def create(self, request):  # type: ignore
        serializer = StaffAccountSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = services.create_staff_account(request.user, **serializer.validated_data)
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):  # type: ignore
        user = services.approve_user(request.user, self.get_object())
        return Response(UserSerializer(user).data)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):  # type: ignore
        serializer = DecisionReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = services.reject_user(request.user, self.get_object(), serializer.validated_data["reason"])
        return Response(UserSerializer(user).data)

    @action(detail=True, methods=["post"], url_path="assign-role")
    def assign_role(self, request, pk=None):  # type: ignore
        serializer = AssignRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = services.assign_role(request.user, self.get_object(), serializer.validated_data["role"])
        return Response(UserSerializer(user).data)


class RoleChangeRequestViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Заявки на смену роли: пользователь подаёт, администратор рассматривает."""

    serializer_class = RoleChangeRequestSerializer
    permission_classes = [IsApprovedUser]
    filterset_fields = ["status", "requested_role"]

    def get_queryset(self):  # type: ignore
        qs = RoleChangeRequest.objects.select_related("user", "reviewed_by")
        if self.request.user.is_admin():
            return qs
        return qs.filter(user=self.request.user)

    def create(self, request):  # type: ignore
        serializer = RoleChangeRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        role_request = services.create_role_change_request(request.user, **serializer.validated_data)
        return Response(self.get_serializer(role_request).data, status=status.HTTP_201_CREATED)

    def _review(self, request, approve: bool):
        serializer = RoleChangeReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        role_request = services.review_role_change_request(
            request.user,
            self.get_object(),
            approve=approve,
            notes=serializer.validated_data["notes"],
        )
        return Response(self.get_serializer(role_request).data)

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):  # type: ignore
        return self._review(request, approve=True)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):  # type: ignore
        return self._review(request, approve=False)
