"""Permission classes shared by all API modules."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore

from shared.domain.exceptions import Forbidden


class IsApprovedUser(permissions.BasePermission):
    """
    Пропускает только аутентифицированных пользователей с одобренным аккаунтом.

    Без сессии DRF отвечает 401, для неодобренных аккаунтов возвращается 403
    с причиной ``pending`` или ``rejected``.
    """

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if user.status == user.StatusChoices.REJECTED:
            raise Forbidden(
                "Заявка на аккаунт отклонена. Обратитесь в поддержку.",
                reason="rejected",
            )
        if user.status == user.StatusChoices.PENDING:
            raise Forbidden(
                "Аккаунт ожидает одобрения. Мы сообщим, когда он будет одобрен.",
                reason="pending",
            )
        return True


class IsPlatformAdmin(IsApprovedUser):
    """Одобренный пользователь с ролью admin."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        return super().has_permission(request, view) and request.user.is_admin()
