"""Provider application workflow and catalog lookups."""

from __future__ import annotations

import logging
from typing import Any

from django.db import IntegrityError, transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.notifications.models import Notification
from apps.notifications.services import notify
from apps.users.models import CustomUser
from apps.users.services import require_role
from shared.domain.exceptions import Conflict, Forbidden, InvalidState, NotFound, ValidationError

from .models import ServiceProvider

logger = logging.getLogger(__name__)

Role = CustomUser.RoleChoices

# Менеджеры страны и города решают заявки глобально, без привязки к региону.
DECIDER_ROLES = (Role.ADMIN, Role.COUNTRY_MANAGER, Role.CITY_MANAGER)


def submit_application(user: CustomUser, data: dict[str, Any]) -> ServiceProvider:
    """
    Подача заявки поставщика.

    Отклонённая заявка терминальна: повторная подача не допускается.
    """
    existing = ServiceProvider.objects.filter(user=user).first()
    if existing is not None:
        if existing.approval_status == ServiceProvider.ApprovalStatus.PENDING:
            raise Conflict("Заявка уже находится на рассмотрении.")
        if existing.approval_status == ServiceProvider.ApprovalStatus.REJECTED:
            raise Conflict("Заявка была отклонена. Обратитесь в поддержку.")
        raise Conflict("Вы уже зарегистрированы как поставщик услуг.")

    try:
        with transaction.atomic():
            provider = ServiceProvider.objects.create(
                user=user,
                approval_status=ServiceProvider.ApprovalStatus.PENDING,
                **data,
            )
    except IntegrityError:
        raise Conflict("Заявка уже находится на рассмотрении.")
    logger.info(f"Provider application {provider.pk} submitted by user {user.pk}")
    return provider


@transaction.atomic
def decide_application(
    actor: CustomUser,
    provider: ServiceProvider,
    outcome: str,
    reason: str = "",
) -> ServiceProvider:
    """
    Одобрение или отклонение заявки.

    Условное обновление по статусу pending закрывает гонку двойного
    одобрения: второй вызов получает InvalidState.
    """
    require_role(actor, DECIDER_ROLES, "Рассматривать заявки могут администраторы и менеджеры.")
    if outcome not in (ServiceProvider.ApprovalStatus.APPROVED, ServiceProvider.ApprovalStatus.REJECTED):
        raise ValidationError("Решение должно быть approved или rejected.")

    now = timezone.now()
    updated = ServiceProvider.objects.filter(
        pk=provider.pk,
        approval_status=ServiceProvider.ApprovalStatus.PENDING,
    ).update(
        approval_status=outcome,
        rejection_reason=reason if outcome == ServiceProvider.ApprovalStatus.REJECTED else "",
        decided_by=actor,
        decided_at=now,
        updated_at=now,
    )
    if not updated:
        raise InvalidState("Заявка уже рассмотрена.")
    provider.refresh_from_db()

    user = provider.user
    if outcome == ServiceProvider.ApprovalStatus.APPROVED:
        user.role = Role.SERVICE_PROVIDER
        user.save(update_fields=["role", "updated_at"])
        notify(
            user,
            Notification.Type.APPROVAL,
            "Заявка поставщика одобрена",
            f"Поздравляем! Профиль «{provider.business_name}» одобрен и доступен клиентам.",
            related_id=provider.pk,
        )
    else:
        message = f"Заявка «{provider.business_name}» отклонена."
        if reason:
            message = f"{message} Причина: {reason}"
        notify(user, Notification.Type.REJECTION, "Заявка поставщика отклонена", message, related_id=provider.pk)

    logger.info(f"Provider application {provider.pk} {outcome} by {actor.pk} ({actor.role})")
    return provider


def delete_provider(actor: CustomUser, provider: ServiceProvider) -> None:
    require_role(actor, (Role.ADMIN,), "Удалять поставщиков может только администратор.")
    provider_id = provider.pk
    provider.delete()
    logger.info(f"Provider {provider_id} deleted by {actor.pk}")


def get_bookable_provider(provider_id) -> ServiceProvider:
    """Поставщик, у которого можно заказать услугу: одобрен и активен."""
    try:
        provider = ServiceProvider.objects.select_related("user").get(pk=provider_id)
    except (ServiceProvider.DoesNotExist, ValueError, TypeError):
        raise NotFound("Поставщик услуг не найден.")
    if not provider.is_bookable:
        raise ValidationError("Поставщик услуг недоступен для заказа.")
    return provider


def get_provider_profile(user: CustomUser) -> ServiceProvider:
    """Профиль поставщика текущего пользователя."""
    try:
        return ServiceProvider.objects.get(user=user)
    except ServiceProvider.DoesNotExist:
        raise Forbidden("У вас нет профиля поставщика услуг.")
