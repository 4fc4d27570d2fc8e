"""Identity and role services: authentication, approval and role changes."""

from __future__ import annotations

import logging
from typing import Iterable

from django.contrib.auth import authenticate, login, logout  # type: ignore
from django.db import IntegrityError, transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.notifications.models import Notification
from apps.notifications.services import notify
from shared.domain.exceptions import Conflict, Forbidden, InvalidState, NotFound, Unauthorized, ValidationError

from .models import CustomUser, RoleChangeRequest

logger = logging.getLogger(__name__)

Role = CustomUser.RoleChoices
UserStatus = CustomUser.StatusChoices


def require_role(user: CustomUser, roles: Iterable[str], message: str | None = None) -> None:
    """Raise Forbidden unless the user holds one of ``roles``."""
    if user.role not in set(roles):
        raise Forbidden(message)


def require_admin(user: CustomUser) -> None:
    if not user.is_admin():
        raise Forbidden("Операция доступна только администратору.")


def get_user(user_id) -> CustomUser:
    try:
        return CustomUser.objects.get(pk=user_id)
    except (CustomUser.DoesNotExist, ValueError, TypeError):
        raise NotFound("Пользователь не найден.")


def register_user(
    *,
    email: str,
    password: str,
    first_name: str = "",
    last_name: str = "",
    role: str = Role.CLIENT,
) -> CustomUser:
    """Self-service registration: clients are approved at once, other roles wait."""
    status = UserStatus.PENDING if role in CustomUser.SELF_SERVICE_PENDING_ROLES else UserStatus.APPROVED
    if CustomUser.objects.filter(email__iexact=email).exists():
        raise Conflict("Пользователь с таким email уже существует.")
    try:
        with transaction.atomic():
            user = CustomUser.objects.create_user(
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
                role=role,
                status=status,
            )
    except IntegrityError:
        raise Conflict("Пользователь с таким email уже существует.")
    logger.info(f"User {user.pk} registered with role {role} ({status})")
    return user


def create_staff_account(actor: CustomUser, *, email: str, password: str, role: str, **extra) -> CustomUser:
    """Admin-created accounts are approved immediately."""
    require_admin(actor)
    if CustomUser.objects.filter(email__iexact=email).exists():
        raise Conflict("Пользователь с таким email уже существует.")
    try:
        with transaction.atomic():
            user = CustomUser.objects.create_user(
                email=email,
                password=password,
                role=role,
                status=UserStatus.APPROVED,
                approved_by=actor,
                approved_at=timezone.now(),
                **extra,
            )
    except IntegrityError:
        raise Conflict("Роль уже занята другим пользователем или email не уникален.")
    logger.info(f"Staff account {user.pk} ({role}) created by {actor.pk}")
    return user


def authenticate_user(request, email: str, password: str) -> CustomUser:
    """Check credentials and open a server-side session."""
    user = authenticate(request, email=email, password=password)
    if user is None:
        raise Unauthorized("Неверный email или пароль.")
    login(request, user)
    logger.info(f"User {user.pk} logged in")
    return user


def logout_user(request) -> None:
    user_id = getattr(request.user, "pk", None)
    logout(request)
    logger.info(f"User {user_id} logged out")


def assign_role(actor: CustomUser, target: CustomUser, role: str) -> CustomUser:
    """
    Назначение роли администратором.

    Роль operation_support может принадлежать только одному пользователю;
    гонку закрывает частичный уникальный индекс.
    """
    require_admin(actor)
    if role not in Role.values:
        raise ValidationError(f"Неизвестная роль: {role}")
    if target.role == role:
        return target
    if (
        role == Role.OPERATION_SUPPORT
        and CustomUser.objects.filter(role=Role.OPERATION_SUPPORT).exclude(pk=target.pk).exists()
    ):
        raise Conflict("Роль operation_support уже назначена другому пользователю.")

    old_role = target.role
    target.role = role
    try:
        with transaction.atomic():
            target.save(update_fields=["role", "updated_at"])
    except IntegrityError:
        target.role = old_role
        raise Conflict("Роль operation_support уже назначена другому пользователю.")
    logger.info(f"Role of user {target.pk} changed {old_role} -> {role} by {actor.pk}")
    return target


def _decide_account(actor: CustomUser, target: CustomUser, new_status: str) -> CustomUser:
    require_admin(actor)
    now = timezone.now()
    updated = CustomUser.objects.filter(pk=target.pk, status=UserStatus.PENDING).update(
        status=new_status,
        approved_by=actor,
        approved_at=now,
        updated_at=now,
    )
    if not updated:
        raise InvalidState("Аккаунт уже рассмотрен.")
    target.refresh_from_db()
    logger.info(f"Account {target.pk} {new_status} by {actor.pk}")
    return target


@transaction.atomic
def approve_user(actor: CustomUser, target: CustomUser) -> CustomUser:
    user = _decide_account(actor, target, UserStatus.APPROVED)
    notify(
        user,
        Notification.Type.APPROVAL,
        "Аккаунт одобрен",
        "Ваш аккаунт одобрен. Теперь вам доступны все функции платформы.",
        related_id=user.pk,
    )
    return user


@transaction.atomic
def reject_user(actor: CustomUser, target: CustomUser, reason: str = "") -> CustomUser:
    user = _decide_account(actor, target, UserStatus.REJECTED)
    message = "Заявка на аккаунт отклонена."
    if reason:
        message = f"{message} Причина: {reason}"
    notify(user, Notification.Type.REJECTION, "Аккаунт отклонён", message, related_id=user.pk)
    return user


def create_role_change_request(user: CustomUser, requested_role: str, reason: str = "") -> RoleChangeRequest:
    if user.role == requested_role:
        raise InvalidState("Эта роль уже назначена.")
    if RoleChangeRequest.objects.filter(user=user, status=RoleChangeRequest.Status.PENDING).exists():
        raise Conflict("У вас уже есть заявка на рассмотрении.")
    try:
        with transaction.atomic():
            role_request = RoleChangeRequest.objects.create(
                user=user,
                requested_role=requested_role,
                reason=reason,
            )
    except IntegrityError:
        raise Conflict("У вас уже есть заявка на рассмотрении.")
    logger.info(f"Role change request {role_request.pk} filed by user {user.pk} for {requested_role}")
    return role_request


@transaction.atomic
def review_role_change_request(
    actor: CustomUser,
    role_request: RoleChangeRequest,
    *,
    approve: bool,
    notes: str = "",
) -> RoleChangeRequest:
    """Одобрение меняет роль пользователя в той же транзакции."""
    require_admin(actor)
    new_status = RoleChangeRequest.Status.APPROVED if approve else RoleChangeRequest.Status.REJECTED
    updated = RoleChangeRequest.objects.filter(
        pk=role_request.pk,
        status=RoleChangeRequest.Status.PENDING,
    ).update(
        status=new_status,
        reviewed_by=actor,
        reviewed_at=timezone.now(),
        admin_notes=notes,
    )
    if not updated:
        raise InvalidState("Заявка уже рассмотрена.")
    role_request.refresh_from_db()

    user = role_request.user
    if approve:
        user.role = role_request.requested_role
        user.save(update_fields=["role", "updated_at"])
        notify(
            user,
            Notification.Type.APPROVAL,
            "Смена роли одобрена",
            f"Ваша роль изменена на «{user.get_role_display()}».",
            related_id=role_request.pk,
        )
    else:
        message = "Заявка на смену роли отклонена."
        if notes:
            message = f"{message} Комментарий: {notes}"
        notify(user, Notification.Type.REJECTION, "Смена роли отклонена", message, related_id=role_request.pk)
    logger.info(f"Role change request {role_request.pk} {new_status} by {actor.pk}")
    return role_request
