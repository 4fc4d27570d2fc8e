"""User domain models for TravelHub.

Каждый пользователь имеет ровно одну роль и статус одобрения. Статус
ограничивает доступ ко всем остальным операциям платформы: пока аккаунт
поставщика, владельца или менеджера не одобрен, он может только войти
и посмотреть свой профиль.
"""

from __future__ import annotations

from typing import Any

from django.contrib.auth.models import AbstractUser, BaseUserManager  # type: ignore
from django.db import models  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class CustomUserManager(BaseUserManager):
    """Менеджер пользователей, использующий email в качестве логина."""

    use_in_migrations = True

    def _create_user(self, email: str, password: str | None, **extra_fields: Any):
        if not email:
            raise ValueError("Email обязателен для создания пользователя.")
        email = self.normalize_email(email)

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        extra_fields.setdefault("role", CustomUser.RoleChoices.CLIENT)
        extra_fields.setdefault("status", CustomUser.StatusChoices.APPROVED)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", CustomUser.RoleChoices.ADMIN)
        extra_fields.setdefault("status", CustomUser.StatusChoices.APPROVED)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Суперпользователь должен иметь is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Суперпользователь должен иметь is_superuser=True.")

        return self._create_user(email, password, **extra_fields)


class CustomUser(AbstractUser):
    """Пользователь платформы: одна роль, один статус одобрения."""

    class RoleChoices(models.TextChoices):
        ADMIN = "admin", _("Администратор")
        BILLING = "billing", _("Биллинг")
        OPERATION = "operation", _("Операционный отдел")
        MARKETING = "marketing", _("Маркетинг")
        PROPERTY_OWNER = "property_owner", _("Владелец жилья")
        SERVICE_PROVIDER = "service_provider", _("Поставщик услуг")
        CLIENT = "client", _("Клиент")
        COUNTRY_MANAGER = "country_manager", _("Менеджер страны")
        CITY_MANAGER = "city_manager", _("Менеджер города")
        OPERATION_SUPPORT = "operation_support", _("Операционная поддержка")

    class StatusChoices(models.TextChoices):
        PENDING = "pending", _("Ожидает одобрения")
        APPROVED = "approved", _("Одобрен")
        REJECTED = "rejected", _("Отклонён")

    # Роли, которые при самостоятельной регистрации требуют одобрения.
    SELF_SERVICE_PENDING_ROLES = (
        RoleChoices.PROPERTY_OWNER,
        RoleChoices.SERVICE_PROVIDER,
        RoleChoices.COUNTRY_MANAGER,
        RoleChoices.CITY_MANAGER,
    )
    COORDINATOR_ROLES = (RoleChoices.COUNTRY_MANAGER, RoleChoices.CITY_MANAGER)
    # Могут принудительно менять статусы бронирований и заказов.
    OVERRIDE_ROLES = (RoleChoices.ADMIN, RoleChoices.OPERATION, RoleChoices.OPERATION_SUPPORT)
    # Видят все бронирования и заказы.
    BACK_OFFICE_ROLES = (
        RoleChoices.ADMIN,
        RoleChoices.BILLING,
        RoleChoices.OPERATION,
        RoleChoices.OPERATION_SUPPORT,
        RoleChoices.COUNTRY_MANAGER,
        RoleChoices.CITY_MANAGER,
    )

    username = None
    email = models.EmailField(_("email address"), unique=True)
    phone = models.CharField(max_length=20, blank=True)
    role = models.CharField(
        max_length=32,
        choices=RoleChoices.choices,
        default=RoleChoices.CLIENT,
    )
    status = models.CharField(
        max_length=16,
        choices=StatusChoices.choices,
        default=StatusChoices.APPROVED,
    )
    approved_by = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        related_name="approved_users",
        null=True,
        blank=True,
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomUserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS: list[str] = []

    class Meta:
        verbose_name = _("Пользователь")
        verbose_name_plural = _("Пользователи")
        ordering = ["-date_joined"]
        constraints = [
            models.UniqueConstraint(
                fields=["role"],
                condition=Q(role="operation_support"),
                name="unique_operation_support_user",
            ),
        ]

    def __str__(self) -> str:
        return self.email

    @property
    def is_approved(self) -> bool:
        return self.status == self.StatusChoices.APPROVED

    def is_admin(self) -> bool:
        return self.role == self.RoleChoices.ADMIN or self.is_superuser

    def is_coordinator(self) -> bool:
        """Менеджеры страны и города распределяют работу между поставщиками."""
        return self.role in self.COORDINATOR_ROLES

    def is_service_provider(self) -> bool:
        return self.role == self.RoleChoices.SERVICE_PROVIDER

    def is_back_office(self) -> bool:
        return self.role in self.BACK_OFFICE_ROLES or self.is_superuser


User = CustomUser


class RoleChangeRequest(models.Model):
    """Заявка пользователя на смену роли, рассматривается администратором."""

    class RequestedRole(models.TextChoices):
        CLIENT = "client", _("Клиент")
        PROPERTY_OWNER = "property_owner", _("Владелец жилья")
        SERVICE_PROVIDER = "service_provider", _("Поставщик услуг")

    class Status(models.TextChoices):
        PENDING = "pending", _("На рассмотрении")
        APPROVED = "approved", _("Одобрена")
        REJECTED = "rejected", _("Отклонена")

    user = models.ForeignKey(
        CustomUser,
        on_delete=models.CASCADE,
        related_name="role_change_requests",
    )
    requested_role = models.CharField(max_length=32, choices=RequestedRole.choices)
    reason = models.TextField(blank=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    reviewed_by = models.ForeignKey(
        CustomUser,
        on_delete=models.SET_NULL,
        related_name="reviewed_role_requests",
        null=True,
        blank=True,
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    admin_notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Заявка на смену роли")
        verbose_name_plural = _("Заявки на смену роли")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user"],
                condition=Q(status="pending"),
                name="one_pending_role_request_per_user",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user} -> {self.requested_role} ({self.status})"
