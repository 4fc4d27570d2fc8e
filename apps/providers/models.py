"""Service provider catalog models.

Поставщик услуг (повар, горничная, водитель и т. п.) подаёт заявку,
которую рассматривает администратор или менеджер страны/города. Цены
заказов всегда берутся из каталога поставщика: меню с блюдами и
настроенные задачи.
"""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class ServiceCategory(models.Model):
    """Справочник категорий услуг."""

    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    icon = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Категория услуг")
        verbose_name_plural = _("Категории услуг")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class ServiceProvider(models.Model):
    """Профиль поставщика услуг, принадлежащий одному пользователю."""

    class ApprovalStatus(models.TextChoices):
        PENDING = "pending", _("На рассмотрении")
        APPROVED = "approved", _("Одобрен")
        REJECTED = "rejected", _("Отклонён")

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="provider_profile",
    )
    category = models.ForeignKey(
        ServiceCategory,
        on_delete=models.PROTECT,
        related_name="providers",
    )
    business_name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    hourly_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
    )
    fixed_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
    )
    location = models.CharField(max_length=255, blank=True)
    years_experience = models.PositiveSmallIntegerField(null=True, blank=True)
    approval_status = models.CharField(
        max_length=16,
        choices=ApprovalStatus.choices,
        default=ApprovalStatus.PENDING,
    )
    rejection_reason = models.TextField(blank=True)
    decided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="decided_provider_applications",
        null=True,
        blank=True,
    )
    decided_at = models.DateTimeField(null=True, blank=True)
    is_verified = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Поставщик услуг")
        verbose_name_plural = _("Поставщики услуг")
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["approval_status", "is_active"], name="provider_status_idx")]

    def __str__(self) -> str:
        return self.business_name

    @property
    def is_bookable(self) -> bool:
        return self.is_active and self.approval_status == self.ApprovalStatus.APPROVED


class ProviderMenu(models.Model):
    """Раздел меню поставщика (для поваров и кейтеринга)."""

    service_provider = models.ForeignKey(
        ServiceProvider,
        on_delete=models.CASCADE,
        related_name="menus",
    )
    category_name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = _("Меню поставщика")
        verbose_name_plural = _("Меню поставщиков")
        ordering = ["sort_order", "id"]

    def __str__(self) -> str:
        return f"{self.service_provider}: {self.category_name}"


class MenuItem(models.Model):
    menu = models.ForeignKey(ProviderMenu, on_delete=models.CASCADE, related_name="items")
    dish_name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    is_available = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Блюдо")
        verbose_name_plural = _("Блюда")
        ordering = ["menu", "id"]

    def __str__(self) -> str:
        return self.dish_name


class ServiceTask(models.Model):
    """Шаблон задачи категории (уборка кухни, трансфер из аэропорта и т. п.)."""

    category = models.ForeignKey(ServiceCategory, on_delete=models.CASCADE, related_name="tasks")
    task_code = models.CharField(max_length=50)
    task_name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    default_duration = models.PositiveIntegerField(null=True, blank=True, help_text=_("Минуты"))
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = _("Задача услуги")
        verbose_name_plural = _("Задачи услуг")
        ordering = ["category", "sort_order", "id"]
        constraints = [
            models.UniqueConstraint(fields=["category", "task_code"], name="unique_task_code_per_category"),
        ]

    def __str__(self) -> str:
        return self.task_name


class ProviderTaskConfig(models.Model):
    """Настройка задачи поставщиком: включена ли и по какой цене."""

    service_provider = models.ForeignKey(
        ServiceProvider,
        on_delete=models.CASCADE,
        related_name="task_configs",
    )
    task = models.ForeignKey(ServiceTask, on_delete=models.CASCADE, related_name="provider_configs")
    is_enabled = models.BooleanField(default=True)
    custom_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
    )
    estimated_duration = models.PositiveIntegerField(null=True, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        verbose_name = _("Настройка задачи")
        verbose_name_plural = _("Настройки задач")
        constraints = [
            models.UniqueConstraint(fields=["service_provider", "task"], name="unique_provider_task"),
        ]

    def __str__(self) -> str:
        return f"{self.service_provider} / {self.task}"
