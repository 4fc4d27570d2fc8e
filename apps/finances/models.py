"""Financial domain models for TravelHub."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class PlatformSetting(models.Model):
    """Настройка платформы: ключ, значение и тип значения.

    Строка ``service_commission_rate`` задаёт комиссию платформы в процентах
    на момент создания заказа.
    """

    class ValueType(models.TextChoices):
        STRING = "string", _("Строка")
        NUMBER = "number", _("Число")
        BOOLEAN = "boolean", _("Логическое")
        JSON = "json", _("JSON")

    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    type = models.CharField(max_length=16, choices=ValueType.choices, default=ValueType.STRING)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=50, default="general")
    is_public = models.BooleanField(default=False)
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Настройка платформы")
        verbose_name_plural = _("Настройки платформы")
        ordering = ["category", "key"]

    def __str__(self) -> str:
        return f"{self.key}={self.value}"
