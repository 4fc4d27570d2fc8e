"""Job assignment model."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class JobAssignment(models.Model):
    """Предложение услуги из бронирования конкретному поставщику."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Ожидает ответа")
        ACCEPTED = "accepted", _("Принято")
        REJECTED = "rejected", _("Отклонено")
        CANCELLED = "cancelled", _("Отменено")

    ACTIVE_STATUSES = (Status.PENDING, Status.ACCEPTED)

    service_booking = models.ForeignKey(
        "bookings.ServiceBooking",
        on_delete=models.CASCADE,
        related_name="assignments",
    )
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="created_assignments",
        null=True,
    )
    service_provider = models.ForeignKey(
        "providers.ServiceProvider",
        on_delete=models.CASCADE,
        related_name="assignments",
    )
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    rejection_reason = models.TextField(blank=True)
    responded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Назначение работы")
        verbose_name_plural = _("Назначения работ")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["service_booking"],
                condition=Q(status__in=["pending", "accepted"]),
                name="one_active_assignment_per_service_booking",
            )
        ]

    def __str__(self) -> str:
        return f"Assignment {self.pk}: {self.service_booking_id} -> {self.service_provider_id} ({self.status})"
