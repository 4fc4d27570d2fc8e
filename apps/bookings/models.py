"""Booking domain models for TravelHub."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.codes import generate_code


class Booking(models.Model):
    """Бронирование объекта недвижимости с дополнительными услугами.

    Статус и статус оплаты независимы. Итоговая сумма фиксируется при
    создании: total_amount = property_total + services_total - discount_amount.
    """

    class Status(models.TextChoices):
        PENDING = "pending", _("Ожидает")
        PENDING_PAYMENT = "pending_payment", _("Ожидает оплаты")
        CONFIRMED = "confirmed", _("Подтверждено")
        COMPLETED = "completed", _("Завершено")
        CANCELLED = "cancelled", _("Отменено")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Ожидает оплаты")
        PAID = "paid", _("Оплачено")
        REFUNDED = "refunded", _("Возврат")

    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    property = models.ForeignKey(
        "properties.Property",
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    booking_code = models.CharField(max_length=32, unique=True, editable=False)
    check_in = models.DateTimeField()
    check_out = models.DateTimeField()
    guests = models.PositiveSmallIntegerField(default=1)
    property_total = models.DecimalField(max_digits=10, decimal_places=2)
    services_total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(
        max_length=32,
        choices=Status.choices,
        default=Status.PENDING_PAYMENT,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_intent_id = models.CharField(max_length=255, blank=True)
    cancellation_reason = models.TextField(blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Бронирование")
        verbose_name_plural = _("Бронирования")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gt=models.F("check_in")),
                name="booking_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["status"], name="booking_status_idx"),
            models.Index(fields=["payment_intent_id"], name="booking_intent_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.booking_code} for {self.property_id}"

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.booking_code:
            self.booking_code = self.generate_booking_code()
        super().save(*args, **kwargs)

    @staticmethod
    def generate_booking_code() -> str:
        return generate_code("BK")

    def recomputed_total(self) -> Decimal:
        return self.property_total + self.services_total - self.discount_amount


class ServiceBooking(models.Model):
    """Дополнительная услуга в составе бронирования; единица распределения работ."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Ожидает")
        AWAITING_ASSIGNMENT = "awaiting_assignment", _("Ожидает назначения")
        ASSIGNED = "assigned", _("Назначена")
        CONFIRMED = "confirmed", _("Подтверждена поставщиком")
        COMPLETED = "completed", _("Выполнена")
        CANCELLED = "cancelled", _("Отменена")

    ASSIGNABLE_STATUSES = (Status.PENDING, Status.AWAITING_ASSIGNMENT)

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="service_bookings")
    service_provider = models.ForeignKey(
        "providers.ServiceProvider",
        on_delete=models.SET_NULL,
        related_name="service_bookings",
        null=True,
        blank=True,
    )
    preferred_provider = models.ForeignKey(
        "providers.ServiceProvider",
        on_delete=models.SET_NULL,
        related_name="preferred_service_bookings",
        null=True,
        blank=True,
        help_text=_("Поставщик, по ставке которого рассчитана цена."),
    )
    service_name = models.CharField(max_length=255)
    service_date = models.DateTimeField()
    duration = models.PositiveSmallIntegerField(null=True, blank=True, help_text=_("Часы"))
    rate = models.DecimalField(max_digits=10, decimal_places=2)
    total = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(max_length=32, choices=Status.choices, default=Status.PENDING)
    notes = models.TextField(blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Услуга в бронировании")
        verbose_name_plural = _("Услуги в бронированиях")
        ordering = ["service_date", "id"]

    def __str__(self) -> str:
        return f"{self.service_name} ({self.booking.booking_code})"


class BookingEvent(models.Model):
    """Неизменяемая запись журнала действий по бронированию или заказу услуги."""

    class EventType(models.TextChoices):
        CREATED = "created", _("Создано")
        STATUS_CHANGED = "status_changed", _("Смена статуса")
        PAYMENT_RECEIVED = "payment_received", _("Оплата получена")
        PAYMENT_REFUNDED = "payment_refunded", _("Возврат оплаты")
        PROVIDER_ASSIGNED = "provider_assigned", _("Назначен поставщик")
        PROVIDER_ACCEPTED = "provider_accepted", _("Поставщик принял")
        PROVIDER_REJECTED = "provider_rejected", _("Поставщик отклонил")
        STARTED = "started", _("Начато")
        COMPLETED = "completed", _("Завершено")
        CANCELLED = "cancelled", _("Отменено")
        ADMIN_OVERRIDE = "admin_override", _("Изменено администратором")

    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name="events",
        null=True,
        blank=True,
    )
    service_order = models.ForeignKey(
        "orders.ServiceOrder",
        on_delete=models.CASCADE,
        related_name="events",
        null=True,
        blank=True,
    )
    event_type = models.CharField(max_length=32, choices=EventType.choices)
    old_status = models.CharField(max_length=32, blank=True)
    new_status = models.CharField(max_length=32, blank=True)
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )
    performed_by_role = models.CharField(max_length=32, blank=True)
    notes = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Событие бронирования")
        verbose_name_plural = _("События бронирований")
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(booking__isnull=False) | Q(service_order__isnull=False),
                name="booking_event_has_subject",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.event_type} ({self.old_status} -> {self.new_status})"


class BookingCancellation(models.Model):
    """Запрос клиента на отмену бронирования с расчётом удержания."""

    class Status(models.TextChoices):
        PENDING = "pending", _("На рассмотрении")
        APPROVED = "approved", _("Одобрена")
        REJECTED = "rejected", _("Отклонена")
        REFUNDED = "refunded", _("Средства возвращены")

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="cancellations")
    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="booking_cancellations",
    )
    reason = models.TextField()
    cancellation_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    refund_amount = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )
    rejection_reason = models.TextField(blank=True)
    stripe_refund_id = models.CharField(max_length=255, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Отмена бронирования")
        verbose_name_plural = _("Отмены бронирований")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["booking"],
                condition=Q(status="pending"),
                name="one_pending_cancellation_per_booking",
            ),
        ]

    def __str__(self) -> str:
        return f"Cancellation of {self.booking_id} ({self.status})"
