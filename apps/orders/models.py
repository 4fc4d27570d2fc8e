"""Service order models.

Заказ услуги устроен так же, как бронирование, но без привязки к
проживанию. Комиссия платформы фиксируется при создании заказа и
никогда не пересчитывается.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.codes import generate_code


class ServiceOrder(models.Model):
    """Заказ услуги у поставщика."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Ожидает")
        PENDING_PAYMENT = "pending_payment", _("Ожидает оплаты")
        CONFIRMED = "confirmed", _("Оплачен, ждёт поставщика")
        PENDING_ACCEPTANCE = "pending_acceptance", _("Ожидает принятия")
        ACCEPTED = "accepted", _("Принят поставщиком")
        IN_PROGRESS = "in_progress", _("Выполняется")
        COMPLETED = "completed", _("Выполнен")
        CANCELLED = "cancelled", _("Отменён")
        REJECTED = "rejected", _("Отклонён поставщиком")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Ожидает оплаты")
        PAID = "paid", _("Оплачен")
        REFUNDED = "refunded", _("Возврат")

    class RefundStatus(models.TextChoices):
        NONE = "none", _("Нет")
        REFUNDED = "refunded", _("Возвращено")
        PENDING = "pending", _("Требует ручного возврата")

    # Статусы, из которых поставщик может отклонить, а клиент отменить заказ.
    AWAITING_PROVIDER_STATUSES = (Status.CONFIRMED, Status.PENDING_ACCEPTANCE)
    COMPLETABLE_STATUSES = (Status.ACCEPTED, Status.IN_PROGRESS)

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.SET_NULL,
        related_name="service_orders",
        null=True,
        blank=True,
    )
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="service_orders",
    )
    service_provider = models.ForeignKey(
        "providers.ServiceProvider",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    order_code = models.CharField(max_length=32, unique=True, editable=False)
    service_date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField(null=True, blank=True)
    duration = models.PositiveSmallIntegerField(null=True, blank=True)
    status = models.CharField(max_length=32, choices=Status.choices, default=Status.PENDING_PAYMENT)
    subtotal = models.DecimalField(max_digits=10, decimal_places=2)
    tax_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    platform_fee_percentage = models.DecimalField(max_digits=5, decimal_places=2)
    platform_fee_amount = models.DecimalField(max_digits=10, decimal_places=2)
    provider_amount = models.DecimalField(max_digits=10, decimal_places=2)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    refund_status = models.CharField(
        max_length=16,
        choices=RefundStatus.choices,
        default=RefundStatus.NONE,
    )
    payment_intent_id = models.CharField(max_length=255, blank=True)
    stripe_refund_id = models.CharField(max_length=255, blank=True)
    special_instructions = models.TextField(blank=True)
    provider_notes = models.TextField(blank=True)
    cancellation_reason = models.TextField(blank=True)
    rejection_reason = models.TextField(blank=True)
    service_location = models.CharField(max_length=255, blank=True)
    service_country = models.CharField(max_length=100, blank=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Заказ услуги")
        verbose_name_plural = _("Заказы услуг")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="order_status_idx"),
            models.Index(fields=["payment_intent_id"], name="order_intent_idx"),
        ]

    def __str__(self) -> str:
        return f"Order #{self.order_code}"

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.order_code:
            self.order_code = generate_code("TH")
        super().save(*args, **kwargs)


class ServiceOrderItem(models.Model):
    """Позиция заказа: блюдо из меню или задача поставщика."""

    class ItemType(models.TextChoices):
        MENU_ITEM = "menu_item", _("Блюдо")
        TASK = "task", _("Задача")

    service_order = models.ForeignKey(ServiceOrder, on_delete=models.CASCADE, related_name="items")
    item_type = models.CharField(max_length=16, choices=ItemType.choices)
    menu_item = models.ForeignKey(
        "providers.MenuItem",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    task = models.ForeignKey(
        "providers.ServiceTask",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    item_name = models.CharField(max_length=255)
    quantity = models.PositiveSmallIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    total_price = models.DecimalField(max_digits=10, decimal_places=2)
    is_completed = models.BooleanField(default=False)
    completed_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Позиция заказа")
        verbose_name_plural = _("Позиции заказа")
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.item_name} x{self.quantity}"
