"""Notification model.

Notifications are emitted by the domain services on every state
transition (bookings, service orders, job assignments, approvals) and
consumed by recipients in the web interface. Rows are append-only; the
only mutation is marking them read.
"""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Notification(models.Model):
    """A message sent to a user about some event."""

    class Type(models.TextChoices):
        JOB_ASSIGNED = "job_assigned", _("Назначена работа")
        JOB_ACCEPTED = "job_accepted", _("Работа принята")
        JOB_REJECTED = "job_rejected", _("Работа отклонена")
        TASK_COMPLETED = "task_completed", _("Задача выполнена")
        BOOKING_CONFIRMED = "booking_confirmed", _("Бронирование подтверждено")
        PAYMENT_RECEIVED = "payment_received", _("Платёж получен")
        MESSAGE_RECEIVED = "message_received", _("Новое сообщение")
        BOOKING = "booking", _("Бронирование")
        PAYMENT = "payment", _("Платёж")
        ORDER = "order", _("Заказ")
        MESSAGE = "message", _("Сообщение")
        REVIEW = "review", _("Отзыв")
        APPROVAL = "approval", _("Одобрение")
        REJECTION = "rejection", _("Отказ")
        CANCELLATION = "cancellation", _("Отмена")

    user = models.ForeignKey(
        'users.CustomUser', on_delete=models.CASCADE, related_name='notifications'
    )
    type = models.CharField(max_length=32, choices=Type.choices)
    title = models.CharField(max_length=255)
    message = models.TextField()
    related_id = models.CharField(max_length=64, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [models.Index(fields=['user', 'is_read'], name='notification_user_read_idx')]

    def __str__(self) -> str:
        return f"Notification to {self.user_id}: {self.title}"
