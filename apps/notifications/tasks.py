"""Celery tasks for notification delivery."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .models import Notification
from .services import send_email_notification

logger = logging.getLogger(__name__)


@shared_task(name="notifications.deliver_notification")
def deliver_notification(notification_id: int) -> bool:
    """Доставляет уведомление по email. Ошибки только логируются."""

    try:
        notification = Notification.objects.select_related("user").get(pk=notification_id)
    except Notification.DoesNotExist:
        logger.warning(f"Notification {notification_id} vanished before delivery")
        return False

    return send_email_notification(
        notification.user.email,
        notification.title,
        notification.message,
    )
