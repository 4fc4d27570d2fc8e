"""Notification services: in-app rows plus best-effort e-mail delivery."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.db import DatabaseError, transaction  # type: ignore

from .models import Notification

if TYPE_CHECKING:  # pragma: no cover
    from apps.users.models import CustomUser

logger = logging.getLogger(__name__)


def send_email_notification(recipient_email: str, subject: str, message: str) -> bool:
    """
    Отправка email уведомления.

    Returns:
        bool: True если письмо отправлено успешно
    """
    if not recipient_email:
        return False
    try:
        send_mail(
            subject=subject,
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            fail_silently=False,
        )
        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def _schedule_delivery(notification_id: int) -> None:
    from .tasks import deliver_notification

    try:
        deliver_notification.delay(notification_id)
    except Exception as e:
        logger.warning(f"Could not enqueue delivery of notification {notification_id}: {e}")


def notify(
    user: "CustomUser",
    type: str,
    title: str,
    message: str,
    related_id=None,
) -> Notification | None:
    """
    Fire-and-forget уведомление пользователя.

    Строка создаётся в savepoint, поэтому ошибка записи не откатывает
    вызывающую транзакцию. Доставка ставится в очередь Celery только
    после коммита.
    """
    if user is None:
        return None
    try:
        with transaction.atomic():
            notification = Notification.objects.create(
                user=user,
                type=type,
                title=title,
                message=message,
                related_id="" if related_id is None else str(related_id),
            )
    except DatabaseError as e:
        logger.error(f"Failed to create notification '{type}' for user {user.pk}: {e}", exc_info=True)
        return None

    logger.info(f"Notification {notification.pk} ({type}) created for user {user.pk}")
    transaction.on_commit(lambda: _schedule_delivery(notification.pk))
    return notification


def mark_all_read(user: "CustomUser") -> int:
    return Notification.objects.filter(user=user, is_read=False).update(is_read=True)
