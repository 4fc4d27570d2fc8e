"""
Payment gateway webhook dispatch.

Events are matched back to local rows by ``orderId``/``bookingId`` in the
intent metadata. The paid transition shares the conditional update used
by client-side confirmation, so redelivered events are harmless.
"""

from __future__ import annotations

import logging
from typing import Any

from apps.bookings import services as booking_services
from apps.notifications.models import Notification
from apps.notifications.services import notify
from apps.orders import services as order_services

logger = logging.getLogger(__name__)


def handle_payment_succeeded(intent: dict[str, Any]) -> str:
    metadata = intent.get("metadata") or {}
    if metadata.get("orderId"):
        order = order_services.find_order_for_intent(intent)
        if order is None:
            logger.warning(f"Webhook intent {intent.get('id')} references unknown order {metadata['orderId']}")
            return "ignored"
        _, changed = order_services.apply_payment(order, intent["id"])
        return "applied" if changed else "duplicate"
    if metadata.get("bookingId"):
        booking = booking_services.find_booking_for_intent(intent)
        if booking is None:
            logger.warning(f"Webhook intent {intent.get('id')} references unknown booking {metadata['bookingId']}")
            return "ignored"
        _, changed = booking_services.apply_payment(booking, intent["id"])
        return "applied" if changed else "duplicate"
    logger.info(f"Webhook intent {intent.get('id')} has no order or booking metadata")
    return "ignored"


def handle_payment_failed(intent: dict[str, Any]) -> str:
    metadata = intent.get("metadata") or {}
    target = None
    code = None
    if metadata.get("orderId"):
        target = order_services.find_order_for_intent(intent)
        code = target.order_code if target else None
    elif metadata.get("bookingId"):
        target = booking_services.find_booking_for_intent(intent)
        code = target.booking_code if target else None
    if target is None:
        logger.info(f"Payment failure for unmatched intent {intent.get('id')}")
        return "ignored"
    logger.warning(f"Payment failed for {code} (intent {intent.get('id')})")
    notify(
        target.client,
        Notification.Type.PAYMENT,
        "Оплата не прошла",
        f"Платёж по {code} не прошёл. Попробуйте другой способ оплаты.",
        related_id=target.pk,
    )
    return "notified"


def handle_charge_refunded(charge: dict[str, Any]) -> str:
    payment_intent_id = charge.get("payment_intent")
    if not payment_intent_id:
        return "ignored"
    if order_services.mark_refunded_by_gateway(payment_intent_id):
        return "applied"
    if booking_services.mark_refunded_by_gateway(payment_intent_id):
        return "applied"
    return "ignored"


HANDLERS = {
    "payment_intent.succeeded": handle_payment_succeeded,
    "payment_intent.payment_failed": handle_payment_failed,
    "charge.refunded": handle_charge_refunded,
}


def dispatch(event: dict[str, Any]) -> str:
    handler = HANDLERS.get(event.get("type") or "")
    if handler is None:
        logger.debug(f"Unhandled webhook event type {event.get('type')}")
        return "unhandled"
    result = handler(event.get("object") or {})
    logger.info(f"Webhook {event.get('id')} ({event.get('type')}): {result}")
    return result
