"""
Stripe payment gateway integration.

Module-level functions wrap the four gateway capabilities the platform
needs: create an intent, read its status, refund it and verify webhook
signatures. Every failure is re-raised as StripePaymentError.
"""

from __future__ import annotations

import logging
from typing import Any

import stripe  # type: ignore
from django.conf import settings  # type: ignore

from shared.domain.exceptions import ExternalServiceError
from shared.domain.value_objects import Money

logger = logging.getLogger(__name__)


class StripePaymentError(ExternalServiceError):
    """Raised when a call to Stripe fails."""

    default_message = "Платёжный сервис недоступен."


def _configure() -> None:
    secret_key = getattr(settings, "STRIPE_SECRET_KEY", "")
    if not secret_key:
        raise StripePaymentError("Платёжный сервис не настроен.")
    stripe.api_key = secret_key


def _as_dict(obj) -> dict[str, Any]:
    if obj is None:
        return {}
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


def _intent_to_dict(intent) -> dict[str, Any]:
    data = _as_dict(intent)
    return {
        "id": data.get("id"),
        "status": data.get("status"),
        "amount": data.get("amount"),
        "currency": data.get("currency"),
        "client_secret": data.get("client_secret"),
        "metadata": {key: str(value) for key, value in _as_dict(data.get("metadata")).items()},
    }


def create_payment_intent(amount, metadata: dict[str, str]) -> dict[str, Any]:
    """
    Создание PaymentIntent.

    Args:
        amount: сумма в валюте платформы (Decimal)
        metadata: orderId/orderCode или bookingId/bookingCode

    Returns:
        dict с id, status, client_secret и metadata
    """
    _configure()
    try:
        intent = stripe.PaymentIntent.create(
            amount=Money(amount).cents(),
            currency=settings.STRIPE_CURRENCY,
            metadata=metadata,
            automatic_payment_methods={"enabled": True},
        )
    except stripe.StripeError as exc:
        logger.error(f"Stripe intent creation failed for {metadata}: {exc}", exc_info=True)
        raise StripePaymentError(f"Не удалось создать платёж: {exc.user_message or exc}")

    result = _intent_to_dict(intent)
    logger.info(f"Stripe intent {result['id']} created for {metadata}")
    return result


def retrieve_payment_intent(payment_intent_id: str) -> dict[str, Any]:
    _configure()
    try:
        intent = stripe.PaymentIntent.retrieve(payment_intent_id)
    except stripe.StripeError as exc:
        logger.error(f"Stripe intent {payment_intent_id} lookup failed: {exc}", exc_info=True)
        raise StripePaymentError(f"Не удалось проверить платёж: {exc.user_message or exc}")
    return _intent_to_dict(intent)


def refund_payment(payment_intent_id: str, amount=None) -> str:
    """Возврат по PaymentIntent, полный или на сумму ``amount``. Возвращает id возврата."""
    _configure()
    params: dict[str, Any] = {"payment_intent": payment_intent_id}
    if amount is not None:
        params["amount"] = Money(amount).cents()
    try:
        refund = stripe.Refund.create(**params)
    except stripe.StripeError as exc:
        logger.error(f"Stripe refund failed for {payment_intent_id}: {exc}", exc_info=True)
        raise StripePaymentError(f"Не удалось выполнить возврат: {exc.user_message or exc}")
    refund_id = _as_dict(refund).get("id")
    logger.info(f"Stripe refund {refund_id} issued for {payment_intent_id}")
    return refund_id


def construct_webhook_event(payload: bytes, signature: str) -> dict[str, Any]:
    """Проверка подписи webhook. Неверная подпись или тело дают StripePaymentError."""
    secret = getattr(settings, "STRIPE_WEBHOOK_SECRET", "")
    if not secret:
        raise StripePaymentError("Секрет webhook не настроен.")
    try:
        event = stripe.Webhook.construct_event(payload, signature, secret)
    except ValueError as exc:
        raise StripePaymentError(f"Некорректное тело webhook: {exc}")
    except stripe.SignatureVerificationError as exc:
        raise StripePaymentError(f"Неверная подпись webhook: {exc}")
    data = _as_dict(event)
    return {
        "id": data.get("id"),
        "type": data.get("type"),
        "object": _as_dict(_as_dict(data.get("data")).get("object")),
    }
