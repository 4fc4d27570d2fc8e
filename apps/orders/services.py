"""Service order lifecycle: pricing, payment, provider decisions, completion."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Iterable

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.audit import record_event
from apps.bookings.models import Booking, BookingEvent
from apps.finances import stripe_service
from apps.finances.services import compute_commission
from apps.notifications.models import Notification
from apps.notifications.services import notify
from apps.providers.models import MenuItem, ProviderTaskConfig, ServiceProvider
from apps.providers.services import get_bookable_provider, get_provider_profile
from apps.users.models import CustomUser
from apps.users.services import require_role
from shared.domain.exceptions import ExternalServiceError, Forbidden, InvalidState, NotFound, ValidationError
from shared.domain.value_objects import Money

from .models import ServiceOrder, ServiceOrderItem

logger = logging.getLogger(__name__)

Status = ServiceOrder.Status


def tax_rate() -> Decimal:
    return Decimal(str(getattr(settings, "SERVICE_ORDER_TAX_RATE", "10.00")))


def price_items(provider: ServiceProvider, items: Iterable[dict[str, Any]]) -> tuple[list[dict[str, Any]], Money]:
    """
    Пересчёт позиций по каталогу поставщика.

    Цены из запроса игнорируются. Любая неизвестная или отключённая
    позиция отклоняет весь заказ.
    """
    priced: list[dict[str, Any]] = []
    subtotal = Money.zero()
    for item in items:
        item_type = item.get("item_type")
        if item_type == ServiceOrderItem.ItemType.MENU_ITEM and item.get("menu_item"):
            menu_item = (
                MenuItem.objects.filter(
                    pk=item["menu_item"],
                    menu__service_provider=provider,
                    menu__is_active=True,
                    is_available=True,
                )
                .first()
            )
            if menu_item is None:
                raise ValidationError(f"Блюдо {item['menu_item']} недоступно у этого поставщика.")
            quantity = item.get("quantity") or 1
            unit_price = Money(menu_item.price)
            priced.append(
                {
                    "item_type": ServiceOrderItem.ItemType.MENU_ITEM,
                    "menu_item": menu_item,
                    "task": None,
                    "item_name": menu_item.dish_name,
                    "quantity": quantity,
                    "unit_price": unit_price.amount,
                    "total_price": (unit_price * quantity).amount,
                }
            )
            subtotal += unit_price * quantity
        elif item_type == ServiceOrderItem.ItemType.TASK and item.get("task"):
            config = (
                ProviderTaskConfig.objects.select_related("task")
                .filter(
                    service_provider=provider,
                    task_id=item["task"],
                    task__category_id=provider.category_id,
                    is_enabled=True,
                )
                .first()
            )
            if config is None or config.custom_price is None:
                raise ValidationError(f"Задача {item['task']} недоступна у этого поставщика.")
            unit_price = Money(config.custom_price)
            priced.append(
                {
                    "item_type": ServiceOrderItem.ItemType.TASK,
                    "menu_item": None,
                    "task": config.task,
                    "item_name": config.task.task_name,
                    "quantity": 1,
                    "unit_price": unit_price.amount,
                    "total_price": unit_price.amount,
                }
            )
            subtotal += unit_price
        else:
            raise ValidationError("Неверный тип позиции или не указан идентификатор.")
    if not priced:
        raise ValidationError("Заказ должен содержать хотя бы одну позицию.")
    return priced, subtotal


@transaction.atomic
def create_order(
    client: CustomUser,
    *,
    service_provider,
    items: Iterable[dict[str, Any]],
    service_date,
    start_time,
    end_time=None,
    duration: int | None = None,
    special_instructions: str = "",
    booking=None,
    service_location: str = "",
    service_country: str = "",
) -> ServiceOrder:
    provider = get_bookable_provider(service_provider)
    linked_booking = None
    if booking is not None:
        linked_booking = Booking.objects.filter(pk=booking, client=client).first()
        if linked_booking is None:
            raise NotFound("Бронирование не найдено.")

    priced, subtotal = price_items(provider, list(items))
    tax = subtotal.percent(tax_rate())
    total = subtotal + tax
    commission = compute_commission(total.amount)

    order = ServiceOrder.objects.create(
        client=client,
        service_provider=provider,
        booking=linked_booking,
        service_date=service_date,
        start_time=start_time,
        end_time=end_time,
        duration=duration,
        special_instructions=special_instructions,
        service_location=service_location,
        service_country=service_country,
        subtotal=subtotal.amount,
        tax_amount=tax.amount,
        total_amount=total.amount,
        platform_fee_percentage=commission.rate,
        platform_fee_amount=commission.platform_fee_amount,
        provider_amount=commission.provider_amount,
        status=Status.PENDING_PAYMENT,
        payment_status=ServiceOrder.PaymentStatus.PENDING,
    )
    ServiceOrderItem.objects.bulk_create([ServiceOrderItem(service_order=order, **line) for line in priced])
    record_event(
        BookingEvent.EventType.CREATED,
        service_order=order,
        new_status=order.status,
        actor=client,
        metadata={
            "total_amount": str(order.total_amount),
            "platform_fee_percentage": str(order.platform_fee_percentage),
        },
    )
    logger.info(
        f"Service order {order.order_code} created by {client.pk}: total {order.total_amount}, "
        f"fee {order.platform_fee_amount} at {order.platform_fee_percentage}%"
    )

    notify(
        client,
        Notification.Type.ORDER,
        "Заказ создан",
        f"Заказ {order.order_code} создан и ожидает оплаты.",
        related_id=order.pk,
    )
    notify(
        provider.user,
        Notification.Type.ORDER,
        "Новый заказ",
        f"Новый заказ {order.order_code} на {order.service_date}.",
        related_id=order.pk,
    )
    return order


def _require_client(actor: CustomUser, order: ServiceOrder) -> None:
    if order.client_id != actor.pk:
        raise Forbidden("Операция доступна только клиенту заказа.")


def _require_owning_provider(actor: CustomUser, order: ServiceOrder) -> ServiceProvider:
    """Сверяется профиль поставщика, а не только роль пользователя."""
    provider = get_provider_profile(actor)
    if order.service_provider_id != provider.pk:
        raise Forbidden("Заказ принадлежит другому поставщику.")
    return provider


def create_payment_intent(actor: CustomUser, order: ServiceOrder) -> dict[str, Any]:
    _require_client(actor, order)
    if order.status != Status.PENDING_PAYMENT:
        raise InvalidState("Заказ должен быть в статусе pending_payment.")
    if order.payment_status == ServiceOrder.PaymentStatus.PAID:
        raise InvalidState("Заказ уже оплачен.")
    intent = stripe_service.create_payment_intent(
        order.total_amount,
        {"orderId": str(order.pk), "orderCode": order.order_code},
    )
    return {"client_secret": intent["client_secret"], "payment_intent_id": intent["id"]}


@transaction.atomic
def apply_payment(
    order: ServiceOrder,
    payment_intent_id: str,
    actor: CustomUser | None = None,
) -> tuple[ServiceOrder, bool]:
    """Идемпотентный перевод pending -> paid/confirmed; уведомления только при первом успехе."""
    old_status = order.status
    updated = (
        ServiceOrder.objects.filter(pk=order.pk, payment_status=ServiceOrder.PaymentStatus.PENDING)
        .update(
            payment_status=ServiceOrder.PaymentStatus.PAID,
            status=Status.CONFIRMED,
            payment_intent_id=payment_intent_id,
            updated_at=timezone.now(),
        )
    )
    order.refresh_from_db()
    if not updated:
        logger.info(f"Payment for order {order.order_code} not pending ({order.payment_status}), skipped")
        return order, False

    record_event(
        BookingEvent.EventType.PAYMENT_RECEIVED,
        service_order=order,
        old_status=old_status,
        new_status=order.status,
        actor=actor,
        metadata={"payment_intent_id": payment_intent_id},
    )
    logger.info(f"Order {order.order_code} paid via {payment_intent_id}")
    notify(
        order.client,
        Notification.Type.PAYMENT_RECEIVED,
        "Оплата получена",
        f"Заказ {order.order_code} оплачен и передан поставщику.",
        related_id=order.pk,
    )
    notify(
        order.service_provider.user,
        Notification.Type.ORDER,
        "Заказ оплачен",
        f"Заказ {order.order_code} оплачен. Примите или отклоните его.",
        related_id=order.pk,
    )
    return order, True


def confirm_payment(actor: CustomUser, order: ServiceOrder, payment_intent_id: str) -> tuple[ServiceOrder, bool]:
    _require_client(actor, order)
    if order.payment_status != ServiceOrder.PaymentStatus.PENDING:
        return order, False
    intent = stripe_service.retrieve_payment_intent(payment_intent_id)
    if intent["status"] != "succeeded":
        raise ValidationError("Платёж не завершён.")
    if intent["metadata"].get("orderId") != str(order.pk):
        raise ValidationError("Платёж относится к другому заказу.")
    return apply_payment(order, intent["id"], actor)


def find_order_for_intent(intent: dict[str, Any]) -> ServiceOrder | None:
    order_id = intent.get("metadata", {}).get("orderId")
    if order_id:
        return ServiceOrder.objects.filter(pk=order_id).select_related("client", "service_provider__user").first()
    if intent.get("id"):
        return ServiceOrder.objects.filter(payment_intent_id=intent["id"]).first()
    return None


@transaction.atomic
def mark_refunded_by_gateway(payment_intent_id: str) -> bool:
    order = ServiceOrder.objects.filter(payment_intent_id=payment_intent_id).first()
    if order is None:
        return False
    updated = ServiceOrder.objects.filter(pk=order.pk, payment_status=ServiceOrder.PaymentStatus.PAID).update(
        payment_status=ServiceOrder.PaymentStatus.REFUNDED,
        refund_status=ServiceOrder.RefundStatus.REFUNDED,
        updated_at=timezone.now(),
    )
    if updated:
        record_event(
            BookingEvent.EventType.PAYMENT_REFUNDED,
            service_order=order,
            old_status=order.status,
            new_status=order.status,
            metadata={"payment_intent_id": payment_intent_id, "source": "webhook"},
        )
        logger.info(f"Order {order.order_code} marked refunded by gateway")
    return bool(updated)


def _transition(order: ServiceOrder, allowed: Iterable[str], message: str, extra_filter=None, **changes) -> str:
    """Условный переход статуса одним UPDATE. Возвращает прежний статус."""
    old_status = order.status
    qs = ServiceOrder.objects.filter(pk=order.pk, status__in=list(allowed))
    if extra_filter:
        qs = qs.filter(**extra_filter)
    updated = qs.update(updated_at=timezone.now(), **changes)
    if not updated:
        raise InvalidState(message)
    order.refresh_from_db()
    return old_status


def _refund_if_paid(order: ServiceOrder, actor: CustomUser) -> str:
    """
    Возврат оплаченного заказа.

    Ошибка шлюза не прерывает переход: платёж остаётся paid, а
    refund_status=pending и событие refund_failed сигнализируют о ручном возврате.
    """
    if order.payment_status != ServiceOrder.PaymentStatus.PAID or not order.payment_intent_id:
        return ServiceOrder.RefundStatus.NONE
    try:
        refund_id = stripe_service.refund_payment(order.payment_intent_id)
    except ExternalServiceError as exc:
        logger.error(f"Refund for order {order.order_code} failed, manual follow-up required: {exc}")
        order.refund_status = ServiceOrder.RefundStatus.PENDING
        order.save(update_fields=["refund_status", "updated_at"])
        record_event(
            BookingEvent.EventType.STATUS_CHANGED,
            service_order=order,
            old_status=order.status,
            new_status=order.status,
            actor=actor,
            notes="Refund failed",
            metadata={"refund_failed": True, "error": str(exc)},
        )
        return ServiceOrder.RefundStatus.PENDING

    order.payment_status = ServiceOrder.PaymentStatus.REFUNDED
    order.refund_status = ServiceOrder.RefundStatus.REFUNDED
    order.stripe_refund_id = refund_id or ""
    order.save(update_fields=["payment_status", "refund_status", "stripe_refund_id", "updated_at"])
    record_event(
        BookingEvent.EventType.PAYMENT_REFUNDED,
        service_order=order,
        old_status=order.status,
        new_status=order.status,
        actor=actor,
        metadata={"refund_id": refund_id, "amount": str(order.total_amount)},
    )
    return ServiceOrder.RefundStatus.REFUNDED


def _refund_message(outcome: str, order: ServiceOrder) -> str:
    if outcome == ServiceOrder.RefundStatus.REFUNDED:
        return f" Средства ({order.total_amount}) возвращены."
    if outcome == ServiceOrder.RefundStatus.PENDING:
        return " Возврат средств будет выполнен вручную."
    return ""


@transaction.atomic
def accept_order(actor: CustomUser, order: ServiceOrder) -> ServiceOrder:
    _require_owning_provider(actor, order)
    old_status = _transition(
        order,
        [Status.CONFIRMED],
        "Принять можно только оплаченный заказ в статусе confirmed.",
        status=Status.ACCEPTED,
        accepted_at=timezone.now(),
    )
    record_event(
        BookingEvent.EventType.PROVIDER_ACCEPTED,
        service_order=order,
        old_status=old_status,
        new_status=order.status,
        actor=actor,
    )
    logger.info(f"Order {order.order_code} accepted by provider {order.service_provider_id}")
    notify(
        order.client,
        Notification.Type.ORDER,
        "Заказ принят",
        f"Поставщик принял заказ {order.order_code}.",
        related_id=order.pk,
    )
    return order


@transaction.atomic
def reject_order(actor: CustomUser, order: ServiceOrder, reason: str = "") -> tuple[ServiceOrder, str]:
    _require_owning_provider(actor, order)
    old_status = _transition(
        order,
        ServiceOrder.AWAITING_PROVIDER_STATUSES,
        "Отклонить можно только заказ, ожидающий решения поставщика.",
        status=Status.REJECTED,
        rejection_reason=reason,
    )
    record_event(
        BookingEvent.EventType.PROVIDER_REJECTED,
        service_order=order,
        old_status=old_status,
        new_status=order.status,
        actor=actor,
        notes=reason,
    )
    outcome = _refund_if_paid(order, actor)
    logger.info(f"Order {order.order_code} rejected by provider {order.service_provider_id}, refund: {outcome}")

    message = f"Поставщик отклонил заказ {order.order_code}."
    if reason:
        message = f"{message} Причина: {reason}."
    notify(
        order.client,
        Notification.Type.ORDER,
        "Заказ отклонён",
        message + _refund_message(outcome, order),
        related_id=order.pk,
    )
    return order, outcome


@transaction.atomic
def cancel_order(actor: CustomUser, order: ServiceOrder, reason: str = "") -> tuple[ServiceOrder, str]:
    """Клиент может отменить заказ, пока поставщик его не принял."""
    _require_client(actor, order)
    old_status = _transition(
        order,
        ServiceOrder.AWAITING_PROVIDER_STATUSES,
        "Заказ нельзя отменить после принятия поставщиком.",
        extra_filter={"accepted_at__isnull": True},
        status=Status.CANCELLED,
        cancellation_reason=reason,
        cancelled_at=timezone.now(),
    )
    record_event(
        BookingEvent.EventType.CANCELLED,
        service_order=order,
        old_status=old_status,
        new_status=order.status,
        actor=actor,
        notes=reason,
    )
    outcome = _refund_if_paid(order, actor)
    logger.info(f"Order {order.order_code} cancelled by client {actor.pk}, refund: {outcome}")

    message = f"Клиент отменил заказ {order.order_code}."
    if reason:
        message = f"{message} Причина: {reason}"
    notify(
        order.service_provider.user,
        Notification.Type.CANCELLATION,
        "Заказ отменён",
        message,
        related_id=order.pk,
    )
    return order, outcome


@transaction.atomic
def start_order(actor: CustomUser, order: ServiceOrder) -> ServiceOrder:
    _require_owning_provider(actor, order)
    old_status = _transition(
        order,
        [Status.ACCEPTED],
        "Начать можно только принятый заказ.",
        status=Status.IN_PROGRESS,
    )
    record_event(BookingEvent.EventType.STARTED, service_order=order, old_status=old_status, new_status=order.status, actor=actor)
    notify(
        order.client,
        Notification.Type.ORDER,
        "Работа начата",
        f"Поставщик приступил к заказу {order.order_code}.",
        related_id=order.pk,
    )
    return order


@transaction.atomic
def complete_order(actor: CustomUser, order: ServiceOrder, provider_notes: str = "") -> ServiceOrder:
    _require_owning_provider(actor, order)
    changes: dict[str, Any] = {"status": Status.COMPLETED, "completed_at": timezone.now()}
    if provider_notes:
        changes["provider_notes"] = provider_notes
    old_status = _transition(
        order,
        ServiceOrder.COMPLETABLE_STATUSES,
        "Завершить можно только принятый или выполняемый заказ.",
        **changes,
    )
    record_event(
        BookingEvent.EventType.COMPLETED,
        service_order=order,
        old_status=old_status,
        new_status=order.status,
        actor=actor,
        notes=provider_notes,
    )
    logger.info(f"Order {order.order_code} completed")
    notify(
        order.client,
        Notification.Type.REVIEW,
        "Заказ выполнен",
        f"Заказ {order.order_code} выполнен. Оставьте отзыв о поставщике!",
        related_id=order.pk,
    )
    return order


def set_item_completed(actor: CustomUser, order: ServiceOrder, item_id, is_completed: bool) -> ServiceOrderItem:
    _require_owning_provider(actor, order)
    if order.status not in ServiceOrder.COMPLETABLE_STATUSES:
        raise InvalidState("Отмечать позиции можно только в принятом заказе.")
    item = order.items.filter(pk=item_id).first()
    if item is None:
        raise NotFound("Позиция заказа не найдена.")
    item.is_completed = is_completed
    item.completed_at = timezone.now() if is_completed else None
    item.save(update_fields=["is_completed", "completed_at"])
    return item


@transaction.atomic
def override_status(
    actor: CustomUser,
    order: ServiceOrder,
    *,
    status: str | None = None,
    payment_status: str | None = None,
    notes: str = "",
) -> ServiceOrder:
    """Ручная смена статуса сотрудником поддержки в обход правил переходов."""
    require_role(actor, CustomUser.OVERRIDE_ROLES, "Изменять статус вручную могут только администраторы и операционный отдел.")
    old_status = order.status
    fields = ["updated_at"]
    if status:
        order.status = status
        fields.append("status")
    if payment_status:
        order.payment_status = payment_status
        fields.append("payment_status")
    order.save(update_fields=fields)
    record_event(
        BookingEvent.EventType.ADMIN_OVERRIDE,
        service_order=order,
        old_status=old_status,
        new_status=order.status,
        actor=actor,
        notes=notes,
        metadata={"payment_status": order.payment_status},
    )
    logger.warning(f"Order {order.order_code} status overridden {old_status} -> {order.status} by {actor.pk}")
    return order
