"""Domain services for booking workflows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.finances import stripe_service
from apps.notifications.models import Notification
from apps.notifications.services import notify
from apps.properties.models import Property
from apps.providers.services import get_bookable_provider
from apps.users.models import CustomUser
from apps.users.services import require_admin, require_role
from shared.domain.exceptions import (
    Conflict,
    ExternalServiceError,
    Forbidden,
    InvalidState,
    NotFound,
    ValidationError,
)
from shared.domain.value_objects import DateRange, Money, quantize
from shared.infrastructure.db import lock_queryset_if_possible

from .audit import record_event
from .models import Booking, BookingCancellation, BookingEvent, ServiceBooking

logger = logging.getLogger(__name__)

CANCELLATION_FEE_RATE = Decimal("10")


def bundle_discount_rate(services_count: int) -> Decimal:
    """10% при трёх и более услугах, 5% при одной-двух, иначе без скидки."""
    if services_count >= 3:
        return Decimal("10")
    if services_count > 0:
        return Decimal("5")
    return Decimal("0")


@dataclass(frozen=True)
class ServiceLine:
    provider: Any
    service_name: str
    service_date: Any
    duration: int | None
    rate: Decimal
    notes: str = ""


@dataclass(frozen=True)
class BookingQuote:
    nights: int
    property_total: Decimal
    services_total: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    lines: tuple


def _service_rate(provider, duration: int | None) -> Decimal:
    if duration:
        if provider.hourly_rate is None:
            raise ValidationError(f"У поставщика «{provider.business_name}» нет почасовой ставки.")
        return quantize(provider.hourly_rate * duration)
    if provider.fixed_rate is None:
        raise ValidationError(f"У поставщика «{provider.business_name}» нет фиксированной ставки.")
    return quantize(provider.fixed_rate)


def quote_booking(property_obj: Property, check_in, check_out, services: Iterable[dict]) -> BookingQuote:
    """Расчёт стоимости по актуальным ставкам объекта и поставщиков."""
    try:
        stay = DateRange(check_in, check_out)
    except ValueError:
        raise ValidationError("Дата выезда должна быть позже даты заезда.")

    property_total = Money(property_obj.price_per_night) * stay.nights
    services_total = Money.zero()
    lines = []
    for service in services:
        provider = get_bookable_provider(service["service_provider"])
        duration = service.get("duration")
        rate = _service_rate(provider, duration)
        services_total += Money(rate)
        lines.append(
            ServiceLine(
                provider=provider,
                service_name=service.get("service_name") or provider.category.name,
                service_date=service["service_date"],
                duration=duration,
                rate=rate,
                notes=service.get("notes", ""),
            )
        )

    gross = property_total + services_total
    discount = gross.percent(bundle_discount_rate(len(lines)))
    total = gross - discount
    return BookingQuote(
        nights=stay.nights,
        property_total=property_total.amount,
        services_total=services_total.amount,
        discount_amount=discount.amount,
        total_amount=total.amount,
        lines=tuple(lines),
    )


def get_active_property(property_id) -> Property:
    try:
        property_obj = Property.objects.select_related("owner").get(pk=property_id)
    except (Property.DoesNotExist, ValueError, TypeError):
        raise NotFound("Объект не найден.")
    if not property_obj.is_active:
        raise ValidationError("Объект недоступен для бронирования.")
    return property_obj


@transaction.atomic
def create_booking(
    client: CustomUser,
    *,
    property_id,
    check_in,
    check_out,
    guests: int,
    services: Iterable[dict] = (),
) -> Booking:
    property_obj = get_active_property(property_id)
    if guests > property_obj.max_guests:
        raise ValidationError("Количество гостей превышает вместимость объекта.")

    quote = quote_booking(property_obj, check_in, check_out, list(services))
    booking = Booking.objects.create(
        client=client,
        property=property_obj,
        check_in=check_in,
        check_out=check_out,
        guests=guests,
        property_total=quote.property_total,
        services_total=quote.services_total,
        discount_amount=quote.discount_amount,
        total_amount=quote.total_amount,
        status=Booking.Status.PENDING_PAYMENT,
        payment_status=Booking.PaymentStatus.PENDING,
    )
    ServiceBooking.objects.bulk_create(
        [
            ServiceBooking(
                booking=booking,
                preferred_provider=line.provider,
                service_name=line.service_name,
                service_date=line.service_date,
                duration=line.duration,
                rate=line.rate,
                total=line.rate,
                notes=line.notes,
            )
            for line in quote.lines
        ]
    )
    record_event(
        BookingEvent.EventType.CREATED,
        booking=booking,
        new_status=booking.status,
        actor=client,
        metadata={"total_amount": str(booking.total_amount), "services": len(quote.lines)},
    )
    logger.info(f"Booking {booking.booking_code} created by {client.pk}: total {booking.total_amount}")

    notify(
        client,
        Notification.Type.BOOKING,
        "Бронирование создано",
        f"Бронирование {booking.booking_code} создано и ожидает оплаты.",
        related_id=booking.pk,
    )
    notify(
        property_obj.owner,
        Notification.Type.BOOKING,
        "Новое бронирование",
        f"Новое бронирование {booking.booking_code} объекта «{property_obj.title}».",
        related_id=booking.pk,
    )
    return booking


def _require_client(actor: CustomUser, booking: Booking) -> None:
    if booking.client_id != actor.pk:
        raise Forbidden("Оплатить можно только собственное бронирование.")


def create_payment_intent(actor: CustomUser, booking: Booking) -> dict[str, Any]:
    """Платёж создаётся только для неоплаченного бронирования в статусе pending_payment."""
    _require_client(actor, booking)
    if booking.status != Booking.Status.PENDING_PAYMENT:
        raise InvalidState("Бронирование должно быть в статусе pending_payment.")
    if booking.payment_status == Booking.PaymentStatus.PAID:
        raise InvalidState("Бронирование уже оплачено.")
    intent = stripe_service.create_payment_intent(
        booking.total_amount,
        {"bookingId": str(booking.pk), "bookingCode": booking.booking_code},
    )
    return {"client_secret": intent["client_secret"], "payment_intent_id": intent["id"]}


@transaction.atomic
def apply_payment(booking: Booking, payment_intent_id: str, actor: CustomUser | None = None) -> tuple[Booking, bool]:
    """
    Перевод в paid/confirmed одним условным UPDATE.

    Переводится только бронирование с payment_status=pending. Возвращает
    (booking, changed). Повторный вызов, в том числе гонка webhook и
    клиентского подтверждения или событие после возврата, ничего не
    меняет и не рассылает уведомления.
    """
    old_status = booking.status
    updated = (
        Booking.objects.filter(pk=booking.pk, payment_status=Booking.PaymentStatus.PENDING)
        .update(
            payment_status=Booking.PaymentStatus.PAID,
            status=Booking.Status.CONFIRMED,
            payment_intent_id=payment_intent_id,
            updated_at=timezone.now(),
        )
    )
    booking.refresh_from_db()
    if not updated:
        logger.info(f"Payment for booking {booking.booking_code} not pending ({booking.payment_status}), skipped")
        return booking, False

    ServiceBooking.objects.filter(booking=booking, status=ServiceBooking.Status.PENDING).update(
        status=ServiceBooking.Status.AWAITING_ASSIGNMENT,
        updated_at=timezone.now(),
    )
    record_event(
        BookingEvent.EventType.PAYMENT_RECEIVED,
        booking=booking,
        old_status=old_status,
        new_status=booking.status,
        actor=actor,
        metadata={"payment_intent_id": payment_intent_id},
    )
    logger.info(f"Booking {booking.booking_code} paid via {payment_intent_id}")

    notify(
        booking.client,
        Notification.Type.BOOKING_CONFIRMED,
        "Бронирование подтверждено",
        f"Оплата получена, бронирование {booking.booking_code} подтверждено.",
        related_id=booking.pk,
    )
    notify(
        booking.property.owner,
        Notification.Type.PAYMENT_RECEIVED,
        "Оплата получена",
        f"Бронирование {booking.booking_code} оплачено на сумму {booking.total_amount}.",
        related_id=booking.pk,
    )
    return booking, True


def confirm_payment(actor: CustomUser, booking: Booking, payment_intent_id: str) -> tuple[Booking, bool]:
    """Клиентское подтверждение: статус intent проверяется у платёжного шлюза."""
    _require_client(actor, booking)
    if booking.payment_status != Booking.PaymentStatus.PENDING:
        return booking, False
    intent = stripe_service.retrieve_payment_intent(payment_intent_id)
    if intent["status"] != "succeeded":
        raise ValidationError("Платёж не завершён.")
    if intent["metadata"].get("bookingId") != str(booking.pk):
        raise ValidationError("Платёж относится к другому бронированию.")
    return apply_payment(booking, intent["id"], actor)


def find_booking_for_intent(intent: dict[str, Any]) -> Booking | None:
    booking_id = intent.get("metadata", {}).get("bookingId")
    if booking_id:
        return Booking.objects.filter(pk=booking_id).select_related("client", "property__owner").first()
    if intent.get("id"):
        return Booking.objects.filter(payment_intent_id=intent["id"]).first()
    return None


@transaction.atomic
def mark_refunded_by_gateway(payment_intent_id: str) -> bool:
    booking = Booking.objects.filter(payment_intent_id=payment_intent_id).first()
    if booking is None:
        return False
    updated = Booking.objects.filter(pk=booking.pk, payment_status=Booking.PaymentStatus.PAID).update(
        payment_status=Booking.PaymentStatus.REFUNDED,
        updated_at=timezone.now(),
    )
    if updated:
        record_event(
            BookingEvent.EventType.PAYMENT_REFUNDED,
            booking=booking,
            old_status=booking.status,
            new_status=booking.status,
            metadata={"payment_intent_id": payment_intent_id, "source": "webhook"},
        )
        logger.info(f"Booking {booking.booking_code} marked refunded by gateway")
    return bool(updated)


@transaction.atomic
def override_status(
    actor: CustomUser,
    booking: Booking,
    *,
    status: str | None = None,
    payment_status: str | None = None,
    notes: str = "",
) -> Booking:
    """Принудительная смена статусов сотрудниками без проверки переходов."""
    require_role(actor, CustomUser.OVERRIDE_ROLES, "Изменять статус вручную могут только администраторы и операционный отдел.")
    old_status = booking.status
    fields = ["updated_at"]
    if status:
        booking.status = status
        fields.append("status")
    if payment_status:
        booking.payment_status = payment_status
        fields.append("payment_status")
    booking.save(update_fields=fields)
    record_event(
        BookingEvent.EventType.ADMIN_OVERRIDE,
        booking=booking,
        old_status=old_status,
        new_status=booking.status,
        actor=actor,
        notes=notes,
        metadata={"payment_status": booking.payment_status},
    )
    logger.warning(f"Booking {booking.booking_code} status overridden {old_status} -> {booking.status} by {actor.pk}")
    return booking


def request_cancellation(actor: CustomUser, booking: Booking, reason: str) -> BookingCancellation:
    """Клиент запрашивает отмену; удержание 10%, остальное к возврату."""
    if booking.client_id != actor.pk:
        raise Forbidden("Отменить можно только собственное бронирование.")
    if booking.status in (Booking.Status.CANCELLED, Booking.Status.COMPLETED):
        raise InvalidState("Бронирование уже завершено или отменено.")
    if BookingCancellation.objects.filter(booking=booking, status=BookingCancellation.Status.PENDING).exists():
        raise Conflict("Запрос на отмену уже на рассмотрении.")

    total = Money(booking.total_amount)
    fee = total.percent(CANCELLATION_FEE_RATE)
    with transaction.atomic():
        cancellation = BookingCancellation.objects.create(
            booking=booking,
            requested_by=actor,
            reason=reason,
            cancellation_fee=fee.amount,
            refund_amount=(total - fee).amount,
        )
        for admin in CustomUser.objects.filter(role=CustomUser.RoleChoices.ADMIN, is_active=True):
            notify(
                admin,
                Notification.Type.CANCELLATION,
                "Запрос на отмену бронирования",
                f"Клиент запросил отмену бронирования {booking.booking_code}. Причина: {reason}",
                related_id=cancellation.pk,
            )
    logger.info(f"Cancellation {cancellation.pk} requested for booking {booking.booking_code}")
    return cancellation


def _cancel_booking_services(booking: Booking) -> None:
    from apps.assignments.models import JobAssignment

    service_ids = list(booking.service_bookings.values_list("id", flat=True))
    JobAssignment.objects.filter(
        service_booking_id__in=service_ids,
        status__in=JobAssignment.ACTIVE_STATUSES,
    ).update(status=JobAssignment.Status.CANCELLED, responded_at=timezone.now())
    ServiceBooking.objects.filter(pk__in=service_ids).exclude(status=ServiceBooking.Status.COMPLETED).update(
        status=ServiceBooking.Status.CANCELLED,
        updated_at=timezone.now(),
    )


@transaction.atomic
def decide_cancellation(
    actor: CustomUser,
    cancellation: BookingCancellation,
    *,
    approve: bool,
    reason: str = "",
) -> BookingCancellation:
    """
    Рассмотрение запроса на отмену администратором.

    При одобрении оплаченного бронирования возврат выполняется сразу;
    ошибка шлюза не блокирует отмену, запрос остаётся в статусе approved.
    """
    require_admin(actor)
    new_status = BookingCancellation.Status.APPROVED if approve else BookingCancellation.Status.REJECTED
    updated = BookingCancellation.objects.filter(
        pk=cancellation.pk,
        status=BookingCancellation.Status.PENDING,
    ).update(
        status=new_status,
        approved_by=actor,
        rejection_reason="" if approve else reason,
        updated_at=timezone.now(),
    )
    if not updated:
        raise InvalidState("Запрос уже рассмотрен.")
    cancellation.refresh_from_db()
    booking = lock_queryset_if_possible(Booking.objects.filter(pk=cancellation.booking_id)).get()

    if not approve:
        message = f"Запрос на отмену бронирования {booking.booking_code} отклонён."
        if reason:
            message = f"{message} Причина: {reason}"
        notify(cancellation.requested_by, Notification.Type.REJECTION, "Отмена отклонена", message, related_id=booking.pk)
        return cancellation

    old_status = booking.status
    booking.status = Booking.Status.CANCELLED
    booking.cancelled_at = timezone.now()
    booking.cancellation_reason = cancellation.reason
    booking.save(update_fields=["status", "cancelled_at", "cancellation_reason", "updated_at"])
    _cancel_booking_services(booking)
    record_event(
        BookingEvent.EventType.CANCELLED,
        booking=booking,
        old_status=old_status,
        new_status=booking.status,
        actor=actor,
        notes=cancellation.reason,
    )

    refund_note = ""
    if booking.payment_status == Booking.PaymentStatus.PAID and booking.payment_intent_id:
        try:
            refund_id = stripe_service.refund_payment(booking.payment_intent_id, cancellation.refund_amount)
        except ExternalServiceError as exc:
            logger.error(f"Refund for booking {booking.booking_code} failed, manual follow-up required: {exc}")
            record_event(
                BookingEvent.EventType.STATUS_CHANGED,
                booking=booking,
                old_status=booking.status,
                new_status=booking.status,
                actor=actor,
                notes="Refund failed",
                metadata={"refund_failed": True, "error": str(exc)},
            )
            refund_note = " Возврат средств будет выполнен вручную."
        else:
            now = timezone.now()
            booking.payment_status = Booking.PaymentStatus.REFUNDED
            booking.save(update_fields=["payment_status", "updated_at"])
            cancellation.status = BookingCancellation.Status.REFUNDED
            cancellation.stripe_refund_id = refund_id or ""
            cancellation.refunded_at = now
            cancellation.save(update_fields=["status", "stripe_refund_id", "refunded_at", "updated_at"])
            record_event(
                BookingEvent.EventType.PAYMENT_REFUNDED,
                booking=booking,
                old_status=booking.status,
                new_status=booking.status,
                actor=actor,
                metadata={"refund_id": refund_id, "amount": str(cancellation.refund_amount)},
            )
            refund_note = f" Сумма к возврату: {cancellation.refund_amount}."

    notify(
        cancellation.requested_by,
        Notification.Type.APPROVAL,
        "Отмена одобрена",
        f"Бронирование {booking.booking_code} отменено.{refund_note}",
        related_id=booking.pk,
    )
    logger.info(f"Booking {booking.booking_code} cancelled by {actor.pk}")
    return cancellation
