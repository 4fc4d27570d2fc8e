"""
Job assignment protocol.

Coordinators offer a service booking to a provider; the provider accepts
or rejects; the coordinator may cancel or reassign. Each transition runs
in one transaction with the service booking row locked, and the partial
unique constraint on active assignments backs the protocol check.
"""

from __future__ import annotations

import logging

from django.db import IntegrityError, transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.audit import record_event
from apps.bookings.models import BookingEvent, ServiceBooking
from apps.notifications.models import Notification
from apps.notifications.services import notify
from apps.providers.models import ServiceProvider
from apps.providers.services import get_provider_profile
from apps.users.models import CustomUser
from apps.users.services import require_role
from shared.domain.exceptions import Conflict, Forbidden, InvalidState, NotFound, ValidationError
from shared.infrastructure.db import lock_queryset_if_possible

from .models import JobAssignment

logger = logging.getLogger(__name__)

ASSIGNER_ROLES = (*CustomUser.COORDINATOR_ROLES, CustomUser.RoleChoices.ADMIN)


def _require_coordinator(actor: CustomUser) -> None:
    require_role(actor, ASSIGNER_ROLES, "Назначать работы могут только координаторы.")


def _lock_service_booking(service_booking_id) -> ServiceBooking:
    qs = lock_queryset_if_possible(ServiceBooking.objects.select_related("booking").filter(pk=service_booking_id))
    service_booking = qs.first()
    if service_booking is None:
        raise NotFound("Услуга не найдена.")
    return service_booking


def _lock_assignment(assignment: JobAssignment) -> JobAssignment:
    locked = lock_queryset_if_possible(JobAssignment.objects.filter(pk=assignment.pk)).first()
    if locked is None:
        raise NotFound("Назначение не найдено.")
    return locked


def _assign(actor: CustomUser, service_booking_id, provider_id) -> JobAssignment:
    service_booking = _lock_service_booking(service_booking_id)
    if JobAssignment.objects.filter(
        service_booking=service_booking,
        status__in=JobAssignment.ACTIVE_STATUSES,
    ).exists():
        raise Conflict("У этой услуги уже есть активное назначение.")
    if service_booking.status not in ServiceBooking.ASSIGNABLE_STATUSES:
        raise InvalidState(f"Услугу в статусе {service_booking.status} нельзя назначить.")

    provider = ServiceProvider.objects.select_related("user").filter(pk=provider_id).first()
    if provider is None:
        raise NotFound("Поставщик не найден.")
    if not provider.is_bookable:
        raise ValidationError("Поставщик не одобрен или неактивен.")

    try:
        with transaction.atomic():
            assignment = JobAssignment.objects.create(
                service_booking=service_booking,
                service_provider=provider,
                assigned_by=actor,
            )
    except IntegrityError as exc:
        raise Conflict("У этой услуги уже есть активное назначение.") from exc

    old_status = service_booking.status
    service_booking.status = ServiceBooking.Status.ASSIGNED
    service_booking.service_provider = provider
    service_booking.save(update_fields=["status", "service_provider", "updated_at"])
    record_event(
        BookingEvent.EventType.PROVIDER_ASSIGNED,
        booking=service_booking.booking,
        old_status=old_status,
        new_status=service_booking.status,
        actor=actor,
        metadata={"service_booking_id": service_booking.pk, "assignment_id": assignment.pk, "provider_id": provider.pk},
    )
    logger.info(f"Service booking {service_booking.pk} assigned to provider {provider.pk} by {actor.pk}")
    notify(
        provider.user,
        Notification.Type.JOB_ASSIGNED,
        "Новая работа",
        f"Вам назначена услуга «{service_booking.service_name}» на {service_booking.service_date:%Y-%m-%d %H:%M}.",
        related_id=assignment.pk,
    )
    return assignment


@transaction.atomic
def assign(actor: CustomUser, service_booking_id, provider_id) -> JobAssignment:
    _require_coordinator(actor)
    return _assign(actor, service_booking_id, provider_id)


def _release(service_booking: ServiceBooking) -> None:
    service_booking.status = ServiceBooking.Status.AWAITING_ASSIGNMENT
    service_booking.service_provider = None
    service_booking.save(update_fields=["status", "service_provider", "updated_at"])


def _require_assigned_provider(actor: CustomUser, assignment: JobAssignment) -> ServiceProvider:
    provider = get_provider_profile(actor)
    if assignment.service_provider_id != provider.pk:
        raise Forbidden("Назначение адресовано другому поставщику.")
    return provider


@transaction.atomic
def accept(actor: CustomUser, assignment: JobAssignment) -> JobAssignment:
    _require_assigned_provider(actor, assignment)
    service_booking = _lock_service_booking(assignment.service_booking_id)
    assignment = _lock_assignment(assignment)
    if assignment.status != JobAssignment.Status.PENDING:
        raise InvalidState("Ответить можно только на ожидающее назначение.")

    assignment.status = JobAssignment.Status.ACCEPTED
    assignment.responded_at = timezone.now()
    assignment.save(update_fields=["status", "responded_at"])
    service_booking.status = ServiceBooking.Status.CONFIRMED
    service_booking.save(update_fields=["status", "updated_at"])
    record_event(
        BookingEvent.EventType.PROVIDER_ACCEPTED,
        booking=service_booking.booking,
        old_status=ServiceBooking.Status.ASSIGNED,
        new_status=service_booking.status,
        actor=actor,
        metadata={"service_booking_id": service_booking.pk, "assignment_id": assignment.pk},
    )
    logger.info(f"Assignment {assignment.pk} accepted by provider {assignment.service_provider_id}")
    if assignment.assigned_by is not None:
        notify(
            assignment.assigned_by,
            Notification.Type.JOB_ACCEPTED,
            "Работа принята",
            f"Поставщик принял услугу «{service_booking.service_name}».",
            related_id=assignment.pk,
        )
    return assignment


@transaction.atomic
def reject(actor: CustomUser, assignment: JobAssignment, reason: str = "") -> JobAssignment:
    _require_assigned_provider(actor, assignment)
    service_booking = _lock_service_booking(assignment.service_booking_id)
    assignment = _lock_assignment(assignment)
    if assignment.status != JobAssignment.Status.PENDING:
        raise InvalidState("Ответить можно только на ожидающее назначение.")

    assignment.status = JobAssignment.Status.REJECTED
    assignment.rejection_reason = reason
    assignment.responded_at = timezone.now()
    assignment.save(update_fields=["status", "rejection_reason", "responded_at"])
    _release(service_booking)
    record_event(
        BookingEvent.EventType.PROVIDER_REJECTED,
        booking=service_booking.booking,
        old_status=ServiceBooking.Status.ASSIGNED,
        new_status=service_booking.status,
        actor=actor,
        notes=reason,
        metadata={"service_booking_id": service_booking.pk, "assignment_id": assignment.pk},
    )
    logger.info(f"Assignment {assignment.pk} rejected by provider {assignment.service_provider_id}")
    if assignment.assigned_by is not None:
        message = f"Поставщик отклонил услугу «{service_booking.service_name}»."
        if reason:
            message = f"{message} Причина: {reason}"
        notify(
            assignment.assigned_by,
            Notification.Type.JOB_REJECTED,
            "Работа отклонена",
            message,
            related_id=assignment.pk,
        )
    return assignment


def _cancel(actor: CustomUser, assignment: JobAssignment) -> JobAssignment:
    service_booking = _lock_service_booking(assignment.service_booking_id)
    assignment = _lock_assignment(assignment)
    if assignment.status != JobAssignment.Status.PENDING:
        raise InvalidState("Отменить можно только назначение, ожидающее ответа поставщика.")

    old_status = service_booking.status
    assignment.status = JobAssignment.Status.CANCELLED
    assignment.responded_at = timezone.now()
    assignment.save(update_fields=["status", "responded_at"])
    _release(service_booking)
    record_event(
        BookingEvent.EventType.CANCELLED,
        booking=service_booking.booking,
        old_status=old_status,
        new_status=service_booking.status,
        actor=actor,
        metadata={"service_booking_id": service_booking.pk, "assignment_id": assignment.pk},
    )
    logger.info(f"Assignment {assignment.pk} cancelled by coordinator {actor.pk}")
    return assignment


@transaction.atomic
def coordinator_cancel(actor: CustomUser, assignment: JobAssignment) -> JobAssignment:
    _require_coordinator(actor)
    assignment = _cancel(actor, assignment)
    notify(
        assignment.service_provider.user,
        Notification.Type.CANCELLATION,
        "Назначение отменено",
        f"Координатор отменил назначение услуги «{assignment.service_booking.service_name}».",
        related_id=assignment.pk,
    )
    return assignment


@transaction.atomic
def reassign(actor: CustomUser, assignment: JobAssignment, new_provider_id) -> tuple[JobAssignment, JobAssignment]:
    """Отмена текущего назначения и создание нового в одной транзакции."""
    _require_coordinator(actor)
    if assignment.service_provider_id == int(new_provider_id):
        raise ValidationError("Услуга уже назначена этому поставщику.")
    cancelled = _cancel(actor, assignment)
    created = _assign(actor, cancelled.service_booking_id, new_provider_id)
    return cancelled, created


@transaction.atomic
def complete_service_booking(actor: CustomUser, service_booking: ServiceBooking) -> ServiceBooking:
    """Поставщик отмечает выполнение подтверждённой им услуги."""
    provider = get_provider_profile(actor)
    service_booking = _lock_service_booking(service_booking.pk)
    if service_booking.service_provider_id != provider.pk:
        raise Forbidden("Услуга назначена другому поставщику.")
    if service_booking.status != ServiceBooking.Status.CONFIRMED:
        raise InvalidState("Завершить можно только подтверждённую услугу.")

    service_booking.status = ServiceBooking.Status.COMPLETED
    service_booking.completed_at = timezone.now()
    service_booking.save(update_fields=["status", "completed_at", "updated_at"])
    record_event(
        BookingEvent.EventType.COMPLETED,
        booking=service_booking.booking,
        old_status=ServiceBooking.Status.CONFIRMED,
        new_status=service_booking.status,
        actor=actor,
        metadata={"service_booking_id": service_booking.pk},
    )
    notify(
        service_booking.booking.client,
        Notification.Type.TASK_COMPLETED,
        "Услуга выполнена",
        f"Услуга «{service_booking.service_name}» выполнена.",
        related_id=service_booking.booking_id,
    )
    return service_booking
