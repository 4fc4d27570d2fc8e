"""Append-only audit trail for bookings and service orders."""

from __future__ import annotations

from typing import Any

from .models import BookingEvent


def record_event(
    event_type: str,
    *,
    booking=None,
    service_order=None,
    old_status: str = "",
    new_status: str = "",
    actor=None,
    notes: str = "",
    metadata: dict[str, Any] | None = None,
) -> BookingEvent:
    return BookingEvent.objects.create(
        booking=booking,
        service_order=service_order,
        event_type=event_type,
        old_status=old_status or "",
        new_status=new_status or "",
        performed_by=actor,
        performed_by_role=getattr(actor, "role", "") if actor is not None else "system",
        notes=notes,
        metadata=metadata or {},
    )
