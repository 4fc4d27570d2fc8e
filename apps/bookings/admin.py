"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking, BookingCancellation, BookingEvent, ServiceBooking


class ServiceBookingInline(admin.TabularInline):
    model = ServiceBooking
    fk_name = "booking"
    extra = 0
    fields = ("service_name", "service_date", "service_provider", "rate", "total", "status")


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_code",
        "property",
        "client",
        "status",
        "payment_status",
        "check_in",
        "check_out",
        "total_amount",
        "created_at",
    )
    list_filter = ("status", "payment_status", "check_in")
    search_fields = ("booking_code", "property__title", "client__email")
    readonly_fields = (
        "booking_code",
        "created_at",
        "updated_at",
        "property_total",
        "services_total",
        "discount_amount",
        "payment_intent_id",
    )
    inlines = [ServiceBookingInline]


@admin.register(BookingEvent)
class BookingEventAdmin(admin.ModelAdmin):
    list_display = ("event_type", "booking", "service_order", "old_status", "new_status", "performed_by", "created_at")
    list_filter = ("event_type",)

    def has_change_permission(self, request, obj=None):  # type: ignore
        return False


@admin.register(BookingCancellation)
class BookingCancellationAdmin(admin.ModelAdmin):
    list_display = ("booking", "requested_by", "status", "cancellation_fee", "refund_amount", "created_at")
    list_filter = ("status",)
