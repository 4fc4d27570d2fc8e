"""Admin registration for service orders."""

from __future__ import annotations

from django.contrib import admin

from .models import ServiceOrder, ServiceOrderItem


class ServiceOrderItemInline(admin.TabularInline):
    model = ServiceOrderItem
    extra = 0
    fields = ("item_type", "item_name", "quantity", "unit_price", "total_price", "is_completed")
    readonly_fields = ("unit_price", "total_price")


@admin.register(ServiceOrder)
class ServiceOrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_code",
        "client",
        "service_provider",
        "service_date",
        "status",
        "payment_status",
        "refund_status",
        "total_amount",
        "platform_fee_amount",
    )
    list_filter = ("status", "payment_status", "refund_status", "service_date")
    search_fields = ("order_code", "client__email", "service_provider__business_name")
    readonly_fields = (
        "order_code",
        "subtotal",
        "tax_amount",
        "total_amount",
        "platform_fee_percentage",
        "platform_fee_amount",
        "provider_amount",
        "payment_intent_id",
        "stripe_refund_id",
        "created_at",
        "updated_at",
    )
    inlines = [ServiceOrderItemInline]
