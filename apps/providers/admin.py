"""Admin registrations for the provider catalog."""

from __future__ import annotations

from django.contrib import admin  # type: ignore

from .models import MenuItem, ProviderMenu, ProviderTaskConfig, ServiceCategory, ServiceProvider, ServiceTask


@admin.register(ServiceCategory)
class ServiceCategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "icon", "created_at")
    search_fields = ("name",)


@admin.register(ServiceProvider)
class ServiceProviderAdmin(admin.ModelAdmin):
    list_display = ("business_name", "user", "category", "approval_status", "is_active", "created_at")
    list_filter = ("approval_status", "is_active", "category")
    search_fields = ("business_name", "user__email")
    readonly_fields = ("decided_by", "decided_at", "created_at", "updated_at")


class MenuItemInline(admin.TabularInline):
    model = MenuItem
    extra = 0


@admin.register(ProviderMenu)
class ProviderMenuAdmin(admin.ModelAdmin):
    list_display = ("category_name", "service_provider", "is_active", "sort_order")
    inlines = [MenuItemInline]


@admin.register(ServiceTask)
class ServiceTaskAdmin(admin.ModelAdmin):
    list_display = ("task_name", "task_code", "category", "sort_order")
    list_filter = ("category",)


@admin.register(ProviderTaskConfig)
class ProviderTaskConfigAdmin(admin.ModelAdmin):
    list_display = ("service_provider", "task", "is_enabled", "custom_price")
    list_filter = ("is_enabled",)
