from django.contrib import admin

from .models import JobAssignment


@admin.register(JobAssignment)
class JobAssignmentAdmin(admin.ModelAdmin):
    list_display = ("id", "service_booking", "service_provider", "assigned_by", "status", "responded_at", "created_at")
    list_filter = ("status",)
    search_fields = ("service_booking__service_name", "service_provider__business_name")
    readonly_fields = ("created_at",)
