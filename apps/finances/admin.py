from django.contrib import admin

from .models import PlatformSetting


@admin.register(PlatformSetting)
class PlatformSettingAdmin(admin.ModelAdmin):
    list_display = ("key", "value", "type", "category", "is_public", "updated_at")
    list_filter = ("category", "type", "is_public")
    search_fields = ("key", "description")
    readonly_fields = ("updated_by", "created_at", "updated_at")
