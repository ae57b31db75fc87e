from django.contrib import admin

from .models import StationConfig


@admin.register(StationConfig)
class StationConfigAdmin(admin.ModelAdmin):
    list_display = ("station_name", "default_rate", "default_liters_going", "default_liters_returning",
                    "formula_going", "formula_returning", "is_active", "updated_at")
    list_filter = ("is_active",)
    search_fields = ("station_name",)
    readonly_fields = ("created_at", "updated_at")
