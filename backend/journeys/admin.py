from django.contrib import admin

from .models import DeliveryOrder, FuelRecord


@admin.register(FuelRecord)
class FuelRecordAdmin(admin.ModelAdmin):
    list_display = ("truck_no", "going_do", "return_do", "date", "to", "total_lts", "extra", "balance",
                    "journey_status", "queue_order", "is_locked", "is_cancelled")
    list_filter = ("journey_status", "is_locked", "pending_config_reason", "is_cancelled", "is_deleted")
    search_fields = ("truck_no", "truck_no_normalized", "going_do", "return_do")
    date_hierarchy = "date"
    readonly_fields = ("truck_no_normalized", "activated_at", "completed_at", "created_at", "updated_at")


@admin.register(DeliveryOrder)
class DeliveryOrderAdmin(admin.ModelAdmin):
    list_display = ("do_number", "date", "truck_no", "import_or_export", "destination", "is_cancelled")
    list_filter = ("import_or_export", "is_cancelled")
    search_fields = ("do_number", "truck_no", "truck_no_normalized")
    date_hierarchy = "date"
