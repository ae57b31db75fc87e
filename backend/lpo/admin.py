from django.contrib import admin

from .models import LPODocument, LPOEntry


class LPOEntryInline(admin.TabularInline):
    model = LPOEntry
    extra = 0
    fields = ("do_no", "truck_no", "liters", "rate", "amount", "dest", "direction",
              "is_cancelled", "cancellation_point", "cancellation_reason")
    readonly_fields = ("amount",)


@admin.register(LPODocument)
class LPODocumentAdmin(admin.ModelAdmin):
    list_display = ("lpo_no", "date", "station", "order_of", "currency", "total", "is_deleted", "created_at")
    list_filter = ("station", "currency", "is_deleted")
    search_fields = ("lpo_no", "station", "entries__truck_no", "entries__do_no")
    date_hierarchy = "date"
    readonly_fields = ("total", "created_by", "created_at", "updated_at")
    inlines = [LPOEntryInline]
