from django.contrib import admin
from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "property", "tenant", "owner", "status", "start_date", "end_date", "total_price", "is_demo")
    list_select_related = ("property", "tenant", "owner")
    search_fields = ("property__title", "property__location", "tenant__email", "owner__email")
    list_filter = (
        "status",
        ("start_date", admin.DateFieldListFilter),
        ("end_date", admin.DateFieldListFilter),
        ("property", admin.RelatedOnlyFieldListFilter),
        ("tenant", admin.RelatedOnlyFieldListFilter),
    )
    readonly_fields = ("created_at", "updated_at")
    ordering = ("-start_date",)

    @admin.display(description="Demo", boolean=True)
    def is_demo(self, obj):
        return (obj.notes or {}).get("demo_mode") == "true"
