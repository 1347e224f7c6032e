from django.contrib import admin
from .models import Property


class PropertyPriceRangeFilter(admin.SimpleListFilter):
    title = "Price"
    parameter_name = "price_range"

    def lookups(self, request, model_admin):
        return (
            ("<10000", "< 10000"),
            ("10000-25000", "10000-25000"),
            ("25000-50000", "25000-50000"),
            (">50000", "> 50000"),
        )

    def queryset(self, request, queryset):
        val = self.value()
        if val == "<10000":
            return queryset.filter(price__lt=10000)
        if val == "10000-25000":
            return queryset.filter(price__gte=10000, price__lte=25000)
        if val == "25000-50000":
            return queryset.filter(price__gte=25000, price__lte=50000)
        if val == ">50000":
            return queryset.filter(price__gt=50000)
        return queryset


class BedroomsFilter(admin.SimpleListFilter):
    title = "Bedrooms"
    parameter_name = "bedrooms_bucket"

    def lookups(self, request, model_admin):
        return (
            ("1", "1"),
            ("2", "2"),
            ("3", "3"),
            ("4+", "4+"),
        )

    def queryset(self, request, queryset):
        val = self.value()
        if val in {"1", "2", "3"}:
            return queryset.filter(bedrooms=int(val))
        if val == "4+":
            return queryset.filter(bedrooms__gte=4)
        return queryset


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    list_display = (
        "id", "title", "owner", "city", "price",
        "bedrooms", "property_type", "furnishing", "status", "created_at",
    )
    list_select_related = ("owner",)
    search_fields = ("title", "description", "location", "city", "owner__email")
    list_filter = (
        PropertyPriceRangeFilter,
        BedroomsFilter,
        "property_type",
        "furnishing",
        "status",
        ("created_at", admin.DateFieldListFilter),
        "city",
    )
    ordering = ("-created_at",)
    date_hierarchy = "created_at"
