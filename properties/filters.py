import django_filters
from .models import Property

class PropertyFilter(django_filters.FilterSet):
    price_min = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    price_max = django_filters.NumberFilter(field_name="price", lookup_expr="lte")
    bedrooms_min = django_filters.NumberFilter(field_name="bedrooms", lookup_expr="gte")
    bedrooms_max = django_filters.NumberFilter(field_name="bedrooms", lookup_expr="lte")
    city = django_filters.CharFilter(field_name="city", lookup_expr="iexact")
    location = django_filters.CharFilter(field_name="location", lookup_expr="icontains")
    property_type = django_filters.ChoiceFilter(field_name="property_type", choices=Property.PropertyType.choices)
    furnishing = django_filters.ChoiceFilter(field_name="furnishing", choices=Property.Furnishing.choices)
    status = django_filters.ChoiceFilter(field_name="status", choices=Property.Status.choices)

    class Meta:
        model = Property
        fields = [
            "owner",
            "price_min", "price_max",
            "bedrooms_min", "bedrooms_max",
            "city", "location", "property_type", "furnishing", "status",
        ]
