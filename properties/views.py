import logging

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, permissions, decorators, response, status, parsers
from rest_framework.exceptions import NotFound
from rest_framework.views import APIView
from rest_framework.filters import SearchFilter, OrderingFilter

from bookings.services import check_availability, overlapping_bookings, properties_with_availability
from homefinder.exceptions import UpstreamError
from homefinder.permissions import IsOwnerOrAdmin
from .filters import PropertyFilter
from .geocoding import NOT_FOUND
from .models import Property
from .serializers import (
    DateRangeSerializer,
    ForwardGeocodeSerializer,
    PropertyAvailabilitySerializer,
    PropertySerializer,
    ReverseGeocodeSerializer,
)

logger = logging.getLogger(__name__)


def geocode_response(result):
    if result["success"]:
        return response.Response(result)
    if result.get("reason") == NOT_FOUND:
        raise NotFound(result["error"])
    raise UpstreamError(result["error"])


class PropertyViewSet(viewsets.ModelViewSet):
    """
    Property listings.

    Rules:
    - list / retrieve / with-availability / check-availability: public.
    - create: any authenticated user (becomes the owner).
    - update / partial_update / destroy: owner or admin.
    - my-properties: the caller's own listings.

    Filtering: see PropertyFilter; search= over title, description,
    location and city; ordering= price, created_at, bedrooms, area.
    """
    queryset = Property.objects.select_related("owner").all()
    serializer_class = PropertySerializer
    filterset_class = PropertyFilter
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    search_fields = ["title", "description", "location", "city"]
    ordering_fields = ["price", "created_at", "bedrooms", "area"]
    ordering = ["-created_at"]
    parser_classes = [parsers.MultiPartParser, parsers.FormParser, parsers.JSONParser]
    lookup_value_regex = r"\d+"

    def get_permissions(self):
        if self.action == "create" or self.action == "my_properties":
            return [permissions.IsAuthenticated()]
        if self.action in ["update", "partial_update", "destroy"]:
            return [permissions.IsAuthenticated(), IsOwnerOrAdmin()]
        return [permissions.AllowAny()]

    def perform_create(self, serializer):
        prop = serializer.save()  # owner is set in serializer.create
        logger.info(
            "Property created id=%s owner=%s images=%s",
            prop.id,
            prop.owner_id,
            len(prop.images),
        )

    def perform_update(self, serializer):
        prop = serializer.save()
        logger.info("Property updated id=%s by user_id=%s", prop.id, self.request.user.id)

    def perform_destroy(self, instance):
        images = list(instance.images or [])
        prop_id = instance.id
        instance.delete()
        deleted = self.request.services.image_store.delete_many(images)
        logger.info(
            "Property deleted id=%s by user_id=%s images_removed=%s/%s",
            prop_id,
            self.request.user.id,
            deleted,
            len(images),
        )

    def permission_denied(self, request, message=None, code=None):
        if request.user and request.user.is_authenticated:
            logger.warning(
                "Property %s forbidden path=%s by user_id=%s",
                self.action,
                request.path,
                request.user.id,
            )
        super().permission_denied(request, message=message, code=code)

    @decorators.action(detail=False, methods=["get"], url_path="with-availability")
    def with_availability(self, request):
        """All properties with is_booked / active_bookings computed at request time."""
        qs = self.filter_queryset(self.get_queryset())
        items = properties_with_availability(queryset=qs)
        ser = PropertyAvailabilitySerializer(items, many=True, context={"request": request})
        return response.Response(ser.data)

    @decorators.action(detail=False, methods=["get"], url_path="my-properties")
    def my_properties(self, request):
        qs = self.get_queryset().filter(owner=request.user).order_by("-created_at")
        return response.Response(self.get_serializer(qs, many=True).data)

    @decorators.action(detail=True, methods=["post"], url_path="check-availability")
    def check_availability(self, request, pk=None):
        """
        Body: {"start_date": "YYYY-MM-DD", "end_date": "YYYY-MM-DD"}
        """
        prop = self.get_object()
        ser = DateRangeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        start, end = ser.validated_data["start_date"], ser.validated_data["end_date"]

        available = check_availability(prop, start, end)
        conflicts = 0 if available else overlapping_bookings(prop, start, end).count()
        return response.Response({
            "is_available": available,
            "property_id": prop.id,
            "start_date": start,
            "end_date": end,
            "overlapping_bookings": conflicts,
        })

    @decorators.action(detail=False, methods=["post"], url_path="geocode/reverse", url_name="geocode-reverse")
    def geocode_reverse(self, request):
        ser = ReverseGeocodeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = request.services.geocoder.reverse(ser.validated_data["lat"], ser.validated_data["lon"])
        return geocode_response(result)

    @decorators.action(detail=False, methods=["post"], url_path="geocode/forward", url_name="geocode-forward")
    def geocode_forward(self, request):
        ser = ForwardGeocodeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = request.services.geocoder.forward(ser.validated_data["address"])
        return geocode_response(result)


class ReverseGeocodeView(APIView):
    """POST {"lat", "lon"} (or "latitude", "longitude") -> address."""
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        ser = ReverseGeocodeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = request.services.geocoder.reverse(ser.validated_data["lat"], ser.validated_data["lon"])
        return geocode_response(result)


class ForwardGeocodeView(APIView):
    """POST {"address"} -> coordinates and normalized address."""
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        ser = ForwardGeocodeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = request.services.geocoder.forward(ser.validated_data["address"])
        return geocode_response(result)
