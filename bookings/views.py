import logging
from django.db.models import Q
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, permissions, decorators, response, status
from rest_framework.filters import OrderingFilter, SearchFilter

from homefinder.permissions import IsBookingParticipant, is_admin
from .models import Booking
from .serializers import (
    BookingCreateSerializer,
    BookingSerializer,
    BookingUpdateSerializer,
    DemoBookingSerializer,
)
from .filters import BookingFilter
from . import services


logger = logging.getLogger(__name__)


class BookingViewSet(viewsets.ModelViewSet):
    """
        Booking API.

        Access rules:
        - create (POST /api/bookings/): any authenticated user except the property owner.
        - demo-booking (POST /api/bookings/demo-booking/): same, creates a confirmed booking.
        - list (GET /api/bookings/): bookings where the user is tenant or owner; admin sees all.
        - my-bookings / my-property-bookings: as tenant / as owner.
        - retrieve / update / destroy: tenant, owner or admin.
        - confirm (POST /api/bookings/{id}/confirm/): owner or admin, only pending.
        - cancel (POST /api/bookings/{id}/cancel/): tenant, owner or admin, pending or confirmed.

        Filtering / searching / sorting:
        - Filters: see BookingFilter (status, property_id, tenant_id, owner_id, date ranges).
        - Search (search=): by fields of the associated Property (title, location, city).
        - Ordering (ordering=): start_date, end_date, created_at, status.
        """
    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated, IsBookingParticipant]
    queryset = Booking.objects.select_related("property", "tenant", "owner")
    lookup_value_regex = r"\d+"  # accept only numeric ids

    filter_backends = [DjangoFilterBackend, OrderingFilter, SearchFilter]
    filterset_class = BookingFilter
    search_fields = ["property__title", "property__location", "property__city"]
    ordering_fields = ["start_date", "end_date", "created_at", "status"]
    ordering = ["-created_at"]

    def get_queryset(self):
        """
        list: own bookings as tenant or owner (everything for an admin).
        Object actions use the full queryset; IsBookingParticipant decides access,
        so a stranger gets 403 rather than 404.
        """
        user = self.request.user
        if self.action == "list" and not is_admin(user):
            return self.queryset.filter(Q(tenant=user) | Q(owner=user))
        if self.action == "my_bookings":
            return self.queryset.filter(tenant=user)
        if self.action == "my_property_bookings":
            return self.queryset.filter(owner=user)
        return self.queryset

    def permission_denied(self, request, message=None, code=None):
        if request.user and request.user.is_authenticated:
            logger.warning(
                "Booking %s forbidden path=%s by user_id=%s",
                self.action,
                request.path,
                request.user.id,
            )
        super().permission_denied(request, message=message, code=code)

    def _respond(self, result, http_status=status.HTTP_201_CREATED, **extra):
        data = self.get_serializer(result.booking).data
        data["email_send_error"] = result.email_send_error
        data.update(extra)
        return response.Response(data, status=http_status)

    def create(self, request, *args, **kwargs):
        ser = BookingCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        result = services.create_booking(
            data["property"],
            request.user,
            data["start_date"],
            data["end_date"],
            total_price=data.get("total_price"),
            mailer=request.services.mailer,
            notes=data.get("notes", {}),
        )
        return self._respond(result)

    def update(self, request, *args, **kwargs):
        booking = self.get_object()
        ser = BookingUpdateSerializer(data=request.data, partial=kwargs.get("partial", False))
        ser.is_valid(raise_exception=True)
        booking = services.update_booking(booking, ser.validated_data, user=request.user)
        return response.Response(self.get_serializer(booking).data)

    def perform_destroy(self, instance):
        booking_id = instance.id
        instance.delete()
        logger.info("Booking deleted booking_id=%s by user_id=%s", booking_id, self.request.user.id)

    @decorators.action(detail=False, methods=["post"], url_path="demo-booking")
    def demo_booking(self, request):
        """
        Confirmed booking without payment.
        Body: {"property_id", "move_in_date", "lease_duration", optional price overrides}
        """
        ser = DemoBookingSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        result = services.create_demo_booking(
            data.pop("property_id"),
            request.user,
            data.pop("move_in_date"),
            data.pop("lease_duration"),
            mailer=request.services.mailer,
            **data,
        )
        return self._respond(result, message="Demo booking confirmed successfully (No payment required)")

    @decorators.action(detail=False, methods=["get"], url_path="my-bookings")
    def my_bookings(self, request):
        qs = self.filter_queryset(self.get_queryset())
        return response.Response(self.get_serializer(qs, many=True).data)

    @decorators.action(detail=False, methods=["get"], url_path="my-property-bookings")
    def my_property_bookings(self, request):
        qs = self.filter_queryset(self.get_queryset())
        return response.Response(self.get_serializer(qs, many=True).data)

    @decorators.action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):
        booking = self.get_object()
        booking = services.confirm_booking(booking, request.user)
        return response.Response(self.get_serializer(booking).data)

    @decorators.action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        booking = self.get_object()
        booking = services.cancel_booking(booking, request.user)
        return response.Response(self.get_serializer(booking).data)
