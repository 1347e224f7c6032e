"""
Booking engine: overlap checks, availability, creation and status changes.

Date ranges are half-open, ``[start_date, end_date)``: a booking ending on the
1st does not overlap one starting on the 1st. Only pending and confirmed
bookings occupy dates.
"""
import calendar
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from homefinder.exceptions import Conflict
from homefinder.permissions import is_admin
from properties.models import Property
from .models import Booking

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = Decimal("30.44")
CENTS = Decimal("0.01")


@dataclass
class BookingResult:
    booking: Booking
    email_send_error: bool = False


def add_months(start: date, months: int) -> date:
    """Same day ``months`` later, clamped to the last day of the target month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def prorated_price(monthly_price, start_date, end_date) -> Decimal:
    days = (end_date - start_date).days
    months = Decimal(days) / DAYS_PER_MONTH
    return (Decimal(monthly_price) * months).quantize(CENTS, rounding=ROUND_HALF_UP)


def _validate_range(start_date, end_date):
    if start_date is None or end_date is None:
        raise ValidationError({"end_date": ["Start and end dates must be specified."]})
    if start_date >= end_date:
        raise ValidationError({"end_date": ["End date must be after start date."]})


def overlapping_bookings(property, start_date, end_date, exclude=None, statuses=Booking.ACTIVE_STATUSES):
    """Bookings on ``property`` whose range intersects ``[start_date, end_date)``."""
    qs = Booking.objects.filter(
        property=property,
        status__in=statuses,
        start_date__lt=end_date,
        end_date__gt=start_date,
    )
    if exclude is not None:
        qs = qs.exclude(pk=getattr(exclude, "pk", exclude))
    return qs


def check_availability(property, start_date, end_date, exclude=None) -> bool:
    """
    True when no active booking on ``property`` overlaps the range.
    Read-only: calling it never changes any booking or property.
    """
    _validate_range(start_date, end_date)
    return not overlapping_bookings(property, start_date, end_date, exclude=exclude).exists()


def prevent_self_booking(property, user):
    if property.owner_id == getattr(user, "id", None):
        logger.warning(
            "Self-booking forbidden property_id=%s user_id=%s",
            property.id,
            getattr(user, "id", None),
        )
        raise PermissionDenied("You cannot book your own property.")


def get_property(property_id, lock=False) -> Property:
    qs = Property.objects.select_related("owner")
    if lock:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=property_id)
    except (Property.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"No property found with id of {property_id}.")


def _booking_email_context(booking):
    prop = booking.property
    return {
        "booking_id": booking.id,
        "property_title": prop.title,
        "property_location": prop.location,
        "status": booking.status,
        "start_date": booking.start_date.isoformat(),
        "end_date": booking.end_date.isoformat(),
        "total_price": booking.total_price,
        "booking_url": f"{settings.CLIENT_URL}/booking/{booking.id}",
    }


def send_booking_emails(booking, mailer, demo=False) -> bool:
    """
    Mail the tenant a confirmation and the owner a notification.
    Returns True when every message went out.
    """
    if mailer is None:
        return True
    suffix = " (Demo)" if demo else ""
    context = _booking_email_context(booking)
    tenant, owner = booking.tenant, booking.owner

    tenant_result = mailer.send(
        "booking_tenant_confirmation",
        tenant.email,
        f"Homefinder Booking Confirmation{suffix}",
        {**context, "user_name": tenant.name, "owner_email": owner.email},
    )
    owner_result = mailer.send(
        "booking_owner_notification",
        owner.email,
        f"Homefinder New Booking Request{suffix}",
        {**context, "user_name": owner.name, "tenant_name": tenant.name, "tenant_email": tenant.email},
    )
    failures = [r.error for r in (tenant_result, owner_result) if not r.success]
    if failures:
        logger.warning("Booking email failed booking_id=%s errors=%s", booking.id, failures)
    return not failures


def create_booking(
    property_id,
    tenant,
    start_date,
    end_date,
    total_price=None,
    mailer=None,
    demo=False,
    **extra,
) -> BookingResult:
    """
    Book ``property_id`` for ``tenant`` over ``[start_date, end_date)``.

    Raises NotFound (no such property), PermissionDenied (tenant owns it),
    Conflict (property not available or dates taken) or ValidationError.
    Regular bookings start as pending, demo bookings as confirmed.
    """
    with transaction.atomic():
        prop = get_property(property_id, lock=True)
        prevent_self_booking(prop, tenant)
        _validate_range(start_date, end_date)

        if prop.status != Property.Status.AVAILABLE:
            raise Conflict("Property is not available for booking.")
        if not check_availability(prop, start_date, end_date):
            raise Conflict("Property is already booked for these dates.")

        if total_price is None:
            total_price = prorated_price(prop.price, start_date, end_date)

        try:
            with transaction.atomic():
                booking = Booking.objects.create(
                    property=prop,
                    tenant=tenant,
                    owner=prop.owner,
                    start_date=start_date,
                    end_date=end_date,
                    total_price=total_price,
                    status=Booking.Status.CONFIRMED if demo else Booking.Status.PENDING,
                    **extra,
                )
        except IntegrityError:
            # a concurrent request won the same range
            raise Conflict("Property is already booked for these dates.")

        if demo and settings.HOMEFINDER_DEMO_BOOKING_MARKS_RENTED:
            prop.status = Property.Status.RENTED
            prop.save(update_fields=["status"])

    logger.info(
        "Booking created id=%s property=%s tenant=%s start=%s end=%s status=%s",
        booking.id,
        booking.property_id,
        booking.tenant_id,
        booking.start_date,
        booking.end_date,
        booking.status,
    )
    emails_ok = send_booking_emails(booking, mailer, demo=demo)
    return BookingResult(booking=booking, email_send_error=not emails_ok)


def create_demo_booking(
    property_id,
    tenant,
    move_in_date,
    lease_duration,
    monthly_rent=None,
    total_rent=None,
    security_deposit=None,
    platform_fee=None,
    total_amount=None,
    mailer=None,
) -> BookingResult:
    """Confirmed booking for ``lease_duration`` months with a price breakdown; no payment."""
    months = int(lease_duration)
    if months <= 0:
        raise ValidationError({"lease_duration": ["Lease duration must be a positive number."]})

    prop = get_property(property_id)
    rent = Decimal(monthly_rent) if monthly_rent is not None else prop.price
    rent_total = Decimal(total_rent) if total_rent is not None else rent * months
    deposit = Decimal(security_deposit) if security_deposit is not None else prop.deposit
    fee = Decimal(platform_fee) if platform_fee is not None else Decimal(settings.HOMEFINDER_PLATFORM_FEE)
    amount = Decimal(total_amount) if total_amount is not None else rent_total + deposit + fee

    return create_booking(
        prop.id,
        tenant,
        move_in_date,
        add_months(move_in_date, months),
        total_price=amount,
        mailer=mailer,
        demo=True,
        lease_duration=months,
        monthly_rent=rent,
        total_rent=rent_total,
        security_deposit=deposit,
        platform_fee=fee,
        total_amount=amount,
        notes={"demo_mode": "true", "message": "Demo booking - No payment processed"},
    )


def properties_with_availability(today=None, queryset=None):
    """
    Every property, each annotated with ``is_booked`` and ``active_bookings``
    (confirmed bookings that have not ended before ``today``).
    """
    today = today or timezone.localdate()
    if queryset is None:
        queryset = Property.objects.all()
    properties = list(queryset.select_related("owner"))

    active = defaultdict(list)
    rows = (
        Booking.objects
        .filter(status=Booking.Status.CONFIRMED, end_date__gte=today)
        .order_by("start_date")
        .values("property_id", "start_date", "end_date")
    )
    for row in rows:
        active[row["property_id"]].append({"start_date": row["start_date"], "end_date": row["end_date"]})

    for prop in properties:
        prop.active_bookings = active.get(prop.id, [])
        prop.is_booked = bool(prop.active_bookings)
    return properties


UPDATABLE_FIELDS = ("start_date", "end_date", "total_price", "notes", "status")


def update_booking(booking, data, user=None) -> Booking:
    """
    Apply ``data`` to ``booking``. Status moves only along Booking.TRANSITIONS;
    date changes and confirmations re-run the overlap check.
    """
    changes = {k: v for k, v in data.items() if k in UPDATABLE_FIELDS}
    new_status = changes.get("status", booking.status)

    if new_status != booking.status:
        if not booking.can_transition(new_status):
            raise ValidationError({"status": [f"Cannot change status from {booking.status} to {new_status}."]})
        if new_status == Booking.Status.CONFIRMED and user is not None:
            if not is_admin(user) and booking.owner_id != user.id:
                logger.warning(
                    "Confirm forbidden booking_id=%s by user_id=%s (not owner)",
                    booking.id,
                    getattr(user, "id", None),
                )
                raise PermissionDenied("Only the property owner can confirm a booking.")
    elif booking.status == Booking.Status.CANCELLED and set(changes) - {"status", "notes"}:
        raise ValidationError({"status": ["A cancelled booking cannot be changed."]})

    start_date = changes.get("start_date", booking.start_date)
    end_date = changes.get("end_date", booking.end_date)
    dates_changed = (start_date, end_date) != (booking.start_date, booking.end_date)

    with transaction.atomic():
        # same lock as create_booking, so a date change and a new booking serialize
        prop = get_property(booking.property_id, lock=True)
        if dates_changed and new_status in Booking.ACTIVE_STATUSES:
            if not check_availability(prop, start_date, end_date, exclude=booking):
                raise Conflict("Property is already booked for these dates.")
        elif dates_changed:
            _validate_range(start_date, end_date)

        if new_status == Booking.Status.CONFIRMED and booking.status != Booking.Status.CONFIRMED:
            taken = overlapping_bookings(
                prop, start_date, end_date,
                exclude=booking, statuses=[Booking.Status.CONFIRMED],
            ).exists()
            if taken:
                raise Conflict("The dates are already taken.")

        for field, value in changes.items():
            setattr(booking, field, value)
        try:
            with transaction.atomic():
                booking.save()
        except IntegrityError:
            raise Conflict("Property is already booked for these dates.")

    if "status" in changes:
        logger.info(
            "Booking %s booking_id=%s by user_id=%s",
            booking.status,
            booking.id,
            getattr(user, "id", None),
        )
    return booking


def confirm_booking(booking, user) -> Booking:
    return update_booking(booking, {"status": Booking.Status.CONFIRMED}, user=user)


def cancel_booking(booking, user) -> Booking:
    return update_booking(booking, {"status": Booking.Status.CANCELLED}, user=user)
