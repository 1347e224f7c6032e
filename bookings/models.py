from django.conf import settings
from django.db import models
from django.db.models import F, Q
from properties.models import Property


class Booking(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        CONFIRMED = "confirmed", "Confirmed"
        CANCELLED = "cancelled", "Cancelled"

    ACTIVE_STATUSES = (Status.PENDING, Status.CONFIRMED)

    # pending -> confirmed | cancelled, confirmed -> cancelled; cancelled is terminal
    TRANSITIONS = {
        Status.PENDING: {Status.CONFIRMED, Status.CANCELLED},
        Status.CONFIRMED: {Status.CANCELLED},
        Status.CANCELLED: set(),
    }

    property = models.ForeignKey(Property, on_delete=models.CASCADE, related_name="bookings")
    tenant = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="bookings")
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="property_bookings")
    # [start_date, end_date)
    start_date = models.DateField()
    end_date = models.DateField()
    total_price = models.DecimalField(max_digits=12, decimal_places=2)

    # demo booking price breakdown
    lease_duration = models.PositiveIntegerField(null=True, blank=True)
    monthly_rent = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    total_rent = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    security_deposit = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    platform_fee = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    notes = models.JSONField(default=dict, blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["property", "status", "start_date"], name="booking_prop_status_start_idx"),
            models.Index(fields=["status", "end_date"], name="booking_status_end_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["property", "start_date", "end_date"],
                condition=Q(status__in=["pending", "confirmed"]),
                name="unique_active_booking_range",
            ),
            models.CheckConstraint(
                condition=Q(start_date__lt=F("end_date")),
                name="booking_start_before_end",
            ),
            models.CheckConstraint(
                condition=~Q(tenant=F("owner")),
                name="booking_tenant_not_owner",
            ),
        ]

    def __str__(self):
        return f"Booking #{self.id} {self.property_id} by {self.tenant_id} [{self.status}]"

    def can_transition(self, new_status):
        return new_status in self.TRANSITIONS.get(self.status, set())
