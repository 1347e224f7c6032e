from django.conf import settings
from django.core.validators import MaxLengthValidator, MinValueValidator
from django.db import models
from django.utils import timezone


def today():
    return timezone.localdate()


class Property(models.Model):
    class Status(models.TextChoices):
        AVAILABLE = "available", "Available"
        RENTED = "rented", "Rented"
        UNAVAILABLE = "unavailable", "Unavailable"

    class PropertyType(models.TextChoices):
        APARTMENT = "apartment", "Apartment"
        HOUSE = "house", "House"
        VILLA = "villa", "Villa"
        STUDIO = "studio", "Studio"
        CONDO = "condo", "Condo"
        TOWNHOUSE = "townhouse", "Townhouse"

    class Furnishing(models.TextChoices):
        FURNISHED = "furnished", "Furnished"
        SEMI_FURNISHED = "semi-furnished", "Semi-furnished"
        UNFURNISHED = "unfurnished", "Unfurnished"

    title = models.CharField(max_length=100)
    description = models.TextField(validators=[MaxLengthValidator(1000)])
    price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    deposit = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    location = models.CharField(max_length=255)
    city = models.CharField(max_length=100)
    property_type = models.CharField(max_length=20, choices=PropertyType.choices)
    bedrooms = models.PositiveIntegerField()
    bathrooms = models.PositiveIntegerField()
    area = models.PositiveIntegerField(help_text="Area in sq ft")
    furnishing = models.CharField(max_length=20, choices=Furnishing.choices)
    amenities = models.JSONField(default=list)
    # Ordered list of public image URLs; files live in the image store
    images = models.JSONField(default=list, blank=True)
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="properties")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.AVAILABLE)
    available_from = models.DateField(default=today)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "properties"
        indexes = [
            models.Index(fields=["city", "status"], name="property_city_status_idx"),
            models.Index(fields=["owner", "-created_at"], name="property_owner_created_idx"),
        ]

    def __str__(self):
        return f"{self.title} ({self.city}) - {self.price}/month"

    @property
    def is_available(self):
        return self.status == self.Status.AVAILABLE
