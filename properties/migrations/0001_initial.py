import django.core.validators
import django.db.models.deletion
import properties.models
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Property",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=100)),
                ("description", models.TextField(validators=[django.core.validators.MaxLengthValidator(1000)])),
                ("price", models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(0)])),
                ("deposit", models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(0)])),
                ("location", models.CharField(max_length=255)),
                ("city", models.CharField(max_length=100)),
                ("property_type", models.CharField(choices=[("apartment", "Apartment"), ("house", "House"), ("villa", "Villa"), ("studio", "Studio"), ("condo", "Condo"), ("townhouse", "Townhouse")], max_length=20)),
                ("bedrooms", models.PositiveIntegerField()),
                ("bathrooms", models.PositiveIntegerField()),
                ("area", models.PositiveIntegerField(help_text="Area in sq ft")),
                ("furnishing", models.CharField(choices=[("furnished", "Furnished"), ("semi-furnished", "Semi-furnished"), ("unfurnished", "Unfurnished")], max_length=20)),
                ("amenities", models.JSONField(default=list)),
                ("images", models.JSONField(blank=True, default=list)),
                ("status", models.CharField(choices=[("available", "Available"), ("rented", "Rented"), ("unavailable", "Unavailable")], default="available", max_length=20)),
                ("available_from", models.DateField(default=properties.models.today)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("owner", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="properties", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name_plural": "properties",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["city", "status"], name="property_city_status_idx"),
                    models.Index(fields=["owner", "-created_at"], name="property_owner_created_idx"),
                ],
            },
        ),
    ]
