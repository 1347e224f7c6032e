import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("properties", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("total_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("lease_duration", models.PositiveIntegerField(blank=True, null=True)),
                ("monthly_rent", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("total_rent", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("security_deposit", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("platform_fee", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("total_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("notes", models.JSONField(blank=True, default=dict)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("confirmed", "Confirmed"), ("cancelled", "Cancelled")], default="pending", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("owner", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="property_bookings", to=settings.AUTH_USER_MODEL)),
                ("property", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="bookings", to="properties.property")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="bookings", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["property", "status", "start_date"], name="booking_prop_status_start_idx"),
                    models.Index(fields=["status", "end_date"], name="booking_status_end_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status__in", ["pending", "confirmed"])),
                        fields=("property", "start_date", "end_date"),
                        name="unique_active_booking_range",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("start_date__lt", models.F("end_date"))),
                        name="booking_start_before_end",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("tenant", models.F("owner")), _negated=True),
                        name="booking_tenant_not_owner",
                    ),
                ],
            },
        ),
    ]
