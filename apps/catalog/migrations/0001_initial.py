from decimal import Decimal

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Hotel",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("city", models.CharField(max_length=100)),
                ("address", models.CharField(blank=True, max_length=255)),
                ("stars", models.PositiveSmallIntegerField(blank=True, null=True)),
                (
                    "price_per_night",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name": "Hotel",
                "verbose_name_plural": "Hotels",
                "ordering": ["city", "name"],
            },
        ),
        migrations.CreateModel(
            name="Flight",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("flight_number", models.CharField(max_length=20)),
                ("airline", models.CharField(blank=True, max_length=100)),
                ("origin", models.CharField(max_length=100)),
                ("destination", models.CharField(max_length=100)),
                ("departure_at", models.DateTimeField()),
                ("arrival_at", models.DateTimeField()),
                ("economy_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("business_price", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("economy_seats_total", models.PositiveIntegerField(default=0)),
                ("economy_seats_available", models.PositiveIntegerField(default=0)),
                ("business_seats_total", models.PositiveIntegerField(default=0)),
                ("business_seats_available", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name": "Flight",
                "verbose_name_plural": "Flights",
                "ordering": ["departure_at"],
                "indexes": [
                    models.Index(
                        fields=["origin", "destination", "departure_at"],
                        name="flight_route_departure_idx",
                    )
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("arrival_at__gt", models.F("departure_at"))),
                        name="flight_arrival_after_departure",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("economy_seats_available__gte", 0),
                            ("economy_seats_available__lte", models.F("economy_seats_total")),
                        ),
                        name="flight_economy_seats_available_within_total",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("business_seats_available__gte", 0),
                            ("business_seats_available__lte", models.F("business_seats_total")),
                        ),
                        name="flight_business_seats_available_within_total",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="TourPackage",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("destination", models.CharField(max_length=100)),
                ("description", models.TextField(blank=True)),
                (
                    "duration_days",
                    models.PositiveSmallIntegerField(validators=[django.core.validators.MinValueValidator(1)]),
                ),
                ("price_per_person", models.DecimalField(decimal_places=2, max_digits=12)),
                ("slots_total", models.PositiveIntegerField(default=0)),
                ("slots_available", models.PositiveIntegerField(default=0)),
                ("min_people", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("max_people", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("valid_from", models.DateField(blank=True, null=True)),
                ("valid_until", models.DateField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name": "Tour package",
                "verbose_name_plural": "Tour packages",
                "ordering": ["name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("slots_available__gte", 0),
                            ("slots_available__lte", models.F("slots_total")),
                        ),
                        name="package_slots_available_within_total",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("min_people__isnull", True),
                            ("max_people__isnull", True),
                            ("max_people__gte", models.F("min_people")),
                            _connector="OR",
                        ),
                        name="package_min_max_people_valid",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AdditionalService",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("transfer", "Transfer"),
                            ("tour", "Tour"),
                            ("insurance", "Insurance"),
                            ("rental", "Rental"),
                            ("other", "Other"),
                        ],
                        default="other",
                        max_length=20,
                    ),
                ),
                ("description", models.TextField(blank=True)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "units_total",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Leave empty for services without a global stock.",
                        null=True,
                    ),
                ),
                ("units_available", models.PositiveIntegerField(blank=True, null=True)),
                ("max_units_per_booking", models.PositiveIntegerField(blank=True, null=True)),
                ("is_available", models.BooleanField(default=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name": "Additional service",
                "verbose_name_plural": "Additional services",
                "ordering": ["category", "name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("units_available__isnull", True), ("units_total__isnull", True)),
                            models.Q(
                                ("units_available__gte", 0),
                                ("units_available__lte", models.F("units_total")),
                            ),
                            _connector="OR",
                        ),
                        name="service_units_available_within_total",
                    ),
                ],
            },
        ),
    ]
