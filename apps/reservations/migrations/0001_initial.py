from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        ("customers", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Reservation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("cancelled", "Cancelled"),
                            ("completed", "Completed"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("travel_start", models.DateField()),
                ("travel_end", models.DateField()),
                (
                    "passengers",
                    models.PositiveSmallIntegerField(
                        default=1, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                ("description", models.CharField(blank=True, max_length=255)),
                ("notes", models.TextField(blank=True)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("paid", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("currency", models.CharField(default="COP", max_length=3)),
                ("cancellation_reason", models.CharField(blank=True, max_length=255)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "client",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reservations",
                        to="customers.client",
                    ),
                ),
                (
                    "employee",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reservations",
                        to="customers.employee",
                    ),
                ),
            ],
            options={
                "verbose_name": "Reservation",
                "verbose_name_plural": "Reservations",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="reservation_status_idx"),
                    models.Index(fields=["travel_start", "travel_end"], name="reservation_travel_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("travel_end__gt", models.F("travel_start"))),
                        name="reservation_valid_travel_dates",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("total__gte", 0)),
                        name="reservation_total_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="LineItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("hotel_stay", "Hotel stay"),
                            ("flight_segment", "Flight segment"),
                            ("package_enrollment", "Package enrollment"),
                            ("service", "Additional service"),
                        ],
                        editable=False,
                        max_length=30,
                    ),
                ),
                (
                    "quantity",
                    models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)]),
                ),
                (
                    "unit_price",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Catalog price captured when the item was attached.",
                        max_digits=12,
                    ),
                ),
                ("subtotal", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "holds_capacity",
                    models.BooleanField(
                        default=False,
                        editable=False,
                        help_text="Whether catalog capacity is currently reserved for this item.",
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "reservation",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="line_items",
                        to="reservations.reservation",
                    ),
                ),
            ],
            options={
                "verbose_name": "Line item",
                "verbose_name_plural": "Line items",
                "ordering": ["created_at", "pk"],
                "indexes": [
                    models.Index(fields=["reservation", "kind"], name="line_item_reservation_kind_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gte", 1)),
                        name="line_item_quantity_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("subtotal__gte", 0)),
                        name="line_item_subtotal_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="HotelStay",
            fields=[
                (
                    "lineitem_ptr",
                    models.OneToOneField(
                        auto_created=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        parent_link=True,
                        primary_key=True,
                        serialize=False,
                        to="reservations.lineitem",
                    ),
                ),
                ("check_in", models.DateField()),
                ("check_out", models.DateField()),
                ("room_type", models.CharField(blank=True, max_length=50)),
                ("guests", models.PositiveSmallIntegerField(default=1)),
                (
                    "hotel",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stays",
                        to="catalog.hotel",
                    ),
                ),
            ],
            options={
                "verbose_name": "Hotel stay",
                "verbose_name_plural": "Hotel stays",
                "ordering": ["created_at", "pk"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("check_out__gt", models.F("check_in"))),
                        name="hotel_stay_valid_dates",
                    ),
                ],
            },
            bases=("reservations.lineitem",),
        ),
        migrations.CreateModel(
            name="FlightSegment",
            fields=[
                (
                    "lineitem_ptr",
                    models.OneToOneField(
                        auto_created=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        parent_link=True,
                        primary_key=True,
                        serialize=False,
                        to="reservations.lineitem",
                    ),
                ),
                ("fare_class", models.CharField(default="economy", max_length=20)),
                ("travel_date", models.DateField()),
                ("seat_assignments", models.CharField(blank=True, max_length=255)),
                (
                    "extra_baggage_cost",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12),
                ),
                (
                    "flight",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="segments",
                        to="catalog.flight",
                    ),
                ),
            ],
            options={
                "verbose_name": "Flight segment",
                "verbose_name_plural": "Flight segments",
                "ordering": ["created_at", "pk"],
            },
            bases=("reservations.lineitem",),
        ),
        migrations.CreateModel(
            name="PackageEnrollment",
            fields=[
                (
                    "lineitem_ptr",
                    models.OneToOneField(
                        auto_created=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        parent_link=True,
                        primary_key=True,
                        serialize=False,
                        to="reservations.lineitem",
                    ),
                ),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("customizations", models.TextField(blank=True)),
                (
                    "package",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="enrollments",
                        to="catalog.tourpackage",
                    ),
                ),
            ],
            options={
                "verbose_name": "Package enrollment",
                "verbose_name_plural": "Package enrollments",
                "ordering": ["created_at", "pk"],
            },
            bases=("reservations.lineitem",),
        ),
        migrations.CreateModel(
            name="ServiceBooking",
            fields=[
                (
                    "lineitem_ptr",
                    models.OneToOneField(
                        auto_created=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        parent_link=True,
                        primary_key=True,
                        serialize=False,
                        to="reservations.lineitem",
                    ),
                ),
                ("service_date", models.DateField(blank=True, null=True)),
                ("service_time", models.TimeField(blank=True, null=True)),
                (
                    "service",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="catalog.additionalservice",
                    ),
                ),
            ],
            options={
                "verbose_name": "Service booking",
                "verbose_name_plural": "Service bookings",
                "ordering": ["created_at", "pk"],
            },
            bases=("reservations.lineitem",),
        ),
    ]
