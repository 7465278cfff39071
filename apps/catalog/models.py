"""Catalog resources sold by the travel agency."""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


def _counter_constraints(prefix: str, available: str, total: str, *, nullable: bool = False):
    """Database guards keeping 0 <= available <= total for one counter pair."""

    bounded = models.Q(**{f"{available}__gte": 0}) & models.Q(**{f"{available}__lte": models.F(total)})
    if nullable:
        bounded = (
            models.Q(**{f"{available}__isnull": True}, **{f"{total}__isnull": True})
            | bounded
        )
    return [
        models.CheckConstraint(condition=bounded, name=f"{prefix}_{available}_within_total"),
    ]


class Hotel(models.Model):
    """Hotel priced per room and night. Rooms are not capacity-tracked."""

    name = models.CharField(max_length=200)
    city = models.CharField(max_length=100)
    address = models.CharField(max_length=255, blank=True)
    stars = models.PositiveSmallIntegerField(null=True, blank=True)
    price_per_night = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Hotel")
        verbose_name_plural = _("Hotels")
        ordering = ["city", "name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.city})"


class Flight(models.Model):
    """Scheduled flight with separate economy and business seat pools."""

    class FareClass(models.TextChoices):
        ECONOMY = "economy", _("Economy")
        BUSINESS = "business", _("Business")

    flight_number = models.CharField(max_length=20)
    airline = models.CharField(max_length=100, blank=True)
    origin = models.CharField(max_length=100)
    destination = models.CharField(max_length=100)
    departure_at = models.DateTimeField()
    arrival_at = models.DateTimeField()
    economy_price = models.DecimalField(max_digits=12, decimal_places=2)
    business_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    economy_seats_total = models.PositiveIntegerField(default=0)
    economy_seats_available = models.PositiveIntegerField(default=0)
    business_seats_total = models.PositiveIntegerField(default=0)
    business_seats_available = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Flight")
        verbose_name_plural = _("Flights")
        ordering = ["departure_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(arrival_at__gt=models.F("departure_at")),
                name="flight_arrival_after_departure",
            ),
            *_counter_constraints("flight", "economy_seats_available", "economy_seats_total"),
            *_counter_constraints("flight", "business_seats_available", "business_seats_total"),
        ]
        indexes = [
            models.Index(fields=["origin", "destination", "departure_at"], name="flight_route_departure_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.flight_number} {self.origin} → {self.destination}"

    def price_for(self, fare_class: str) -> Decimal | None:
        if fare_class == self.FareClass.BUSINESS:
            return self.business_price
        return self.economy_price

    @staticmethod
    def seats_field_for(fare_class: str) -> str:
        return f"{fare_class}_seats_available"


class TourPackage(models.Model):
    """Pre-built tour sold per person with a limited number of slots."""

    name = models.CharField(max_length=200)
    destination = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    duration_days = models.PositiveSmallIntegerField(validators=[MinValueValidator(1)])
    price_per_person = models.DecimalField(max_digits=12, decimal_places=2)
    slots_total = models.PositiveIntegerField(default=0)
    slots_available = models.PositiveIntegerField(default=0)
    min_people = models.PositiveSmallIntegerField(null=True, blank=True)
    max_people = models.PositiveSmallIntegerField(null=True, blank=True)
    valid_from = models.DateField(null=True, blank=True)
    valid_until = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Tour package")
        verbose_name_plural = _("Tour packages")
        ordering = ["name"]
        constraints = [
            *_counter_constraints("package", "slots_available", "slots_total"),
            models.CheckConstraint(
                condition=(
                    models.Q(min_people__isnull=True)
                    | models.Q(max_people__isnull=True)
                    | models.Q(max_people__gte=models.F("min_people"))
                ),
                name="package_min_max_people_valid",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.duration_days}d)"


class AdditionalService(models.Model):
    """Ancillary service (transfer, tour guide, insurance...) sold per unit."""

    class Category(models.TextChoices):
        TRANSFER = "transfer", _("Transfer")
        TOUR = "tour", _("Tour")
        INSURANCE = "insurance", _("Insurance")
        RENTAL = "rental", _("Rental")
        OTHER = "other", _("Other")

    name = models.CharField(max_length=200)
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.OTHER)
    description = models.TextField(blank=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    units_total = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Leave empty for services without a global stock."),
    )
    units_available = models.PositiveIntegerField(null=True, blank=True)
    max_units_per_booking = models.PositiveIntegerField(null=True, blank=True)
    is_available = models.BooleanField(default=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Additional service")
        verbose_name_plural = _("Additional services")
        ordering = ["category", "name"]
        constraints = [
            *_counter_constraints("service", "units_available", "units_total", nullable=True),
        ]

    def __str__(self) -> str:
        return self.name

    @property
    def is_capacity_tracked(self) -> bool:
        return self.units_available is not None
