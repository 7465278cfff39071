"""Reservation aggregate and its line items."""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ObjectDoesNotExist  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.db.models import Sum  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.base import EventRecorder
from shared.domain.exceptions import StateError
from shared.domain.value_objects import quantize


class Reservation(EventRecorder, models.Model):
    """Travel reservation owned by a client and handled by an employee."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")
        COMPLETED = "completed", _("Completed")

    TRANSITIONS = {
        Status.PENDING: (Status.CONFIRMED, Status.CANCELLED),
        Status.CONFIRMED: (Status.COMPLETED, Status.CANCELLED),
        Status.CANCELLED: (),
        Status.COMPLETED: (),
    }
    MUTABLE_STATUSES = (Status.PENDING, Status.CONFIRMED)

    client = models.ForeignKey(
        "customers.Client",
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    employee = models.ForeignKey(
        "customers.Employee",
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    travel_start = models.DateField()
    travel_end = models.DateField()
    passengers = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1)])
    description = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="COP")
    cancellation_reason = models.CharField(max_length=255, blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Reservation")
        verbose_name_plural = _("Reservations")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(travel_end__gt=models.F("travel_start")),
                name="reservation_valid_travel_dates",
            ),
            models.CheckConstraint(
                condition=models.Q(total__gte=0),
                name="reservation_total_non_negative",
            ),
        ]
        indexes = [
            models.Index(fields=["status"], name="reservation_status_idx"),
            models.Index(fields=["travel_start", "travel_end"], name="reservation_travel_idx"),
        ]

    def __str__(self) -> str:
        return f"Reservation #{self.pk} ({self.status})"

    @property
    def accepts_line_items(self) -> bool:
        return self.status in self.MUTABLE_STATUSES

    @property
    def open_invoice(self):
        """The reservation's invoice unless it was cancelled, else None."""
        try:
            invoice = self.invoice
        except ObjectDoesNotExist:
            return None
        return None if invoice.status == invoice.Status.CANCELLED else invoice

    def ensure_mutable(self) -> None:
        if not self.accepts_line_items:
            raise StateError(
                f"Reservation {self.pk} is {self.status}; line items can no longer change",
                {"reservation": self.pk, "status": self.status},
            )
        invoice = self.open_invoice
        if invoice is not None:
            raise StateError(
                f"Reservation {self.pk} is billed on invoice {invoice.number}; line items can no longer change",
                {"reservation": self.pk, "invoice": invoice.number},
            )

    def can_transition_to(self, target: str) -> bool:
        return target in self.TRANSITIONS.get(self.status, ())

    def transition_to(self, target: str, *, reason: str = "") -> None:
        """Move to ``target`` if the transition table allows it."""

        if not self.can_transition_to(target):
            raise StateError(
                f"Cannot move reservation {self.pk} from {self.status} to {target}",
                {"reservation": self.pk, "status": self.status, "target": str(target)},
            )
        now = timezone.now()
        self.status = target
        if target == self.Status.CONFIRMED:
            self.confirmed_at = now
        elif target == self.Status.COMPLETED:
            self.completed_at = now
        elif target == self.Status.CANCELLED:
            self.cancelled_at = now
            self.cancellation_reason = reason

    def recompute_totals(self) -> None:
        """Set total to the sum of line item subtotals and refresh the balance."""

        aggregated = self.line_items.aggregate(total=Sum("subtotal"))["total"]
        self.total = quantize(aggregated or 0)
        self.balance = quantize(self.total - self.paid)


class LineItem(models.Model):
    """Priced component of a reservation; concrete data lives in the child tables."""

    class Kind(models.TextChoices):
        HOTEL_STAY = "hotel_stay", _("Hotel stay")
        FLIGHT_SEGMENT = "flight_segment", _("Flight segment")
        PACKAGE_ENROLLMENT = "package_enrollment", _("Package enrollment")
        SERVICE = "service", _("Additional service")

    reservation = models.ForeignKey(
        Reservation,
        on_delete=models.CASCADE,
        related_name="line_items",
    )
    kind = models.CharField(max_length=30, choices=Kind.choices, editable=False)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text=_("Catalog price captured when the item was attached."),
    )
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    holds_capacity = models.BooleanField(
        default=False,
        editable=False,
        help_text=_("Whether catalog capacity is currently reserved for this item."),
    )
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Line item")
        verbose_name_plural = _("Line items")
        ordering = ["created_at", "pk"]
        constraints = [
            models.CheckConstraint(condition=models.Q(quantity__gte=1), name="line_item_quantity_positive"),
            models.CheckConstraint(condition=models.Q(subtotal__gte=0), name="line_item_subtotal_non_negative"),
        ]
        indexes = [
            models.Index(fields=["reservation", "kind"], name="line_item_reservation_kind_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.get_kind_display()} x{self.quantity} on reservation {self.reservation_id}"

    @property
    def detail(self) -> "LineItem":
        """Return the concrete child row for this item."""

        if type(self) is not LineItem:
            return self
        return getattr(self, LINE_ITEM_ACCESSORS[self.kind])


class HotelStay(LineItem):
    hotel = models.ForeignKey("catalog.Hotel", on_delete=models.PROTECT, related_name="stays")
    check_in = models.DateField()
    check_out = models.DateField()
    room_type = models.CharField(max_length=50, blank=True)
    guests = models.PositiveSmallIntegerField(default=1)

    class Meta:
        verbose_name = _("Hotel stay")
        verbose_name_plural = _("Hotel stays")
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gt=models.F("check_in")),
                name="hotel_stay_valid_dates",
            ),
        ]

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days


class FlightSegment(LineItem):
    flight = models.ForeignKey("catalog.Flight", on_delete=models.PROTECT, related_name="segments")
    fare_class = models.CharField(max_length=20, default="economy")
    travel_date = models.DateField()
    seat_assignments = models.CharField(max_length=255, blank=True)
    extra_baggage_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        verbose_name = _("Flight segment")
        verbose_name_plural = _("Flight segments")


class PackageEnrollment(LineItem):
    package = models.ForeignKey("catalog.TourPackage", on_delete=models.PROTECT, related_name="enrollments")
    start_date = models.DateField()
    end_date = models.DateField()
    customizations = models.TextField(blank=True)

    class Meta:
        verbose_name = _("Package enrollment")
        verbose_name_plural = _("Package enrollments")


class ServiceBooking(LineItem):
    service = models.ForeignKey("catalog.AdditionalService", on_delete=models.PROTECT, related_name="bookings")
    service_date = models.DateField(null=True, blank=True)
    service_time = models.TimeField(null=True, blank=True)

    class Meta:
        verbose_name = _("Service booking")
        verbose_name_plural = _("Service bookings")


LINE_ITEM_ACCESSORS = {
    LineItem.Kind.HOTEL_STAY: "hotelstay",
    LineItem.Kind.FLIGHT_SEGMENT: "flightsegment",
    LineItem.Kind.PACKAGE_ENROLLMENT: "packageenrollment",
    LineItem.Kind.SERVICE: "servicebooking",
}
