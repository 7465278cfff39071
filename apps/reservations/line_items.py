"""Line-item subsystems.

One subsystem per line item kind. Each knows how to check a request,
load and validate its catalog resource against the reservation, name
the capacity counter the item consumes, price it and build the row.
Subsystems never commit; the reservation command handlers own the
transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time, timedelta
from decimal import Decimal
from typing import ClassVar, Dict, Type

from django.utils import timezone  # type: ignore

from apps.catalog.models import AdditionalService, Flight, Hotel, TourPackage
from apps.catalog.provider import CapacityCounter, get_resource
from shared.domain.exceptions import ConflictError, StateError, ValidationError
from shared.domain.value_objects import DateRange, quantize

from .models import (
    FlightSegment,
    HotelStay,
    LineItem,
    PackageEnrollment,
    Reservation,
    ServiceBooking,
)


# ===== Request specs =====

@dataclass
class HotelStaySpec:
    hotel_id: int
    check_in: date
    check_out: date
    rooms: int = 1
    room_type: str = ''
    guests: int = 1
    notes: str = ''

    @property
    def quantity(self) -> int:
        return self.rooms


@dataclass
class FlightSegmentSpec:
    flight_id: int
    passengers: int
    fare_class: str = Flight.FareClass.ECONOMY
    seat_assignments: str = ''
    extra_baggage_cost: Decimal = Decimal('0')
    notes: str = ''

    @property
    def quantity(self) -> int:
        return self.passengers


@dataclass
class PackageEnrollmentSpec:
    package_id: int
    people: int
    start_date: date
    end_date: date | None = None
    customizations: str = ''
    notes: str = ''

    @property
    def quantity(self) -> int:
        return self.people


@dataclass
class ServiceBookingSpec:
    service_id: int
    units: int
    service_date: date | None = None
    service_time: time | None = None
    notes: str = ''

    @property
    def quantity(self) -> int:
        return self.units


# ===== Subsystems =====

def _travel_window(reservation: Reservation) -> DateRange:
    return DateRange(reservation.travel_start, reservation.travel_end)


class LineItemSubsystem:
    """Common flow shared by every line item kind."""

    kind: ClassVar[str]
    spec_type: ClassVar[type]
    resource_model: ClassVar[type]
    item_model: ClassVar[Type[LineItem]]
    resource_id_field: ClassVar[str]

    def check_spec(self, spec) -> None:
        """Shape checks that need no database access."""
        if spec.quantity is None or spec.quantity <= 0:
            raise ValidationError("Quantity must be a positive integer", {"quantity": spec.quantity})

    def load_resource(self, spec):
        resource = get_resource(self.resource_model, getattr(spec, self.resource_id_field))
        if not resource.is_active:
            raise StateError(
                f"{resource} is not active",
                {"resource": self.resource_model.__name__, "id": resource.pk},
            )
        return resource

    def validate(self, reservation: Reservation, resource, spec) -> None:
        """Variant rules checked against the locked reservation."""

    def capacity_counter(self, resource, spec) -> CapacityCounter | None:
        """Counter consumed by a new item, or None when unconstrained."""
        return None

    def counter_for_item(self, item) -> CapacityCounter | None:
        """Counter held by an existing item that holds capacity."""
        return None

    def unit_price(self, resource, spec) -> Decimal:
        raise NotImplementedError

    def subtotal(self, resource, spec) -> Decimal:
        return quantize(self.unit_price(resource, spec) * spec.quantity)

    def item_fields(self, resource, spec) -> dict:
        raise NotImplementedError

    def build(self, reservation: Reservation, resource, spec) -> LineItem:
        """Return an unsaved line item with the current catalog price captured."""
        return self.item_model(
            reservation=reservation,
            kind=self.kind,
            quantity=spec.quantity,
            unit_price=quantize(self.unit_price(resource, spec)),
            subtotal=self.subtotal(resource, spec),
            notes=spec.notes,
            **self.item_fields(resource, spec),
        )


class HotelStaySubsystem(LineItemSubsystem):
    kind = LineItem.Kind.HOTEL_STAY
    spec_type = HotelStaySpec
    resource_model = Hotel
    item_model = HotelStay
    resource_id_field = 'hotel_id'

    def check_spec(self, spec: HotelStaySpec) -> None:
        super().check_spec(spec)
        if spec.check_out <= spec.check_in:
            raise ValidationError(
                "Check-out date must be after check-in date",
                {"check_in": str(spec.check_in), "check_out": str(spec.check_out)},
            )
        if spec.guests <= 0:
            raise ValidationError("At least one guest is required", {"guests": spec.guests})

    def validate(self, reservation, resource, spec: HotelStaySpec) -> None:
        stay = DateRange(spec.check_in, spec.check_out)
        if not _travel_window(reservation).covers(stay):
            raise ValidationError(
                f"Stay {stay} falls outside the travel dates of reservation {reservation.pk}",
                {"travel_start": str(reservation.travel_start), "travel_end": str(reservation.travel_end)},
            )
        if HotelStay.objects.filter(reservation=reservation, hotel=resource).exists():
            raise ConflictError(
                f"Hotel {resource.pk} is already part of reservation {reservation.pk}",
                {"hotel": resource.pk},
            )

    def unit_price(self, resource: Hotel, spec) -> Decimal:
        return resource.price_per_night

    def subtotal(self, resource: Hotel, spec: HotelStaySpec) -> Decimal:
        nights = len(DateRange(spec.check_in, spec.check_out))
        return quantize(resource.price_per_night * nights * spec.rooms)

    def item_fields(self, resource, spec: HotelStaySpec) -> dict:
        return {
            'hotel': resource,
            'check_in': spec.check_in,
            'check_out': spec.check_out,
            'room_type': spec.room_type,
            'guests': spec.guests,
        }


class FlightSegmentSubsystem(LineItemSubsystem):
    kind = LineItem.Kind.FLIGHT_SEGMENT
    spec_type = FlightSegmentSpec
    resource_model = Flight
    item_model = FlightSegment
    resource_id_field = 'flight_id'

    def check_spec(self, spec: FlightSegmentSpec) -> None:
        super().check_spec(spec)
        if spec.fare_class not in Flight.FareClass.values:
            raise ValidationError(f"Unknown fare class {spec.fare_class!r}", {"fare_class": spec.fare_class})
        if spec.extra_baggage_cost is None or spec.extra_baggage_cost < 0:
            raise ValidationError("Extra baggage cost cannot be negative")

    def validate(self, reservation, resource: Flight, spec: FlightSegmentSpec) -> None:
        if resource.price_for(spec.fare_class) is None:
            raise ValidationError(
                f"Flight {resource.flight_number} has no {spec.fare_class} fare",
                {"fare_class": spec.fare_class},
            )
        departure = timezone.localdate(resource.departure_at)
        if not _travel_window(reservation).contains(departure):
            raise ValidationError(
                f"Flight departs on {departure}, outside the travel dates of reservation {reservation.pk}",
                {"departure": str(departure)},
            )

    def capacity_counter(self, resource: Flight, spec: FlightSegmentSpec) -> CapacityCounter:
        return CapacityCounter(Flight, resource.pk, Flight.seats_field_for(spec.fare_class))

    def counter_for_item(self, item: FlightSegment) -> CapacityCounter:
        return CapacityCounter(Flight, item.flight_id, Flight.seats_field_for(item.fare_class))

    def unit_price(self, resource: Flight, spec: FlightSegmentSpec) -> Decimal:
        return resource.price_for(spec.fare_class)

    def subtotal(self, resource: Flight, spec: FlightSegmentSpec) -> Decimal:
        fares = self.unit_price(resource, spec) * spec.passengers
        return quantize(fares + Decimal(spec.extra_baggage_cost))

    def item_fields(self, resource: Flight, spec: FlightSegmentSpec) -> dict:
        return {
            'flight': resource,
            'fare_class': spec.fare_class,
            'travel_date': timezone.localdate(resource.departure_at),
            'seat_assignments': spec.seat_assignments,
            'extra_baggage_cost': quantize(spec.extra_baggage_cost),
        }


class PackageEnrollmentSubsystem(LineItemSubsystem):
    kind = LineItem.Kind.PACKAGE_ENROLLMENT
    spec_type = PackageEnrollmentSpec
    resource_model = TourPackage
    item_model = PackageEnrollment
    resource_id_field = 'package_id'

    def check_spec(self, spec: PackageEnrollmentSpec) -> None:
        super().check_spec(spec)
        if spec.end_date is not None and spec.end_date <= spec.start_date:
            raise ValidationError(
                "Package end date must be after its start date",
                {"start_date": str(spec.start_date), "end_date": str(spec.end_date)},
            )

    @staticmethod
    def period(resource: TourPackage, spec: PackageEnrollmentSpec) -> DateRange:
        end_date = spec.end_date or spec.start_date + timedelta(days=resource.duration_days)
        return DateRange(spec.start_date, end_date)

    def validate(self, reservation, resource: TourPackage, spec: PackageEnrollmentSpec) -> None:
        if resource.valid_until and resource.valid_until < timezone.localdate():
            raise StateError(f"Package {resource.name} expired on {resource.valid_until}", {"package": resource.pk})
        if resource.valid_from and spec.start_date < resource.valid_from:
            raise ValidationError(
                f"Package {resource.name} is sold from {resource.valid_from}",
                {"valid_from": str(resource.valid_from)},
            )
        if resource.valid_until and spec.start_date > resource.valid_until:
            raise ValidationError(
                f"Package {resource.name} is sold until {resource.valid_until}",
                {"valid_until": str(resource.valid_until)},
            )
        if resource.min_people and spec.people < resource.min_people:
            raise ValidationError(
                f"Package {resource.name} requires at least {resource.min_people} people",
                {"min_people": resource.min_people},
            )
        if resource.max_people and spec.people > resource.max_people:
            raise ValidationError(
                f"Package {resource.name} allows at most {resource.max_people} people",
                {"max_people": resource.max_people},
            )
        period = self.period(resource, spec)
        if not _travel_window(reservation).covers(period):
            raise ValidationError(
                f"Package dates {period} fall outside the travel dates of reservation {reservation.pk}",
                {"travel_start": str(reservation.travel_start), "travel_end": str(reservation.travel_end)},
            )
        if PackageEnrollment.objects.filter(reservation=reservation, package=resource).exists():
            raise ConflictError(
                f"Package {resource.pk} is already part of reservation {reservation.pk}",
                {"package": resource.pk},
            )

    def capacity_counter(self, resource: TourPackage, spec) -> CapacityCounter:
        return CapacityCounter(TourPackage, resource.pk, 'slots_available')

    def counter_for_item(self, item: PackageEnrollment) -> CapacityCounter:
        return CapacityCounter(TourPackage, item.package_id, 'slots_available')

    def unit_price(self, resource: TourPackage, spec) -> Decimal:
        return resource.price_per_person

    def item_fields(self, resource: TourPackage, spec: PackageEnrollmentSpec) -> dict:
        period = self.period(resource, spec)
        return {
            'package': resource,
            'start_date': period.start_date,
            'end_date': period.end_date,
            'customizations': spec.customizations,
        }


class ServiceBookingSubsystem(LineItemSubsystem):
    kind = LineItem.Kind.SERVICE
    spec_type = ServiceBookingSpec
    resource_model = AdditionalService
    item_model = ServiceBooking
    resource_id_field = 'service_id'

    def load_resource(self, spec):
        service = super().load_resource(spec)
        if not service.is_available:
            raise StateError(f"Service {service.name} is not available", {"service": service.pk})
        return service

    def validate(self, reservation, resource: AdditionalService, spec: ServiceBookingSpec) -> None:
        if resource.max_units_per_booking and spec.units > resource.max_units_per_booking:
            raise ValidationError(
                f"Service {resource.name} allows at most {resource.max_units_per_booking} units per booking",
                {"max_units_per_booking": resource.max_units_per_booking},
            )
        if spec.service_date and not _travel_window(reservation).contains(spec.service_date):
            raise ValidationError(
                f"Service date {spec.service_date} is outside the travel dates of reservation {reservation.pk}",
                {"service_date": str(spec.service_date)},
            )

    def capacity_counter(self, resource: AdditionalService, spec) -> CapacityCounter | None:
        if not resource.is_capacity_tracked:
            return None
        return CapacityCounter(AdditionalService, resource.pk, 'units_available')

    def counter_for_item(self, item: ServiceBooking) -> CapacityCounter:
        return CapacityCounter(AdditionalService, item.service_id, 'units_available')

    def unit_price(self, resource: AdditionalService, spec) -> Decimal:
        return resource.unit_price

    def item_fields(self, resource: AdditionalService, spec: ServiceBookingSpec) -> dict:
        return {
            'service': resource,
            'service_date': spec.service_date,
            'service_time': spec.service_time,
        }


SUBSYSTEMS: Dict[str, LineItemSubsystem] = {
    subsystem.kind: subsystem
    for subsystem in (
        HotelStaySubsystem(),
        FlightSegmentSubsystem(),
        PackageEnrollmentSubsystem(),
        ServiceBookingSubsystem(),
    )
}


def subsystem_for_spec(spec) -> LineItemSubsystem:
    for subsystem in SUBSYSTEMS.values():
        if isinstance(spec, subsystem.spec_type):
            return subsystem
    raise ValidationError(f"Unsupported line item request {type(spec).__name__}")


def subsystem_for_item(item: LineItem) -> LineItemSubsystem:
    return SUBSYSTEMS[item.kind]
