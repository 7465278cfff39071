"""Attach/detach behaviour of the four line item kinds."""

from datetime import timedelta
from decimal import Decimal

import pytest

from apps.catalog.models import Flight
from apps.reservations.application.command_handlers import (
    AttachLineItemCommand,
    AttachLineItemHandler,
    DetachLineItemCommand,
    DetachLineItemHandler,
    get_reservation_totals,
    list_line_items,
)
from apps.reservations.line_items import (
    FlightSegmentSpec,
    HotelStaySpec,
    PackageEnrollmentSpec,
    ServiceBookingSpec,
)
from apps.reservations.models import FlightSegment, HotelStay, LineItem, PackageEnrollment, Reservation
from shared.domain.exceptions import ConflictError, NotFoundError, StateError, ValidationError


def attach(reservation, spec):
    return AttachLineItemHandler().handle(AttachLineItemCommand(reservation_id=reservation.pk, spec=spec))


def detach(item):
    return DetachLineItemHandler().handle(DetachLineItemCommand(line_item_id=item.pk))


@pytest.mark.django_db
def test_flight_then_hotel_then_detach_flight(reservation, flight, hotel, travel_start):
    segment = attach(reservation, FlightSegmentSpec(flight_id=flight.pk, passengers=2))

    assert segment.subtotal == Decimal("200.00")
    assert segment.unit_price == Decimal("100.00")
    assert get_reservation_totals(reservation.pk).total == Decimal("200.00")
    flight.refresh_from_db()
    assert flight.economy_seats_available == 8

    stay = attach(
        reservation,
        HotelStaySpec(hotel_id=hotel.pk, check_in=travel_start, check_out=travel_start + timedelta(days=3)),
    )

    assert stay.subtotal == Decimal("150.00")
    assert get_reservation_totals(reservation.pk).total == Decimal("350.00")

    assert detach(segment) is True

    totals = get_reservation_totals(reservation.pk)
    assert totals.total == Decimal("150.00")
    assert totals.balance == Decimal("150.00")
    flight.refresh_from_db()
    assert flight.economy_seats_available == 10
    assert not LineItem.objects.filter(pk=segment.pk).exists()


@pytest.mark.django_db
def test_insufficient_seats_leave_everything_untouched(reservation, flight):
    with pytest.raises(ConflictError):
        attach(reservation, FlightSegmentSpec(flight_id=flight.pk, passengers=11))

    flight.refresh_from_db()
    reservation.refresh_from_db()
    assert flight.economy_seats_available == 10
    assert reservation.total == Decimal("0.00")
    assert not LineItem.objects.exists()


@pytest.mark.django_db
def test_business_class_uses_its_own_pool_and_baggage_is_added(reservation, flight):
    segment = attach(
        reservation,
        FlightSegmentSpec(
            flight_id=flight.pk,
            passengers=2,
            fare_class=Flight.FareClass.BUSINESS,
            extra_baggage_cost=Decimal("30"),
        ),
    )

    assert segment.subtotal == Decimal("530.00")
    flight.refresh_from_db()
    assert flight.business_seats_available == 0
    assert flight.economy_seats_available == 10

    with pytest.raises(ConflictError):
        attach(reservation, FlightSegmentSpec(flight_id=flight.pk, passengers=1, fare_class="business"))


@pytest.mark.django_db
def test_flight_outside_travel_window_is_rejected(reservation, flight):
    Flight.objects.filter(pk=flight.pk).update(
        departure_at=flight.departure_at + timedelta(days=30),
        arrival_at=flight.arrival_at + timedelta(days=30),
    )

    with pytest.raises(ValidationError):
        attach(reservation, FlightSegmentSpec(flight_id=flight.pk, passengers=1))


@pytest.mark.django_db
def test_hotel_rules(reservation, hotel, travel_start, travel_end):
    with pytest.raises(ValidationError):
        attach(reservation, HotelStaySpec(hotel_id=hotel.pk, check_in=travel_start, check_out=travel_start))
    with pytest.raises(ValidationError):
        attach(
            reservation,
            HotelStaySpec(hotel_id=hotel.pk, check_in=travel_start, check_out=travel_end + timedelta(days=1)),
        )
    with pytest.raises(NotFoundError):
        attach(reservation, HotelStaySpec(hotel_id=999, check_in=travel_start, check_out=travel_end))

    stay = attach(reservation, HotelStaySpec(hotel_id=hotel.pk, check_in=travel_start, check_out=travel_end, rooms=2))
    assert stay.subtotal == Decimal("700.00")
    assert stay.holds_capacity is False

    with pytest.raises(ConflictError):
        attach(reservation, HotelStaySpec(hotel_id=hotel.pk, check_in=travel_start, check_out=travel_end))


@pytest.mark.django_db
def test_inactive_resource_is_a_state_error(reservation, hotel, travel_start, travel_end):
    hotel.is_active = False
    hotel.save()

    with pytest.raises(StateError):
        attach(reservation, HotelStaySpec(hotel_id=hotel.pk, check_in=travel_start, check_out=travel_end))


@pytest.mark.django_db
def test_package_enrollment_defaults_end_date_and_takes_slots(reservation, tour_package, travel_start):
    enrollment = attach(reservation, PackageEnrollmentSpec(package_id=tour_package.pk, people=3, start_date=travel_start))

    assert isinstance(enrollment, PackageEnrollment)
    assert enrollment.end_date == travel_start + timedelta(days=3)
    assert enrollment.subtotal == Decimal("240.00")
    tour_package.refresh_from_db()
    assert tour_package.slots_available == 2


@pytest.mark.django_db
def test_package_people_limits_and_expiry(reservation, tour_package, travel_start):
    with pytest.raises(ValidationError):
        attach(reservation, PackageEnrollmentSpec(package_id=tour_package.pk, people=5, start_date=travel_start))

    tour_package.valid_until = travel_start - timedelta(days=20)
    tour_package.save()
    with pytest.raises(StateError):
        attach(reservation, PackageEnrollmentSpec(package_id=tour_package.pk, people=2, start_date=travel_start))

    tour_package.refresh_from_db()
    assert tour_package.slots_available == 5


@pytest.mark.django_db
def test_service_booking_caps_and_capacity(reservation, additional_service, travel_start, travel_end):
    with pytest.raises(ValidationError):
        attach(reservation, ServiceBookingSpec(service_id=additional_service.pk, units=3))
    with pytest.raises(ValidationError):
        attach(
            reservation,
            ServiceBookingSpec(service_id=additional_service.pk, units=1, service_date=travel_end + timedelta(days=2)),
        )

    booking = attach(reservation, ServiceBookingSpec(service_id=additional_service.pk, units=2, service_date=travel_start))
    assert booking.subtotal == Decimal("30.00")
    additional_service.refresh_from_db()
    assert additional_service.units_available == 1

    with pytest.raises(ConflictError):
        attach(reservation, ServiceBookingSpec(service_id=additional_service.pk, units=2))

    detach(booking)
    additional_service.refresh_from_db()
    assert additional_service.units_available == 3


@pytest.mark.django_db
def test_unavailable_service_is_a_state_error(reservation, additional_service):
    additional_service.is_available = False
    additional_service.save()

    with pytest.raises(StateError):
        attach(reservation, ServiceBookingSpec(service_id=additional_service.pk, units=1))


@pytest.mark.django_db
def test_non_positive_quantity_is_rejected_before_any_lookup(reservation):
    with pytest.raises(ValidationError):
        attach(reservation, FlightSegmentSpec(flight_id=999, passengers=0))


@pytest.mark.django_db
def test_attach_to_missing_reservation(flight):
    with pytest.raises(NotFoundError):
        AttachLineItemHandler().handle(
            AttachLineItemCommand(reservation_id=999, spec=FlightSegmentSpec(flight_id=flight.pk, passengers=1))
        )


@pytest.mark.django_db
@pytest.mark.parametrize("status", [Reservation.Status.CANCELLED, Reservation.Status.COMPLETED])
def test_closed_reservations_reject_line_item_changes(reservation, flight, status):
    segment = attach(reservation, FlightSegmentSpec(flight_id=flight.pk, passengers=1))
    Reservation.objects.filter(pk=reservation.pk).update(status=status)

    with pytest.raises(StateError):
        attach(reservation, FlightSegmentSpec(flight_id=flight.pk, passengers=1))
    with pytest.raises(StateError):
        detach(segment)


@pytest.mark.django_db
def test_detach_missing_item():
    with pytest.raises(NotFoundError):
        DetachLineItemHandler().handle(DetachLineItemCommand(line_item_id=424242))


@pytest.mark.django_db
def test_total_matches_sum_of_subtotals_across_mixed_operations(
    reservation, flight, hotel, tour_package, additional_service, travel_start, travel_end
):
    items = [
        attach(reservation, FlightSegmentSpec(flight_id=flight.pk, passengers=1)),
        attach(reservation, HotelStaySpec(hotel_id=hotel.pk, check_in=travel_start, check_out=travel_end)),
        attach(reservation, PackageEnrollmentSpec(package_id=tour_package.pk, people=2, start_date=travel_start)),
        attach(reservation, ServiceBookingSpec(service_id=additional_service.pk, units=1)),
    ]
    detach(items[2])
    items.append(attach(reservation, FlightSegmentSpec(flight_id=flight.pk, passengers=3)))

    remaining = [item for index, item in enumerate(items) if index != 2]
    expected = sum((item.subtotal for item in remaining), Decimal("0.00"))
    totals = get_reservation_totals(reservation.pk)
    assert totals.total == expected
    assert totals.balance == totals.total - totals.paid
    assert get_reservation_totals(reservation.pk) == totals

    tour_package.refresh_from_db()
    flight.refresh_from_db()
    assert tour_package.slots_available == 5
    assert flight.economy_seats_available == 6


@pytest.mark.django_db
def test_list_line_items_returns_concrete_items(reservation, flight, hotel, travel_start, travel_end):
    attach(reservation, FlightSegmentSpec(flight_id=flight.pk, passengers=1))
    attach(reservation, HotelStaySpec(hotel_id=hotel.pk, check_in=travel_start, check_out=travel_end))

    items = list_line_items(reservation.pk)

    assert [type(item) for item in items] == [FlightSegment, HotelStay]
    with pytest.raises(NotFoundError):
        list_line_items(999)


@pytest.mark.django_db
def test_price_is_snapshotted_at_attach_time(reservation, hotel, travel_start, travel_end):
    stay = attach(reservation, HotelStaySpec(hotel_id=hotel.pk, check_in=travel_start, check_out=travel_end))
    hotel.price_per_night = Decimal("999.00")
    hotel.save()

    stay.refresh_from_db()
    reservation.refresh_from_db()
    assert stay.unit_price == Decimal("50.00")
    assert reservation.total == Decimal("350.00")
