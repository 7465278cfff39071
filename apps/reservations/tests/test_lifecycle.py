"""Reservation creation and status transitions."""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.finances import services
from apps.finances.models import Invoice, Payment
from apps.reservations.application.command_handlers import (
    AttachLineItemCommand,
    AttachLineItemHandler,
    CancelReservationCommand,
    CancelReservationHandler,
    CompleteReservationCommand,
    CompleteReservationHandler,
    ConfirmReservationCommand,
    ConfirmReservationHandler,
    CreateReservationCommand,
    CreateReservationHandler,
    DeleteReservationCommand,
    DeleteReservationHandler,
    DetachLineItemCommand,
    DetachLineItemHandler,
)
from apps.reservations.line_items import FlightSegmentSpec, PackageEnrollmentSpec, ServiceBookingSpec
from apps.reservations.models import LineItem, Reservation
from shared.domain.exceptions import NotFoundError, StateError, ValidationError


def create(client_record, employee, start, end, **extra):
    return CreateReservationHandler().handle(
        CreateReservationCommand(
            client_id=client_record.pk,
            employee_id=employee.pk,
            travel_start=start,
            travel_end=end,
            **extra,
        )
    )


@pytest.mark.django_db
def test_create_reservation_starts_pending_with_zero_totals(client_record, employee, travel_start, travel_end):
    reservation = create(client_record, employee, travel_start, travel_end, passengers=3)

    assert reservation.status == Reservation.Status.PENDING
    assert reservation.total == Decimal("0.00")
    assert reservation.balance == Decimal("0.00")
    assert reservation.passengers == 3


@pytest.mark.django_db
def test_create_reservation_validation(client_record, employee, travel_start):
    yesterday = timezone.localdate() - timedelta(days=1)

    with pytest.raises(ValidationError):
        create(client_record, employee, travel_start, travel_start)
    with pytest.raises(ValidationError):
        create(client_record, employee, yesterday, travel_start)
    with pytest.raises(ValidationError):
        create(client_record, employee, travel_start, travel_start + timedelta(days=2), passengers=0)


@pytest.mark.django_db
def test_create_reservation_requires_existing_active_people(client_record, employee, travel_start, travel_end):
    with pytest.raises(NotFoundError):
        CreateReservationHandler().handle(
            CreateReservationCommand(
                client_id=999, employee_id=employee.pk, travel_start=travel_start, travel_end=travel_end
            )
        )

    employee.is_active = False
    employee.save()
    with pytest.raises(StateError):
        create(client_record, employee, travel_start, travel_end)


@pytest.mark.django_db
def test_confirm_then_complete(reservation):
    confirmed = ConfirmReservationHandler().handle(ConfirmReservationCommand(reservation_id=reservation.pk))
    assert confirmed.status == Reservation.Status.CONFIRMED
    assert confirmed.confirmed_at is not None

    with pytest.raises(StateError):
        ConfirmReservationHandler().handle(ConfirmReservationCommand(reservation_id=reservation.pk))

    completed = CompleteReservationHandler().handle(CompleteReservationCommand(reservation_id=reservation.pk))
    assert completed.status == Reservation.Status.COMPLETED

    with pytest.raises(StateError):
        CancelReservationHandler().handle(CancelReservationCommand(reservation_id=reservation.pk))


@pytest.mark.django_db
def test_pending_reservation_cannot_complete(reservation):
    with pytest.raises(StateError):
        CompleteReservationHandler().handle(CompleteReservationCommand(reservation_id=reservation.pk))


@pytest.mark.django_db
def test_cancel_releases_capacity_but_keeps_history(reservation, flight, tour_package, travel_start):
    AttachLineItemHandler().handle(
        AttachLineItemCommand(reservation_id=reservation.pk, spec=FlightSegmentSpec(flight_id=flight.pk, passengers=4))
    )
    AttachLineItemHandler().handle(
        AttachLineItemCommand(
            reservation_id=reservation.pk,
            spec=PackageEnrollmentSpec(package_id=tour_package.pk, people=2, start_date=travel_start),
        )
    )

    cancelled = CancelReservationHandler().handle(
        CancelReservationCommand(reservation_id=reservation.pk, reason="Client changed plans")
    )

    assert cancelled.status == Reservation.Status.CANCELLED
    assert cancelled.cancellation_reason == "Client changed plans"
    assert cancelled.total == Decimal("560.00")
    assert LineItem.objects.filter(reservation=reservation).count() == 2
    assert not LineItem.objects.filter(reservation=reservation, holds_capacity=True).exists()
    flight.refresh_from_db()
    tour_package.refresh_from_db()
    assert flight.economy_seats_available == 10
    assert tour_package.slots_available == 5


@pytest.mark.django_db
def test_delete_pending_reservation_releases_capacity(reservation, flight):
    AttachLineItemHandler().handle(
        AttachLineItemCommand(reservation_id=reservation.pk, spec=FlightSegmentSpec(flight_id=flight.pk, passengers=3))
    )

    assert DeleteReservationHandler().handle(DeleteReservationCommand(reservation_id=reservation.pk)) is True

    assert not Reservation.objects.filter(pk=reservation.pk).exists()
    assert not LineItem.objects.exists()
    flight.refresh_from_db()
    assert flight.economy_seats_available == 10


@pytest.mark.django_db
def test_only_pending_reservations_can_be_deleted(reservation):
    ConfirmReservationHandler().handle(ConfirmReservationCommand(reservation_id=reservation.pk))

    with pytest.raises(StateError):
        DeleteReservationHandler().handle(DeleteReservationCommand(reservation_id=reservation.pk))


def test_transition_table_is_the_single_source_of_truth():
    reservation = Reservation(status=Reservation.Status.PENDING)

    assert reservation.can_transition_to(Reservation.Status.CONFIRMED)
    assert reservation.can_transition_to(Reservation.Status.CANCELLED)
    assert not reservation.can_transition_to(Reservation.Status.COMPLETED)

    reservation.status = Reservation.Status.CANCELLED
    assert not any(reservation.can_transition_to(target) for target in Reservation.Status.values)


@pytest.fixture
def invoiced_reservation(reservation, flight):
    AttachLineItemHandler().handle(
        AttachLineItemCommand(reservation_id=reservation.pk, spec=FlightSegmentSpec(flight_id=flight.pk, passengers=2))
    )
    ConfirmReservationHandler().handle(ConfirmReservationCommand(reservation_id=reservation.pk))
    services.issue_invoice(reservation.pk)
    reservation.refresh_from_db()
    return reservation


@pytest.mark.django_db
def test_invoiced_reservation_refuses_line_item_changes(invoiced_reservation, additional_service):
    with pytest.raises(StateError):
        AttachLineItemHandler().handle(
            AttachLineItemCommand(
                reservation_id=invoiced_reservation.pk,
                spec=ServiceBookingSpec(service_id=additional_service.pk, units=1),
            )
        )
    with pytest.raises(StateError):
        DetachLineItemHandler().handle(DetachLineItemCommand(line_item_id=LineItem.objects.get(reservation=invoiced_reservation).pk))

    invoiced_reservation.refresh_from_db()
    additional_service.refresh_from_db()
    assert invoiced_reservation.total == Decimal("200.00")
    assert LineItem.objects.filter(reservation=invoiced_reservation).count() == 1
    assert additional_service.units_available == 3


@pytest.mark.django_db
def test_line_items_change_again_after_invoice_is_cancelled(invoiced_reservation, additional_service):
    services.cancel_invoice(invoiced_reservation.invoice.pk)

    AttachLineItemHandler().handle(
        AttachLineItemCommand(
            reservation_id=invoiced_reservation.pk,
            spec=ServiceBookingSpec(service_id=additional_service.pk, units=1),
        )
    )

    invoiced_reservation.refresh_from_db()
    assert invoiced_reservation.total == Decimal("215.00")


@pytest.mark.django_db
def test_cancel_voids_pending_invoice(invoiced_reservation, flight, bank_transfer):
    payment = services.record_payment(invoiced_reservation.invoice.pk, Decimal("50"), bank_transfer.pk)

    CancelReservationHandler().handle(
        CancelReservationCommand(reservation_id=invoiced_reservation.pk, reason="Trip called off")
    )

    invoice = Invoice.objects.get(reservation=invoiced_reservation)
    payment.refresh_from_db()
    flight.refresh_from_db()
    assert invoice.status == Invoice.Status.CANCELLED
    assert "Trip called off" in invoice.notes
    assert payment.status == Payment.Status.REJECTED
    assert flight.economy_seats_available == 10


@pytest.mark.django_db
def test_cancel_is_blocked_by_approved_payments(invoiced_reservation, flight, cash):
    services.record_payment(invoiced_reservation.invoice.pk, Decimal("50"), cash.pk)

    with pytest.raises(StateError):
        CancelReservationHandler().handle(CancelReservationCommand(reservation_id=invoiced_reservation.pk))

    invoiced_reservation.refresh_from_db()
    flight.refresh_from_db()
    invoice = Invoice.objects.get(reservation=invoiced_reservation)
    assert invoiced_reservation.status == Reservation.Status.CONFIRMED
    assert invoice.status == Invoice.Status.PENDING
    assert flight.economy_seats_available == 8
    assert LineItem.objects.filter(reservation=invoiced_reservation, holds_capacity=True).count() == 1
