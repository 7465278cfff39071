"""
Reservation Command Handlers

These are the use cases for the reservation aggregate.
Each one runs inside a single DjangoUnitOfWork, so a failure at any
step leaves catalog capacity, line items and totals untouched.

Commands:
- CreateReservationCommand: Open a new pending reservation
- CreateCompleteReservationCommand: Open a reservation with all its line items at once
- AttachLineItemCommand: Price and add a line item, reserving capacity
- DetachLineItemCommand: Remove a line item, releasing capacity
- ConfirmReservationCommand / CompleteReservationCommand: Lifecycle moves
- CancelReservationCommand: Cancel, release every reserved unit and void a pending invoice
- DeleteReservationCommand: Remove a pending reservation entirely
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional
import logging

from django.conf import settings
from django.utils import timezone

from apps.catalog.provider import release_capacity, reserve_capacity
from apps.customers.models import Client, Employee
from apps.reservations.domain.events import (
    LineItemAttached,
    LineItemDetached,
    ReservationCancelled,
    ReservationCompleted,
    ReservationConfirmed,
    ReservationCreated,
    ReservationDeleted,
)
from apps.reservations.line_items import subsystem_for_item, subsystem_for_spec
from apps.reservations.models import LineItem, Reservation
from shared.application.uow import DjangoUnitOfWork, lock_queryset_if_possible
from shared.domain.exceptions import ConflictError, NotFoundError, StateError, ValidationError

logger = logging.getLogger(__name__)


def lock_reservation(reservation_id) -> Reservation:
    """Load a reservation row locked for the rest of the transaction."""
    try:
        return lock_queryset_if_possible(Reservation.objects.all()).get(pk=reservation_id)
    except Reservation.DoesNotExist:
        raise NotFoundError(f"Reservation {reservation_id} not found", {"reservation": reservation_id})


def _save_totals(reservation: Reservation):
    reservation.recompute_totals()
    reservation.save(update_fields=['total', 'balance', 'updated_at'])


def _release_held_capacity(reservation: Reservation) -> int:
    """Release capacity for every item still holding it; returns how many items released."""
    released = 0
    items = LineItem.objects.filter(reservation=reservation, holds_capacity=True)
    for item in items:
        detail = item.detail
        counter = subsystem_for_item(detail).counter_for_item(detail)
        if counter is not None:
            release_capacity(counter, item.quantity)
        released += 1
    items.update(holds_capacity=False)
    return released


def _add_line_item(reservation: Reservation, spec) -> LineItem:
    """Validate, reserve capacity for and persist one line item; totals are left to the caller."""
    subsystem = subsystem_for_spec(spec)
    resource = subsystem.load_resource(spec)
    subsystem.validate(reservation, resource, spec)

    counter = subsystem.capacity_counter(resource, spec)
    if counter is not None and not reserve_capacity(counter, spec.quantity):
        raise ConflictError(
            f"Insufficient capacity on {resource} for {spec.quantity}",
            {"resource": counter.model.__name__, "id": counter.pk, "requested": spec.quantity},
        )

    item = subsystem.build(reservation, resource, spec)
    item.holds_capacity = counter is not None
    item.save()
    return item


def _void_open_invoice(reservation: Reservation, reason: str) -> str | None:
    """Cancel the pending invoice of a reservation being cancelled; returns its number."""
    from apps.finances.services import cancel_invoice

    invoice = reservation.open_invoice
    if invoice is None or invoice.status != invoice.Status.PENDING:
        return None
    cancel_invoice(invoice.pk, reason or f"Reservation {reservation.pk} cancelled")
    return invoice.number


# ===== Commands =====

@dataclass
class CreateReservationCommand:
    client_id: int
    employee_id: int
    travel_start: date
    travel_end: date
    passengers: int = 1
    description: str = ''
    notes: str = ''


@dataclass
class CreateCompleteReservationCommand:
    """
    Command to open a reservation together with its line items

    ``line_items`` holds request specs from apps.reservations.line_items;
    either the header and every item are stored, or nothing is.
    """
    client_id: int
    employee_id: int
    travel_start: date
    travel_end: date
    line_items: List[Any] = field(default_factory=list)
    passengers: int = 1
    description: str = ''
    notes: str = ''
    performed_by: Optional[str] = None


@dataclass
class AttachLineItemCommand:
    """
    Command to add a line item to a reservation

    ``spec`` is one of the request specs from apps.reservations.line_items.
    """
    reservation_id: int
    spec: Any
    performed_by: Optional[str] = None


@dataclass
class DetachLineItemCommand:
    line_item_id: int
    performed_by: Optional[str] = None


@dataclass
class ConfirmReservationCommand:
    reservation_id: int


@dataclass
class CompleteReservationCommand:
    reservation_id: int


@dataclass
class CancelReservationCommand:
    reservation_id: int
    reason: str = ''


@dataclass
class DeleteReservationCommand:
    reservation_id: int


@dataclass(frozen=True)
class ReservationTotals:
    """
    Stored money figures of a reservation

    ``total`` is the pre-tax sum of line item subtotals while ``paid`` mirrors
    the approved payments on the invoice, which include tax. Once a taxed
    invoice is settled ``balance`` (total - paid) is therefore negative by
    the tax amount; the invoice balance is the one that reaches zero.
    """
    total: Decimal
    paid: Decimal
    balance: Decimal


# ===== Command Handlers =====

class CreateReservationHandler:
    """Handler for CreateReservation command"""

    def check(self, command) -> None:
        """Header checks that need no database access."""
        if command.travel_end <= command.travel_start:
            raise ValidationError(
                "Travel end date must be after the start date",
                {"travel_start": str(command.travel_start), "travel_end": str(command.travel_end)},
            )
        if command.travel_start < timezone.localdate():
            raise ValidationError("Travel start date cannot be in the past", {"travel_start": str(command.travel_start)})
        if command.passengers is None or command.passengers <= 0:
            raise ValidationError("At least one passenger is required", {"passengers": command.passengers})

    def open(self, command) -> Reservation:
        """Create the pending header; call inside a unit of work."""
        client = Client.objects.filter(pk=command.client_id).first()
        if client is None:
            raise NotFoundError(f"Client {command.client_id} not found", {"client": command.client_id})
        if not client.is_active:
            raise StateError(f"Client {command.client_id} is not active", {"client": command.client_id})

        employee = Employee.objects.filter(pk=command.employee_id).first()
        if employee is None:
            raise NotFoundError(f"Employee {command.employee_id} not found", {"employee": command.employee_id})
        if not employee.is_active:
            raise StateError(f"Employee {command.employee_id} is not active", {"employee": command.employee_id})

        reservation = Reservation.objects.create(
            client=client,
            employee=employee,
            travel_start=command.travel_start,
            travel_end=command.travel_end,
            passengers=command.passengers,
            currency=settings.TRAVEL_CURRENCY,
            description=command.description,
            notes=command.notes,
        )
        reservation.add_event(ReservationCreated(
            aggregate_id=reservation.pk,
            client_id=client.pk,
            employee_id=employee.pk,
            travel_start=command.travel_start.isoformat(),
            travel_end=command.travel_end.isoformat(),
        ))
        return reservation

    def handle(self, command: CreateReservationCommand) -> Reservation:
        self.check(command)

        with DjangoUnitOfWork() as uow:
            reservation = self.open(command)
            uow.collect_events(reservation)

        logger.info(f"Reservation {reservation.pk} created for client {reservation.client_id}")
        return reservation


class CreateCompleteReservationHandler:
    """
    Handler for CreateCompleteReservation command

    Runs the header checks and every line item through the same steps as
    AttachLineItem, all in one transaction. A failure on any item, capacity
    included, leaves no reservation behind and every counter untouched.
    """

    def handle(self, command: CreateCompleteReservationCommand) -> Reservation:
        header = CreateReservationHandler()
        header.check(command)
        if not command.line_items:
            raise ValidationError("A complete reservation needs at least one line item", {"line_items": []})
        for spec in command.line_items:
            subsystem_for_spec(spec).check_spec(spec)

        with DjangoUnitOfWork() as uow:
            reservation = header.open(command)
            items = [_add_line_item(reservation, spec) for spec in command.line_items]
            _save_totals(reservation)
            for item in items:
                reservation.add_event(LineItemAttached(
                    aggregate_id=reservation.pk,
                    line_item_id=item.pk,
                    kind=item.kind,
                    quantity=item.quantity,
                    subtotal=item.subtotal,
                    reservation_total=reservation.total,
                ))
            uow.collect_events(reservation)

        logger.info(
            f"Reservation {reservation.pk} created for client {reservation.client_id} "
            f"with {len(items)} line items; total {reservation.total}"
            + (f" by {command.performed_by}" if command.performed_by else "")
        )
        return reservation


class AttachLineItemHandler:
    """
    Handler for AttachLineItem command

    Steps, all inside one transaction:
    1. Lock the reservation row and check it still accepts line items
    2. Load the catalog resource and run the variant rules
    3. Reserve capacity with a conditional UPDATE (ConflictError if short)
    4. Persist the priced line item
    5. Recompute reservation totals
    """

    def handle(self, command: AttachLineItemCommand) -> LineItem:
        subsystem_for_spec(command.spec).check_spec(command.spec)

        with DjangoUnitOfWork() as uow:
            reservation = lock_reservation(command.reservation_id)
            reservation.ensure_mutable()
            item = _add_line_item(reservation, command.spec)
            _save_totals(reservation)
            reservation.add_event(LineItemAttached(
                aggregate_id=reservation.pk,
                line_item_id=item.pk,
                kind=item.kind,
                quantity=item.quantity,
                subtotal=item.subtotal,
                reservation_total=reservation.total,
            ))
            uow.collect_events(reservation)

        logger.info(
            f"Attached {item.kind} #{item.pk} (x{item.quantity}, {item.subtotal}) "
            f"to reservation {reservation.pk}; total now {reservation.total}"
            + (f" by {command.performed_by}" if command.performed_by else "")
        )
        return item


class DetachLineItemHandler:
    """Handler for DetachLineItem command"""

    def handle(self, command: DetachLineItemCommand) -> bool:
        with DjangoUnitOfWork() as uow:
            reservation_id = (
                LineItem.objects.filter(pk=command.line_item_id)
                .values_list('reservation_id', flat=True)
                .first()
            )
            if reservation_id is None:
                raise NotFoundError(f"Line item {command.line_item_id} not found", {"line_item": command.line_item_id})

            reservation = lock_reservation(reservation_id)
            reservation.ensure_mutable()

            item = LineItem.objects.get(pk=command.line_item_id).detail
            if item.holds_capacity:
                counter = subsystem_for_item(item).counter_for_item(item)
                if counter is not None:
                    release_capacity(counter, item.quantity)

            kind, quantity = item.kind, item.quantity
            item.delete()

            _save_totals(reservation)
            reservation.add_event(LineItemDetached(
                aggregate_id=reservation.pk,
                line_item_id=command.line_item_id,
                kind=kind,
                quantity=quantity,
                reservation_total=reservation.total,
            ))
            uow.collect_events(reservation)

        logger.info(
            f"Detached {kind} #{command.line_item_id} from reservation {reservation.pk}; "
            f"total now {reservation.total}"
            + (f" by {command.performed_by}" if command.performed_by else "")
        )
        return True


class ConfirmReservationHandler:
    """Handler for ConfirmReservation command"""

    def handle(self, command: ConfirmReservationCommand) -> Reservation:
        with DjangoUnitOfWork() as uow:
            reservation = lock_reservation(command.reservation_id)
            reservation.transition_to(Reservation.Status.CONFIRMED)
            reservation.save(update_fields=['status', 'confirmed_at', 'updated_at'])
            reservation.add_event(ReservationConfirmed(aggregate_id=reservation.pk, total=reservation.total))
            uow.collect_events(reservation)

        logger.info(f"Reservation {reservation.pk} confirmed with total {reservation.total}")
        return reservation


class CompleteReservationHandler:
    """Handler for CompleteReservation command"""

    def handle(self, command: CompleteReservationCommand) -> Reservation:
        with DjangoUnitOfWork() as uow:
            reservation = lock_reservation(command.reservation_id)
            reservation.transition_to(Reservation.Status.COMPLETED)
            reservation.save(update_fields=['status', 'completed_at', 'updated_at'])
            reservation.add_event(ReservationCompleted(aggregate_id=reservation.pk))
            uow.collect_events(reservation)

        logger.info(f"Reservation {reservation.pk} completed")
        return reservation


class CancelReservationHandler:
    """
    Handler for CancelReservation command

    Line items and totals stay on the cancelled reservation as history;
    only the capacity they hold goes back to the catalog. A pending invoice
    is cancelled along with it; one with approved payments blocks the
    cancellation.
    """

    def handle(self, command: CancelReservationCommand) -> Reservation:
        with DjangoUnitOfWork() as uow:
            reservation = lock_reservation(command.reservation_id)
            reservation.transition_to(Reservation.Status.CANCELLED, reason=command.reason)
            voided = _void_open_invoice(reservation, command.reason)
            released = _release_held_capacity(reservation)
            reservation.save(update_fields=['status', 'cancelled_at', 'cancellation_reason', 'updated_at'])
            reservation.add_event(ReservationCancelled(
                aggregate_id=reservation.pk,
                reason=command.reason,
                released_items=released,
            ))
            uow.collect_events(reservation)

        logger.info(
            f"Reservation {reservation.pk} cancelled, capacity released for {released} items"
            + (f", invoice {voided} cancelled" if voided else "")
        )
        return reservation


class DeleteReservationHandler:
    """Handler for DeleteReservation command (pending reservations only)"""

    def handle(self, command: DeleteReservationCommand) -> bool:
        with DjangoUnitOfWork() as uow:
            reservation = lock_reservation(command.reservation_id)
            if reservation.status != Reservation.Status.PENDING:
                raise StateError(
                    f"Only pending reservations can be deleted; {reservation.pk} is {reservation.status}",
                    {"reservation": reservation.pk, "status": reservation.status},
                )
            released = _release_held_capacity(reservation)
            reservation_id = reservation.pk
            reservation.delete()
            uow.add_event(ReservationDeleted(aggregate_id=reservation_id, released_items=released))

        logger.info(f"Reservation {reservation_id} deleted, capacity released for {released} items")
        return True


# ===== Queries =====

def get_reservation_totals(reservation_id) -> ReservationTotals:
    """Read the stored totals of a reservation without changing anything."""
    row = Reservation.objects.filter(pk=reservation_id).values('total', 'paid', 'balance').first()
    if row is None:
        raise NotFoundError(f"Reservation {reservation_id} not found", {"reservation": reservation_id})
    return ReservationTotals(total=row['total'], paid=row['paid'], balance=row['balance'])


def list_line_items(reservation_id) -> List[LineItem]:
    """Return the concrete line items of a reservation in attach order."""
    if not Reservation.objects.filter(pk=reservation_id).exists():
        raise NotFoundError(f"Reservation {reservation_id} not found", {"reservation": reservation_id})
    items = LineItem.objects.filter(reservation_id=reservation_id).select_related(
        'hotelstay__hotel',
        'flightsegment__flight',
        'packageenrollment__package',
        'servicebooking__service',
    )
    return [item.detail for item in items]
