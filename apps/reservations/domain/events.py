"""
Reservation Domain Events

Events recorded by the reservation aggregate and published after commit.
"""

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class ReservationCreated(DomainEvent):
    client_id: int
    employee_id: int
    travel_start: str
    travel_end: str

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            'client_id': self.client_id,
            'employee_id': self.employee_id,
            'travel_start': self.travel_start,
            'travel_end': self.travel_end,
        }


@dataclass(kw_only=True)
class LineItemAttached(DomainEvent):
    """A priced line item was added and capacity (if any) reserved"""
    line_item_id: int
    kind: str
    quantity: int
    subtotal: Decimal
    reservation_total: Decimal

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            'line_item_id': self.line_item_id,
            'kind': self.kind,
            'quantity': self.quantity,
            'subtotal': str(self.subtotal),
            'reservation_total': str(self.reservation_total),
        }


@dataclass(kw_only=True)
class LineItemDetached(DomainEvent):
    """A line item was removed and its capacity released"""
    line_item_id: int
    kind: str
    quantity: int
    reservation_total: Decimal

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            'line_item_id': self.line_item_id,
            'kind': self.kind,
            'quantity': self.quantity,
            'reservation_total': str(self.reservation_total),
        }


@dataclass(kw_only=True)
class ReservationConfirmed(DomainEvent):
    total: Decimal

    def to_dict(self) -> dict:
        return {**super().to_dict(), 'total': str(self.total)}


@dataclass(kw_only=True)
class ReservationCompleted(DomainEvent):
    pass


@dataclass(kw_only=True)
class ReservationCancelled(DomainEvent):
    reason: str
    released_items: int

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            'reason': self.reason,
            'released_items': self.released_items,
        }


@dataclass(kw_only=True)
class ReservationDeleted(DomainEvent):
    released_items: int

    def to_dict(self) -> dict:
        return {**super().to_dict(), 'released_items': self.released_items}
