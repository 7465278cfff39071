"""
Finance Domain Events

Published after commit by the reconciliation services.
"""

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class InvoiceIssued(DomainEvent):
    number: str
    reservation_id: int
    total: Decimal

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            'number': self.number,
            'reservation_id': self.reservation_id,
            'total': str(self.total),
        }


@dataclass(kw_only=True)
class PaymentRecorded(DomainEvent):
    payment_id: int
    amount: Decimal
    status: str

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            'payment_id': self.payment_id,
            'amount': str(self.amount),
            'status': self.status,
        }


@dataclass(kw_only=True)
class PaymentApproved(DomainEvent):
    payment_id: int
    amount: Decimal
    invoice_balance: Decimal

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            'payment_id': self.payment_id,
            'amount': str(self.amount),
            'invoice_balance': str(self.invoice_balance),
        }


@dataclass(kw_only=True)
class PaymentRejected(DomainEvent):
    payment_id: int
    reason: str

    def to_dict(self) -> dict:
        return {**super().to_dict(), 'payment_id': self.payment_id, 'reason': self.reason}


@dataclass(kw_only=True)
class InvoicePaid(DomainEvent):
    number: str
    total: Decimal

    def to_dict(self) -> dict:
        return {**super().to_dict(), 'number': self.number, 'total': str(self.total)}


@dataclass(kw_only=True)
class InvoiceCancelled(DomainEvent):
    number: str
    rejected_payments: int

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            'number': self.number,
            'rejected_payments': self.rejected_payments,
        }
