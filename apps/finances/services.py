"""Financial reconciliation services.

Invoices are issued once per confirmed reservation; payments are recorded
against them and, once approved, reconciled into the paid amount and
balance of both the invoice and its reservation. Every public function
runs in its own DjangoUnitOfWork.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation

from django.conf import settings  # type: ignore
from django.db import IntegrityError, transaction  # type: ignore
from django.db.models import F, Sum  # type: ignore
from django.utils import timezone  # type: ignore

from apps.reservations.models import Reservation
from shared.application.uow import DjangoUnitOfWork, lock_queryset_if_possible
from shared.domain.exceptions import ConflictError, NotFoundError, StateError, ValidationError
from shared.domain.value_objects import quantize

from .events import (
    InvoiceCancelled,
    InvoiceIssued,
    InvoicePaid,
    PaymentApproved,
    PaymentRecorded,
    PaymentRejected,
)
from .models import Invoice, InvoiceSequence, Payment, PaymentMethod

logger = logging.getLogger(__name__)


def _as_amount(value, field: str) -> Decimal:
    try:
        return quantize(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a decimal amount", {field: str(value)})


def _lock_invoice(invoice_id) -> Invoice:
    try:
        return lock_queryset_if_possible(Invoice.objects.all()).get(pk=invoice_id)
    except Invoice.DoesNotExist:
        raise NotFoundError(f"Invoice {invoice_id} not found", {"invoice": invoice_id})


def _lock_payment(payment_id) -> Payment:
    try:
        return lock_queryset_if_possible(Payment.objects.all()).get(pk=payment_id)
    except Payment.DoesNotExist:
        raise NotFoundError(f"Payment {payment_id} not found", {"payment": payment_id})


def next_invoice_number(year: int) -> str:
    """Reserve the next sequential number for ``year``; call inside a transaction."""

    InvoiceSequence.objects.get_or_create(year=year)
    InvoiceSequence.objects.filter(year=year).update(last_value=F("last_value") + 1)
    sequence = lock_queryset_if_possible(InvoiceSequence.objects.filter(year=year)).get()
    return f"{settings.INVOICE_NUMBER_PREFIX}-{year}-{sequence.last_value:06d}"


def _pending_sum(invoice: Invoice) -> Decimal:
    pending = invoice.payments.filter(status=Payment.Status.PENDING).aggregate(total=Sum("amount"))["total"]
    return quantize(pending or 0)


def _reconcile(invoice: Invoice) -> bool:
    """
    Recompute paid/balance from approved payments and mirror them on the
    reservation. Returns True when this call moved the invoice to paid.
    """
    approved = invoice.payments.filter(status=Payment.Status.APPROVED).aggregate(total=Sum("amount"))["total"]
    invoice.paid = quantize(approved or 0)
    invoice.balance = max(quantize(invoice.total - invoice.paid), Decimal("0.00"))

    became_paid = False
    if invoice.balance <= 0 and invoice.status == Invoice.Status.PENDING:
        invoice.status = Invoice.Status.PAID
        invoice.paid_at = timezone.now()
        became_paid = True
    invoice.save(update_fields=["paid", "balance", "status", "paid_at", "updated_at"])

    reservation = lock_queryset_if_possible(Reservation.objects.all()).get(pk=invoice.reservation_id)
    reservation.paid = invoice.paid
    reservation.balance = quantize(reservation.total - reservation.paid)
    reservation.save(update_fields=["paid", "balance", "updated_at"])

    if became_paid:
        invoice.add_event(InvoicePaid(aggregate_id=invoice.pk, number=invoice.number, total=invoice.total))
    return became_paid


def _approve(invoice: Invoice, payment: Payment) -> None:
    if payment.amount > invoice.balance:
        raise ConflictError(
            f"Payment of {payment.amount} exceeds the open balance {invoice.balance} of invoice {invoice.number}",
            {"amount": str(payment.amount), "balance": str(invoice.balance)},
        )
    payment.mark_approved()
    _reconcile(invoice)
    invoice.add_event(PaymentApproved(
        aggregate_id=invoice.pk,
        payment_id=payment.pk,
        amount=payment.amount,
        invoice_balance=invoice.balance,
    ))


def issue_invoice(
    reservation_id,
    *,
    discount=Decimal("0"),
    tax_rate=None,
    due_date: date | None = None,
    notes: str = "",
) -> Invoice:
    """Issue the single invoice of a confirmed reservation."""

    discount = _as_amount(discount, "discount")
    tax_rate = Decimal(str(settings.INVOICE_TAX_RATE if tax_rate is None else tax_rate))
    if not Decimal("0") <= tax_rate <= Decimal("1"):
        raise ValidationError("Tax rate must be between 0 and 1", {"tax_rate": str(tax_rate)})

    with DjangoUnitOfWork() as uow:
        try:
            reservation = lock_queryset_if_possible(Reservation.objects.all()).get(pk=reservation_id)
        except Reservation.DoesNotExist:
            raise NotFoundError(f"Reservation {reservation_id} not found", {"reservation": reservation_id})

        if reservation.status != Reservation.Status.CONFIRMED:
            raise StateError(
                f"Only confirmed reservations can be invoiced; {reservation.pk} is {reservation.status}",
                {"reservation": reservation.pk, "status": reservation.status},
            )
        existing = Invoice.objects.filter(reservation=reservation).values_list("number", flat=True).first()
        if existing:
            raise ConflictError(
                f"Reservation {reservation.pk} already has invoice {existing}",
                {"reservation": reservation.pk, "invoice": existing},
            )

        subtotal = quantize(reservation.total)
        if subtotal <= 0:
            raise ValidationError(f"Reservation {reservation.pk} has nothing to invoice")
        tax = quantize(subtotal * tax_rate)
        if discount < 0 or discount > subtotal + tax:
            raise ValidationError(
                "Discount must be between zero and the invoice amount",
                {"discount": str(discount)},
            )
        total = quantize(subtotal + tax - discount)

        issue_date = timezone.localdate()
        due_date = due_date or issue_date + timedelta(days=settings.INVOICE_DUE_DAYS)
        if due_date < issue_date:
            raise ValidationError("Due date cannot precede the issue date", {"due_date": str(due_date)})

        invoice = Invoice.objects.create(
            reservation=reservation,
            number=next_invoice_number(issue_date.year),
            subtotal=subtotal,
            tax_rate=tax_rate,
            tax=tax,
            discount=discount,
            total=total,
            balance=total,
            currency=reservation.currency,
            issue_date=issue_date,
            due_date=due_date,
            notes=notes,
        )
        invoice.add_event(InvoiceIssued(
            aggregate_id=invoice.pk,
            number=invoice.number,
            reservation_id=reservation.pk,
            total=invoice.total,
        ))
        uow.collect_events(invoice)

    logger.info(f"Issued invoice {invoice.number} for reservation {reservation.pk}: total {invoice.total}")
    return invoice


def record_payment(
    invoice_id,
    amount,
    payment_method_id,
    reference: str | None = None,
    *,
    notes: str = "",
    performed_by: str | None = None,
) -> Payment:
    """Record a payment; methods without verification are approved on the spot."""

    amount = _as_amount(amount, "amount")
    if amount <= 0:
        raise ValidationError("Payment amount must be positive", {"amount": str(amount)})
    reference = (reference or "").strip() or None

    with DjangoUnitOfWork() as uow:
        invoice = _lock_invoice(invoice_id)
        if invoice.status == Invoice.Status.CANCELLED:
            raise StateError(f"Invoice {invoice.number} is cancelled", {"invoice": invoice.pk})
        if invoice.status == Invoice.Status.PAID:
            raise StateError(f"Invoice {invoice.number} is already paid", {"invoice": invoice.pk})

        method = PaymentMethod.objects.filter(pk=payment_method_id).first()
        if method is None:
            raise NotFoundError(f"Payment method {payment_method_id} not found", {"method": payment_method_id})
        if not method.is_active:
            raise ValidationError(f"Payment method {method.name} is not active", {"method": method.pk})

        if reference and Payment.objects.filter(reference=reference).exists():
            raise ConflictError(f"Payment reference {reference} was already used", {"reference": reference})

        open_amount = invoice.balance - _pending_sum(invoice)
        if amount > open_amount:
            raise ConflictError(
                f"Payment of {amount} exceeds the open balance {open_amount} of invoice {invoice.number}",
                {"amount": str(amount), "open_balance": str(open_amount)},
            )

        try:
            with transaction.atomic():
                payment = Payment.objects.create(
                    invoice=invoice,
                    method=method,
                    amount=amount,
                    reference=reference,
                    notes=notes,
                    recorded_by=performed_by or "",
                )
        except IntegrityError:
            raise ConflictError(f"Payment reference {reference} was already used", {"reference": reference})

        if not method.requires_verification:
            _approve(invoice, payment)
        invoice.add_event(PaymentRecorded(
            aggregate_id=invoice.pk,
            payment_id=payment.pk,
            amount=payment.amount,
            status=payment.status,
        ))
        uow.collect_events(invoice)

    logger.info(
        f"Recorded payment {payment.pk} of {amount} ({payment.status}) on invoice {invoice.number}; "
        f"balance {invoice.balance}"
    )
    return payment


def approve_payment(payment_id) -> Payment:
    """Approve a pending payment after external verification."""

    with DjangoUnitOfWork() as uow:
        payment = _lock_payment(payment_id)
        invoice = _lock_invoice(payment.invoice_id)
        if payment.status != Payment.Status.PENDING:
            raise StateError(f"Payment {payment.pk} is already {payment.status}", {"payment": payment.pk})
        if invoice.status != Invoice.Status.PENDING:
            raise StateError(f"Invoice {invoice.number} is {invoice.status}", {"invoice": invoice.pk})
        _approve(invoice, payment)
        uow.collect_events(invoice)

    logger.info(f"Approved payment {payment.pk} on invoice {invoice.number}; balance {invoice.balance}")
    return payment


def reject_payment(payment_id, reason: str = "") -> Payment:
    """Reject a pending payment; balances are left untouched."""

    with DjangoUnitOfWork() as uow:
        payment = _lock_payment(payment_id)
        if payment.status != Payment.Status.PENDING:
            raise StateError(f"Payment {payment.pk} is already {payment.status}", {"payment": payment.pk})
        payment.mark_rejected(reason)
        uow.add_event(PaymentRejected(aggregate_id=payment.invoice_id, payment_id=payment.pk, reason=reason))

    logger.info(f"Rejected payment {payment.pk} on invoice {payment.invoice_id}: {reason or 'no reason'}")
    return payment


def cancel_invoice(invoice_id, reason: str = "") -> Invoice:
    """Cancel an unpaid invoice; pending payments on it are rejected."""

    with DjangoUnitOfWork() as uow:
        invoice = _lock_invoice(invoice_id)
        if invoice.status != Invoice.Status.PENDING:
            raise StateError(
                f"Invoice {invoice.number} is {invoice.status} and cannot be cancelled",
                {"invoice": invoice.pk, "status": invoice.status},
            )
        if invoice.payments.filter(status=Payment.Status.APPROVED).exists():
            raise StateError(
                f"Invoice {invoice.number} has approved payments and cannot be cancelled",
                {"invoice": invoice.pk},
            )

        pending = list(invoice.payments.filter(status=Payment.Status.PENDING))
        for payment in pending:
            payment.mark_rejected(reason or "Invoice cancelled")

        invoice.status = Invoice.Status.CANCELLED
        invoice.cancelled_at = timezone.now()
        if reason:
            invoice.notes = f"{invoice.notes}\n{reason}".strip()
        invoice.save(update_fields=["status", "cancelled_at", "notes", "updated_at"])
        invoice.add_event(InvoiceCancelled(
            aggregate_id=invoice.pk,
            number=invoice.number,
            rejected_payments=len(pending),
        ))
        uow.collect_events(invoice)

    logger.info(f"Cancelled invoice {invoice.number}; rejected {len(pending)} pending payments")
    return invoice
