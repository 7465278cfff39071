"""Tests for invoice issuance and payment reconciliation."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.finances import services
from apps.finances.events import InvoicePaid, PaymentRecorded
from apps.finances.models import Invoice, Payment
from apps.reservations.application.command_handlers import get_reservation_totals
from apps.reservations.models import Reservation
from apps.reservations.serializers import ReservationTotalsSerializer
from shared.application.message_bus import MessageBus
from shared.domain.exceptions import ConflictError, NotFoundError, StateError, ValidationError


@pytest.fixture
def confirmed_reservation(reservation):
    Reservation.objects.filter(pk=reservation.pk).update(
        status=Reservation.Status.CONFIRMED,
        total=Decimal("150.00"),
        balance=Decimal("150.00"),
    )
    reservation.refresh_from_db()
    return reservation


@pytest.fixture
def invoice(confirmed_reservation):
    return services.issue_invoice(confirmed_reservation.pk)


def _reload(*objs):
    for obj in objs:
        obj.refresh_from_db()


@pytest.mark.django_db
class TestIssueInvoice:
    def test_applies_default_tax_and_numbering(self, confirmed_reservation):
        invoice = services.issue_invoice(confirmed_reservation.pk)

        year = timezone.localdate().year
        assert invoice.number == f"FAC-{year}-000001"
        assert invoice.subtotal == Decimal("150.00")
        assert invoice.tax == Decimal("28.50")
        assert invoice.total == Decimal("178.50")
        assert invoice.balance == Decimal("178.50")
        assert invoice.status == Invoice.Status.PENDING
        assert invoice.due_date == invoice.issue_date + timedelta(days=30)

    def test_numbers_are_sequential(self, confirmed_reservation, client_record, employee, travel_start, travel_end):
        services.issue_invoice(confirmed_reservation.pk)
        other = Reservation.objects.create(
            client=client_record,
            employee=employee,
            travel_start=travel_start,
            travel_end=travel_end,
            status=Reservation.Status.CONFIRMED,
            total=Decimal("40.00"),
            balance=Decimal("40.00"),
        )

        second = services.issue_invoice(other.pk)

        assert second.number.endswith("-000002")

    def test_discount_and_custom_tax_rate(self, confirmed_reservation):
        invoice = services.issue_invoice(
            confirmed_reservation.pk,
            discount=Decimal("10"),
            tax_rate=Decimal("0.10"),
        )

        assert invoice.tax == Decimal("15.00")
        assert invoice.total == Decimal("155.00")

    def test_rejects_second_invoice(self, invoice, confirmed_reservation):
        with pytest.raises(ConflictError):
            services.issue_invoice(confirmed_reservation.pk)

        assert Invoice.objects.count() == 1

    def test_requires_confirmed_reservation(self, reservation):
        Reservation.objects.filter(pk=reservation.pk).update(total=Decimal("150.00"))

        with pytest.raises(StateError):
            services.issue_invoice(reservation.pk)

    def test_rejects_empty_reservation(self, reservation):
        Reservation.objects.filter(pk=reservation.pk).update(status=Reservation.Status.CONFIRMED)

        with pytest.raises(ValidationError):
            services.issue_invoice(reservation.pk)

    def test_rejects_bad_tax_rate_and_discount(self, confirmed_reservation):
        with pytest.raises(ValidationError):
            services.issue_invoice(confirmed_reservation.pk, tax_rate=Decimal("1.5"))
        with pytest.raises(ValidationError):
            services.issue_invoice(confirmed_reservation.pk, discount=Decimal("500"))
        with pytest.raises(ValidationError):
            services.issue_invoice(
                confirmed_reservation.pk,
                due_date=timezone.localdate() - timedelta(days=1),
            )

        assert not Invoice.objects.exists()

    def test_unknown_reservation(self, db):
        with pytest.raises(NotFoundError):
            services.issue_invoice(999)


@pytest.mark.django_db
class TestRecordPayment:
    def test_partial_then_full_payment(self, invoice, confirmed_reservation, cash):
        first = services.record_payment(invoice.pk, Decimal("100"), cash.pk, "REC-1")
        _reload(invoice, confirmed_reservation)

        assert first.status == Payment.Status.APPROVED
        assert invoice.paid == Decimal("100.00")
        assert invoice.balance == Decimal("78.50")
        assert invoice.status == Invoice.Status.PENDING
        assert confirmed_reservation.paid == Decimal("100.00")
        assert confirmed_reservation.balance == Decimal("50.00")

        services.record_payment(invoice.pk, Decimal("78.50"), cash.pk)
        _reload(invoice, confirmed_reservation)

        assert invoice.status == Invoice.Status.PAID
        assert invoice.balance == Decimal("0.00")
        assert invoice.paid_at is not None
        assert confirmed_reservation.paid == Decimal("178.50")
        assert confirmed_reservation.balance == Decimal("-28.50")

    def test_reservation_balance_stays_pre_tax_after_settlement(self, invoice, confirmed_reservation, cash):
        services.record_payment(invoice.pk, invoice.total, cash.pk)
        _reload(invoice)

        totals = get_reservation_totals(confirmed_reservation.pk)

        assert invoice.balance == Decimal("0.00")
        assert totals.total == Decimal("150.00")
        assert totals.paid == Decimal("178.50")
        assert totals.balance == totals.total - totals.paid == -invoice.tax
        assert "Pre-tax" in ReservationTotalsSerializer().fields["balance"].help_text

    def test_paid_invoice_rejects_more_payments(self, invoice, cash):
        services.record_payment(invoice.pk, Decimal("178.50"), cash.pk)

        with pytest.raises(StateError):
            services.record_payment(invoice.pk, Decimal("1"), cash.pk)

    def test_overpayment_is_rejected(self, invoice, cash):
        with pytest.raises(ConflictError):
            services.record_payment(invoice.pk, Decimal("200"), cash.pk)

        assert not Payment.objects.exists()

    def test_pending_payments_count_against_the_balance(self, invoice, cash, bank_transfer):
        pending = services.record_payment(invoice.pk, Decimal("100"), bank_transfer.pk, "TRF-1")
        invoice.refresh_from_db()

        assert pending.status == Payment.Status.PENDING
        assert invoice.balance == Decimal("178.50")
        with pytest.raises(ConflictError):
            services.record_payment(invoice.pk, Decimal("100"), cash.pk)

    def test_non_positive_amount(self, invoice, cash):
        with pytest.raises(ValidationError):
            services.record_payment(invoice.pk, Decimal("0"), cash.pk)
        with pytest.raises(ValidationError):
            services.record_payment(invoice.pk, "abc", cash.pk)

    def test_duplicate_reference(self, invoice, cash):
        services.record_payment(invoice.pk, Decimal("10"), cash.pk, "REC-9")

        with pytest.raises(ConflictError):
            services.record_payment(invoice.pk, Decimal("10"), cash.pk, "REC-9")

        assert Payment.objects.count() == 1

    def test_unknown_and_inactive_methods(self, invoice, cash):
        with pytest.raises(NotFoundError):
            services.record_payment(invoice.pk, Decimal("10"), 999)

        cash.is_active = False
        cash.save()
        with pytest.raises(ValidationError):
            services.record_payment(invoice.pk, Decimal("10"), cash.pk)

    def test_unknown_invoice(self, db, cash):
        with pytest.raises(NotFoundError):
            services.record_payment(999, Decimal("10"), cash.pk)

    def test_records_who_took_the_payment(self, invoice, cash):
        payment = services.record_payment(invoice.pk, Decimal("10"), cash.pk, performed_by="cashier")

        assert payment.recorded_by == "cashier"


@pytest.mark.django_db
class TestVerification:
    def test_approve_pending_payment(self, invoice, confirmed_reservation, bank_transfer):
        payment = services.record_payment(invoice.pk, Decimal("178.50"), bank_transfer.pk, "TRF-2")

        services.approve_payment(payment.pk)
        _reload(payment, invoice, confirmed_reservation)

        assert payment.status == Payment.Status.APPROVED
        assert payment.decided_at is not None
        assert invoice.status == Invoice.Status.PAID
        assert confirmed_reservation.paid == Decimal("178.50")

    def test_reject_leaves_balances_alone(self, invoice, bank_transfer, cash):
        payment = services.record_payment(invoice.pk, Decimal("100"), bank_transfer.pk, "TRF-3")

        services.reject_payment(payment.pk, "Funds not received")
        _reload(payment, invoice)

        assert payment.status == Payment.Status.REJECTED
        assert payment.rejection_reason == "Funds not received"
        assert invoice.paid == Decimal("0.00")
        assert invoice.balance == Decimal("178.50")
        # the rejected amount no longer blocks the balance
        services.record_payment(invoice.pk, Decimal("178.50"), cash.pk)

    def test_decided_payments_cannot_change(self, invoice, bank_transfer):
        payment = services.record_payment(invoice.pk, Decimal("50"), bank_transfer.pk)
        services.approve_payment(payment.pk)

        with pytest.raises(StateError):
            services.approve_payment(payment.pk)
        with pytest.raises(StateError):
            services.reject_payment(payment.pk)

    def test_unknown_payment(self, db):
        with pytest.raises(NotFoundError):
            services.approve_payment(999)


@pytest.mark.django_db
class TestCancelInvoice:
    def test_cancel_rejects_pending_payments(self, invoice, bank_transfer, cash):
        payment = services.record_payment(invoice.pk, Decimal("20"), bank_transfer.pk)

        services.cancel_invoice(invoice.pk, "Issued by mistake")
        _reload(invoice, payment)

        assert invoice.status == Invoice.Status.CANCELLED
        assert invoice.cancelled_at is not None
        assert payment.status == Payment.Status.REJECTED
        with pytest.raises(StateError):
            services.record_payment(invoice.pk, Decimal("10"), cash.pk)

    def test_cannot_cancel_with_approved_payments(self, invoice, cash):
        services.record_payment(invoice.pk, Decimal("10"), cash.pk)

        with pytest.raises(StateError):
            services.cancel_invoice(invoice.pk)

    def test_cannot_cancel_twice(self, invoice):
        services.cancel_invoice(invoice.pk)

        with pytest.raises(StateError):
            services.cancel_invoice(invoice.pk)


@pytest.mark.django_db
class TestOverdue:
    def test_effective_status_is_derived(self, invoice):
        past = timezone.localdate() - timedelta(days=40)
        Invoice.objects.filter(pk=invoice.pk).update(issue_date=past, due_date=past + timedelta(days=30))
        invoice.refresh_from_db()

        assert invoice.status == Invoice.Status.PENDING
        assert invoice.effective_status == Invoice.OVERDUE
        assert invoice.is_overdue

    def test_paid_invoice_is_never_overdue(self, invoice, cash):
        services.record_payment(invoice.pk, Decimal("178.50"), cash.pk)
        past = timezone.localdate() - timedelta(days=40)
        Invoice.objects.filter(pk=invoice.pk).update(issue_date=past, due_date=past + timedelta(days=30))
        invoice.refresh_from_db()

        assert invoice.effective_status == Invoice.Status.PAID

    def test_overdue_invoice_still_accepts_payments(self, invoice, cash):
        past = timezone.localdate() - timedelta(days=40)
        Invoice.objects.filter(pk=invoice.pk).update(issue_date=past, due_date=past + timedelta(days=30))

        services.record_payment(invoice.pk, Decimal("178.50"), cash.pk)
        invoice.refresh_from_db()

        assert invoice.status == Invoice.Status.PAID


@pytest.mark.django_db(transaction=True)
def test_events_are_published_after_commit(confirmed_reservation, cash, monkeypatch):
    bus = MessageBus()
    received = []
    bus.register_event_handler(PaymentRecorded, received.append)
    bus.register_event_handler(InvoicePaid, received.append)
    monkeypatch.setattr("shared.application.message_bus.message_bus", bus)

    invoice = services.issue_invoice(confirmed_reservation.pk)
    services.record_payment(invoice.pk, Decimal("178.50"), cash.pk)

    assert [type(event) for event in received] == [InvoicePaid, PaymentRecorded]
    assert received[0].number == invoice.number
