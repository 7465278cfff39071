"""Financial models: payment methods, invoices and payments."""

from __future__ import annotations

from decimal import Decimal

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.base import EventRecorder


class PaymentMethod(models.Model):
    """Way a client can pay (cash, card, transfer...)."""

    name = models.CharField(max_length=100)
    code = models.SlugField(max_length=30, unique=True)
    requires_verification = models.BooleanField(
        default=True,
        help_text=_("Payments with this method stay pending until someone approves them."),
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = _("Payment method")
        verbose_name_plural = _("Payment methods")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class InvoiceSequence(models.Model):
    """Per-year counter backing sequential invoice numbers."""

    year = models.PositiveIntegerField(unique=True)
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = _("Invoice sequence")
        verbose_name_plural = _("Invoice sequences")

    def __str__(self) -> str:
        return f"{self.year}: {self.last_value}"


class Invoice(EventRecorder, models.Model):
    """Invoice issued for a confirmed reservation."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        PAID = "paid", _("Paid")
        CANCELLED = "cancelled", _("Cancelled")

    # Derived on read, never stored
    OVERDUE = "overdue"

    reservation = models.OneToOneField(
        "reservations.Reservation",
        on_delete=models.PROTECT,
        related_name="invoice",
    )
    number = models.CharField(max_length=30, unique=True, editable=False)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=4)
    tax = models.DecimalField(max_digits=12, decimal_places=2)
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=12, decimal_places=2)
    paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    balance = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="COP")
    issue_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField()
    paid_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Invoice")
        verbose_name_plural = _("Invoices")
        ordering = ["-issue_date", "-pk"]
        constraints = [
            models.CheckConstraint(condition=models.Q(total__gte=0), name="invoice_total_non_negative"),
            models.CheckConstraint(condition=models.Q(balance__gte=0), name="invoice_balance_non_negative"),
            models.CheckConstraint(
                condition=models.Q(due_date__gte=models.F("issue_date")),
                name="invoice_due_after_issue",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "due_date"], name="invoice_status_due_idx"),
        ]

    def __str__(self) -> str:
        return f"Invoice {self.number} ({self.effective_status})"

    @property
    def effective_status(self) -> str:
        """Stored status, or ``overdue`` for unpaid pending invoices past their due date."""
        if (
            self.status == self.Status.PENDING
            and self.balance > 0
            and self.due_date < timezone.localdate()
        ):
            return self.OVERDUE
        return self.status

    @property
    def is_overdue(self) -> bool:
        return self.effective_status == self.OVERDUE


class Payment(models.Model):
    """Payment applied to an invoice."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        APPROVED = "approved", _("Approved")
        REJECTED = "rejected", _("Rejected")

    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="payments")
    method = models.ForeignKey(PaymentMethod, on_delete=models.PROTECT, related_name="payments")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    reference = models.CharField(
        max_length=100,
        unique=True,
        null=True,
        blank=True,
        help_text=_("Transaction reference from the bank or payment provider."),
    )
    paid_at = models.DateTimeField(default=timezone.now)
    decided_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.CharField(max_length=255, blank=True)
    recorded_by = models.CharField(max_length=150, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Payment")
        verbose_name_plural = _("Payments")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(condition=models.Q(amount__gt=0), name="payment_amount_positive"),
        ]
        indexes = [
            models.Index(fields=["invoice", "status"], name="payment_invoice_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Payment {self.pk} of {self.amount} on invoice {self.invoice_id} ({self.status})"

    def mark_approved(self) -> None:
        self.status = self.Status.APPROVED
        self.decided_at = timezone.now()
        self.save(update_fields=["status", "decided_at", "updated_at"])

    def mark_rejected(self, reason: str = "") -> None:
        self.status = self.Status.REJECTED
        self.rejection_reason = reason
        self.decided_at = timezone.now()
        self.save(update_fields=["status", "rejection_reason", "decided_at", "updated_at"])
