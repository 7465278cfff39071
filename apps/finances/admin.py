"""Admin registrations for the finances domain."""

from __future__ import annotations

from django.contrib import admin

from .models import Invoice, InvoiceSequence, Payment, PaymentMethod


@admin.register(PaymentMethod)
class PaymentMethodAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "requires_verification", "is_active")
    list_filter = ("requires_verification", "is_active")
    search_fields = ("name", "code")


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    can_delete = False
    fields = ("amount", "method", "status", "reference", "paid_at", "decided_at")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):  # type: ignore
        return False


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("number", "reservation", "status", "total", "paid", "balance", "due_date")
    list_filter = ("status", "issue_date", "due_date")
    search_fields = ("number",)
    readonly_fields = (
        "number",
        "reservation",
        "status",
        "subtotal",
        "tax_rate",
        "tax",
        "discount",
        "total",
        "paid",
        "balance",
        "issue_date",
        "paid_at",
        "cancelled_at",
        "created_at",
        "updated_at",
    )
    inlines = [PaymentInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "invoice", "method", "amount", "status", "reference", "created_at")
    list_filter = ("status", "method")
    search_fields = ("reference", "invoice__number")
    readonly_fields = ("invoice", "method", "amount", "status", "decided_at", "created_at", "updated_at")


@admin.register(InvoiceSequence)
class InvoiceSequenceAdmin(admin.ModelAdmin):
    list_display = ("year", "last_value")
    readonly_fields = ("year", "last_value")
