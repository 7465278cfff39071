"""Serializers for invoices and payments."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers  # type: ignore

from .models import Invoice, Payment, PaymentMethod


class PaymentMethodSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentMethod
        fields = ["id", "name", "code", "requires_verification", "is_active"]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    method_name = serializers.ReadOnlyField(source="method.name")

    class Meta:
        model = Payment
        fields = [
            "id",
            "invoice",
            "method",
            "method_name",
            "amount",
            "status",
            "reference",
            "paid_at",
            "decided_at",
            "rejection_reason",
            "recorded_by",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class PaymentCreateSerializer(serializers.Serializer):
    invoice = serializers.IntegerField()
    method = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class PaymentRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class InvoiceSerializer(serializers.ModelSerializer):
    """Invoice with its derived status and payments."""

    effective_status = serializers.ReadOnlyField()
    payments = PaymentSerializer(many=True, read_only=True)

    class Meta:
        model = Invoice
        fields = [
            "id",
            "reservation",
            "number",
            "status",
            "effective_status",
            "subtotal",
            "tax_rate",
            "tax",
            "discount",
            "total",
            "paid",
            "balance",
            "currency",
            "issue_date",
            "due_date",
            "paid_at",
            "cancelled_at",
            "notes",
            "payments",
            "created_at",
        ]
        read_only_fields = fields


class InvoiceIssueSerializer(serializers.Serializer):
    reservation = serializers.IntegerField()
    discount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"), default=Decimal("0"))
    tax_rate = serializers.DecimalField(
        max_digits=5,
        decimal_places=4,
        min_value=Decimal("0"),
        max_value=Decimal("1"),
        required=False,
        allow_null=True,
        default=None,
    )
    due_date = serializers.DateField(required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class InvoiceCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
