"""API views for invoices and payments."""

from __future__ import annotations

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from . import services
from .models import Invoice, Payment, PaymentMethod
from .serializers import (
    InvoiceCancelSerializer,
    InvoiceIssueSerializer,
    InvoiceSerializer,
    PaymentCreateSerializer,
    PaymentMethodSerializer,
    PaymentRejectSerializer,
    PaymentSerializer,
)


class PaymentMethodViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = PaymentMethod.objects.filter(is_active=True)
    serializer_class = PaymentMethodSerializer
    permission_classes = [permissions.IsAuthenticated]


class InvoiceViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Invoices are issued through POST and never edited afterwards."""

    queryset = Invoice.objects.select_related("reservation").prefetch_related("payments__method")
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["status", "reservation"]
    lookup_value_regex = r"\d+"

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return InvoiceIssueSerializer
        return InvoiceSerializer

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        invoice = services.issue_invoice(
            data["reservation"],
            discount=data["discount"],
            tax_rate=data["tax_rate"],
            due_date=data["due_date"],
            notes=data["notes"],
        )
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], serializer_class=InvoiceCancelSerializer)
    def cancel(self, request, pk=None):  # type: ignore
        serializer = InvoiceCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        invoice = services.cancel_invoice(pk, reason=serializer.validated_data["reason"])
        return Response(InvoiceSerializer(invoice).data)


class PaymentViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    queryset = Payment.objects.select_related("invoice", "method")
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["status", "invoice", "method"]
    lookup_value_regex = r"\d+"

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return PaymentCreateSerializer
        return PaymentSerializer

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        payment = services.record_payment(
            data["invoice"],
            data["amount"],
            data["method"],
            data["reference"],
            notes=data["notes"],
            performed_by=request.user.get_username(),
        )
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):  # type: ignore
        payment = services.approve_payment(pk)
        return Response(PaymentSerializer(payment).data)

    @action(detail=True, methods=["post"], serializer_class=PaymentRejectSerializer)
    def reject(self, request, pk=None):  # type: ignore
        serializer = PaymentRejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = services.reject_payment(pk, reason=serializer.validated_data["reason"])
        return Response(PaymentSerializer(payment).data)
