"""Admin registrations for reservations.

Line items are read-only here: they change only through the reservation
commands so capacity and totals stay consistent.
"""

from __future__ import annotations

from django.contrib import admin

from .models import LineItem, Reservation


class LineItemInline(admin.TabularInline):
    model = LineItem
    extra = 0
    can_delete = False
    fields = ("kind", "quantity", "unit_price", "subtotal", "holds_capacity", "created_at")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):  # type: ignore
        return False


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = ("id", "client", "employee", "status", "travel_start", "travel_end", "total", "paid", "balance")
    list_filter = ("status", "travel_start")
    search_fields = ("client__first_name", "client__last_name", "client__document_number", "description")
    readonly_fields = (
        "status",
        "total",
        "paid",
        "balance",
        "confirmed_at",
        "cancelled_at",
        "completed_at",
        "created_at",
        "updated_at",
    )
    raw_id_fields = ("client", "employee")
    inlines = [LineItemInline]
