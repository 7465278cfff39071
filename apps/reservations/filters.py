"""FilterSet definitions for reservation listing."""

from __future__ import annotations

import django_filters  # type: ignore
from django import forms  # type: ignore

from .models import Reservation


class ReservationFilterForm(forms.Form):
    """Rejects a travel window whose end falls before its start."""

    def clean(self):  # type: ignore
        cleaned = super().clean()
        travel_from = cleaned.get("travel_from")
        travel_to = cleaned.get("travel_to")
        if travel_from and travel_to and travel_to < travel_from:
            raise forms.ValidationError("travel_to must not be before travel_from")
        return cleaned


class ReservationFilterSet(django_filters.FilterSet):
    """Reservations travelling entirely inside [travel_from, travel_to]."""

    travel_from = django_filters.DateFilter(field_name="travel_start", lookup_expr="gte")
    travel_to = django_filters.DateFilter(field_name="travel_end", lookup_expr="lte")

    class Meta:
        model = Reservation
        form = ReservationFilterForm
        fields = [
            "status",
            "client",
            "employee",
        ]
