"""Admin registrations for the catalog.

The admin is the only write surface for catalog rows.
"""

from __future__ import annotations

from django.contrib import admin

from .models import AdditionalService, Flight, Hotel, TourPackage


@admin.register(Hotel)
class HotelAdmin(admin.ModelAdmin):
    list_display = ("name", "city", "stars", "price_per_night", "is_active")
    list_filter = ("city", "is_active")
    search_fields = ("name", "city")


@admin.register(Flight)
class FlightAdmin(admin.ModelAdmin):
    list_display = (
        "flight_number",
        "origin",
        "destination",
        "departure_at",
        "economy_seats_available",
        "business_seats_available",
        "is_active",
    )
    list_filter = ("airline", "origin", "destination", "is_active")
    search_fields = ("flight_number", "origin", "destination")
    date_hierarchy = "departure_at"


@admin.register(TourPackage)
class TourPackageAdmin(admin.ModelAdmin):
    list_display = ("name", "destination", "duration_days", "price_per_person", "slots_available", "is_active")
    list_filter = ("destination", "is_active")
    search_fields = ("name", "destination")


@admin.register(AdditionalService)
class AdditionalServiceAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "unit_price", "units_available", "is_available", "is_active")
    list_filter = ("category", "is_available", "is_active")
    search_fields = ("name",)
