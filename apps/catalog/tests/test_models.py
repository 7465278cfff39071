from decimal import Decimal

import pytest

from apps.catalog.models import AdditionalService, Flight


@pytest.mark.django_db
def test_flight_price_for_fare_class(flight):
    assert flight.price_for(Flight.FareClass.ECONOMY) == Decimal("100.00")
    assert flight.price_for(Flight.FareClass.BUSINESS) == Decimal("250.00")
    assert Flight.seats_field_for("business") == "business_seats_available"


@pytest.mark.django_db
def test_service_without_stock_is_not_capacity_tracked():
    service = AdditionalService.objects.create(name="Travel insurance", unit_price=Decimal("12.00"))

    assert service.is_capacity_tracked is False
