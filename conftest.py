"""Shared pytest fixtures: customers, catalog rows and a reservation."""

from __future__ import annotations

from datetime import datetime, time, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.catalog.models import AdditionalService, Flight, Hotel, TourPackage
from apps.customers.models import Client, Employee
from apps.finances.models import PaymentMethod
from apps.reservations.models import Reservation


@pytest.fixture
def travel_start():
    return timezone.localdate() + timedelta(days=10)


@pytest.fixture
def travel_end(travel_start):
    return travel_start + timedelta(days=7)


@pytest.fixture
def client_record(db):
    return Client.objects.create(
        first_name="Ana",
        last_name="Gómez",
        document_number="1020304050",
        email="ana@example.com",
    )


@pytest.fixture
def employee(db):
    return Employee.objects.create(
        first_name="Luis",
        last_name="Pérez",
        email="luis@agency.example.com",
        position="Sales agent",
    )


@pytest.fixture
def reservation(client_record, employee, travel_start, travel_end):
    return Reservation.objects.create(
        client=client_record,
        employee=employee,
        travel_start=travel_start,
        travel_end=travel_end,
        passengers=2,
    )


@pytest.fixture
def hotel(db):
    return Hotel.objects.create(name="Hotel Caribe", city="Cartagena", price_per_night=Decimal("50.00"))


@pytest.fixture
def flight(db, travel_start):
    departure = timezone.make_aware(datetime.combine(travel_start, time(8, 30)))
    return Flight.objects.create(
        flight_number="AV123",
        airline="Avianca",
        origin="BOG",
        destination="CTG",
        departure_at=departure,
        arrival_at=departure + timedelta(hours=1, minutes=30),
        economy_price=Decimal("100.00"),
        business_price=Decimal("250.00"),
        economy_seats_total=10,
        economy_seats_available=10,
        business_seats_total=2,
        business_seats_available=2,
    )


@pytest.fixture
def tour_package(db):
    return TourPackage.objects.create(
        name="Islas del Rosario",
        destination="Cartagena",
        duration_days=3,
        price_per_person=Decimal("80.00"),
        slots_total=5,
        slots_available=5,
        min_people=1,
        max_people=4,
    )


@pytest.fixture
def additional_service(db):
    return AdditionalService.objects.create(
        name="Airport transfer",
        category=AdditionalService.Category.TRANSFER,
        unit_price=Decimal("15.00"),
        units_total=3,
        units_available=3,
        max_units_per_booking=2,
    )


@pytest.fixture
def cash(db):
    return PaymentMethod.objects.create(name="Cash", code="cash", requires_verification=False)


@pytest.fixture
def bank_transfer(db):
    return PaymentMethod.objects.create(name="Bank transfer", code="transfer", requires_verification=True)
