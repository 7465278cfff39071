"""Serializers for the reservations API."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers  # type: ignore

from apps.catalog.models import Flight

from .line_items import (
    FlightSegmentSpec,
    HotelStaySpec,
    PackageEnrollmentSpec,
    ServiceBookingSpec,
)
from .models import FlightSegment, HotelStay, LineItem, PackageEnrollment, Reservation, ServiceBooking


class ReservationSerializer(serializers.ModelSerializer):
    """Reservation header with its running totals."""

    client_name = serializers.ReadOnlyField(source="client.full_name")
    line_item_count = serializers.SerializerMethodField()

    class Meta:
        model = Reservation
        fields = [
            "id",
            "client",
            "client_name",
            "employee",
            "status",
            "travel_start",
            "travel_end",
            "passengers",
            "description",
            "notes",
            "total",
            "paid",
            "balance",
            "currency",
            "line_item_count",
            "cancellation_reason",
            "confirmed_at",
            "cancelled_at",
            "completed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_line_item_count(self, obj: Reservation) -> int:
        return obj.line_items.count()


class ReservationCreateSerializer(serializers.Serializer):
    client = serializers.IntegerField()
    employee = serializers.IntegerField(required=False)
    travel_start = serializers.DateField()
    travel_end = serializers.DateField()
    passengers = serializers.IntegerField(min_value=1, default=1)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ReservationCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class ReservationTotalsSerializer(serializers.Serializer):
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    paid = serializers.DecimalField(max_digits=12, decimal_places=2)
    balance = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Pre-tax total minus approved payments; negative by the tax amount once a taxed invoice is settled.",
    )


# ===== Line item requests =====

class HotelStayRequestSerializer(serializers.Serializer):
    hotel = serializers.IntegerField()
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    rooms = serializers.IntegerField(min_value=1, default=1)
    room_type = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    guests = serializers.IntegerField(min_value=1, default=1)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def to_spec(self) -> HotelStaySpec:
        return self.build_spec(self.validated_data)

    @staticmethod
    def build_spec(data) -> HotelStaySpec:
        return HotelStaySpec(
            hotel_id=data["hotel"],
            check_in=data["check_in"],
            check_out=data["check_out"],
            rooms=data["rooms"],
            room_type=data["room_type"],
            guests=data["guests"],
            notes=data["notes"],
        )


class FlightSegmentRequestSerializer(serializers.Serializer):
    flight = serializers.IntegerField()
    passengers = serializers.IntegerField(min_value=1)
    fare_class = serializers.ChoiceField(choices=Flight.FareClass.choices, default=Flight.FareClass.ECONOMY)
    seat_assignments = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    extra_baggage_cost = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0"), default=Decimal("0")
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def to_spec(self) -> FlightSegmentSpec:
        return self.build_spec(self.validated_data)

    @staticmethod
    def build_spec(data) -> FlightSegmentSpec:
        return FlightSegmentSpec(
            flight_id=data["flight"],
            passengers=data["passengers"],
            fare_class=data["fare_class"],
            seat_assignments=data["seat_assignments"],
            extra_baggage_cost=data["extra_baggage_cost"],
            notes=data["notes"],
        )


class PackageEnrollmentRequestSerializer(serializers.Serializer):
    package = serializers.IntegerField()
    people = serializers.IntegerField(min_value=1)
    start_date = serializers.DateField()
    end_date = serializers.DateField(required=False, allow_null=True, default=None)
    customizations = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def to_spec(self) -> PackageEnrollmentSpec:
        return self.build_spec(self.validated_data)

    @staticmethod
    def build_spec(data) -> PackageEnrollmentSpec:
        return PackageEnrollmentSpec(
            package_id=data["package"],
            people=data["people"],
            start_date=data["start_date"],
            end_date=data["end_date"],
            customizations=data["customizations"],
            notes=data["notes"],
        )


class ServiceBookingRequestSerializer(serializers.Serializer):
    service = serializers.IntegerField()
    units = serializers.IntegerField(min_value=1)
    service_date = serializers.DateField(required=False, allow_null=True, default=None)
    service_time = serializers.TimeField(required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def to_spec(self) -> ServiceBookingSpec:
        return self.build_spec(self.validated_data)

    @staticmethod
    def build_spec(data) -> ServiceBookingSpec:
        return ServiceBookingSpec(
            service_id=data["service"],
            units=data["units"],
            service_date=data["service_date"],
            service_time=data["service_time"],
            notes=data["notes"],
        )


# ===== Complete reservation request =====

class ReservationCompleteCreateSerializer(ReservationCreateSerializer):
    """Reservation header plus every line item, created in one transaction."""

    hotel_stays = HotelStayRequestSerializer(many=True, required=False, default=list)
    flight_segments = FlightSegmentRequestSerializer(many=True, required=False, default=list)
    package_enrollments = PackageEnrollmentRequestSerializer(many=True, required=False, default=list)
    services = ServiceBookingRequestSerializer(many=True, required=False, default=list)

    def to_specs(self) -> list:
        data = self.validated_data
        return (
            [HotelStayRequestSerializer.build_spec(item) for item in data["hotel_stays"]]
            + [FlightSegmentRequestSerializer.build_spec(item) for item in data["flight_segments"]]
            + [PackageEnrollmentRequestSerializer.build_spec(item) for item in data["package_enrollments"]]
            + [ServiceBookingRequestSerializer.build_spec(item) for item in data["services"]]
        )


# ===== Line item output =====

class LineItemSerializer(serializers.ModelSerializer):
    """Common line item fields plus the kind-specific ones under ``details``."""

    details = serializers.SerializerMethodField()

    class Meta:
        model = LineItem
        fields = [
            "id",
            "reservation",
            "kind",
            "quantity",
            "unit_price",
            "subtotal",
            "notes",
            "details",
            "created_at",
        ]
        read_only_fields = fields

    def get_details(self, obj: LineItem) -> dict:
        item = obj.detail
        if isinstance(item, HotelStay):
            return {
                "hotel": item.hotel_id,
                "check_in": item.check_in.isoformat(),
                "check_out": item.check_out.isoformat(),
                "nights": item.nights,
                "room_type": item.room_type,
                "guests": item.guests,
            }
        if isinstance(item, FlightSegment):
            return {
                "flight": item.flight_id,
                "fare_class": item.fare_class,
                "travel_date": item.travel_date.isoformat(),
                "seat_assignments": item.seat_assignments,
                "extra_baggage_cost": str(item.extra_baggage_cost),
            }
        if isinstance(item, PackageEnrollment):
            return {
                "package": item.package_id,
                "start_date": item.start_date.isoformat(),
                "end_date": item.end_date.isoformat(),
                "customizations": item.customizations,
            }
        if isinstance(item, ServiceBooking):
            return {
                "service": item.service_id,
                "service_date": item.service_date.isoformat() if item.service_date else None,
                "service_time": item.service_time.isoformat() if item.service_time else None,
            }
        return {}
