"""API views for reservations and their line items."""

from __future__ import annotations

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.application.message_bus import message_bus
from shared.domain.exceptions import ValidationError

from .application.command_handlers import (
    AttachLineItemCommand,
    CancelReservationCommand,
    CompleteReservationCommand,
    ConfirmReservationCommand,
    CreateCompleteReservationCommand,
    CreateReservationCommand,
    DeleteReservationCommand,
    DetachLineItemCommand,
    get_reservation_totals,
    list_line_items,
)
from .filters import ReservationFilterSet
from .models import LineItem, Reservation
from .serializers import (
    FlightSegmentRequestSerializer,
    HotelStayRequestSerializer,
    LineItemSerializer,
    PackageEnrollmentRequestSerializer,
    ReservationCancelSerializer,
    ReservationCompleteCreateSerializer,
    ReservationCreateSerializer,
    ReservationSerializer,
    ReservationTotalsSerializer,
    ServiceBookingRequestSerializer,
)


def _actor(request) -> str | None:
    user = request.user
    return user.get_username() if user and user.is_authenticated else None


class ReservationViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Reservation headers; every write goes through a reservation command."""

    queryset = Reservation.objects.select_related("client", "employee").all()
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r"\d+"
    filterset_class = ReservationFilterSet

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return ReservationCreateSerializer
        return ReservationSerializer

    def _respond(self, reservation: Reservation, status_code=status.HTTP_200_OK) -> Response:
        serializer = ReservationSerializer(reservation, context=self.get_serializer_context())
        return Response(serializer.data, status=status_code)

    @staticmethod
    def _employee_id(request, data) -> int:
        employee_id = data.get("employee")
        if employee_id is None:
            employee = getattr(request.user, "employee", None)
            if employee is None:
                raise ValidationError("An employee is required to open a reservation")
            employee_id = employee.pk
        return employee_id

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        reservation = message_bus.handle_command(
            CreateReservationCommand(
                client_id=data["client"],
                employee_id=self._employee_id(request, data),
                travel_start=data["travel_start"],
                travel_end=data["travel_end"],
                passengers=data["passengers"],
                description=data["description"],
                notes=data["notes"],
            )
        )
        return self._respond(reservation, status.HTTP_201_CREATED)

    @action(
        detail=False,
        methods=["post"],
        url_path="complete",
        url_name="create-complete",
        serializer_class=ReservationCompleteCreateSerializer,
    )
    def create_complete(self, request):  # type: ignore
        serializer = ReservationCompleteCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        reservation = message_bus.handle_command(
            CreateCompleteReservationCommand(
                client_id=data["client"],
                employee_id=self._employee_id(request, data),
                travel_start=data["travel_start"],
                travel_end=data["travel_end"],
                line_items=serializer.to_specs(),
                passengers=data["passengers"],
                description=data["description"],
                notes=data["notes"],
                performed_by=_actor(request),
            )
        )
        return self._respond(reservation, status.HTTP_201_CREATED)

    def destroy(self, request, *args, **kwargs):  # type: ignore
        message_bus.handle_command(DeleteReservationCommand(reservation_id=self.kwargs["pk"]))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):  # type: ignore
        reservation = message_bus.handle_command(ConfirmReservationCommand(reservation_id=pk))
        return self._respond(reservation)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):  # type: ignore
        reservation = message_bus.handle_command(CompleteReservationCommand(reservation_id=pk))
        return self._respond(reservation)

    @action(detail=True, methods=["post"], serializer_class=ReservationCancelSerializer)
    def cancel(self, request, pk=None):  # type: ignore
        serializer = ReservationCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reservation = message_bus.handle_command(
            CancelReservationCommand(reservation_id=pk, reason=serializer.validated_data["reason"])
        )
        return self._respond(reservation)

    @action(detail=True, methods=["get"], serializer_class=ReservationTotalsSerializer)
    def totals(self, request, pk=None):  # type: ignore
        totals = get_reservation_totals(pk)
        return Response(ReservationTotalsSerializer(totals).data)

    @action(detail=True, methods=["get"], url_path="line-items", serializer_class=LineItemSerializer)
    def line_items(self, request, pk=None):  # type: ignore
        items = list_line_items(pk)
        return Response(LineItemSerializer(items, many=True).data)

    def _attach(self, request, pk, serializer_class) -> Response:
        serializer = serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = message_bus.handle_command(
            AttachLineItemCommand(reservation_id=pk, spec=serializer.to_spec(), performed_by=_actor(request))
        )
        return Response(LineItemSerializer(item).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], url_path="hotel-stays", serializer_class=HotelStayRequestSerializer)
    def hotel_stays(self, request, pk=None):  # type: ignore
        return self._attach(request, pk, HotelStayRequestSerializer)

    @action(detail=True, methods=["post"], url_path="flight-segments", serializer_class=FlightSegmentRequestSerializer)
    def flight_segments(self, request, pk=None):  # type: ignore
        return self._attach(request, pk, FlightSegmentRequestSerializer)

    @action(
        detail=True,
        methods=["post"],
        url_path="package-enrollments",
        serializer_class=PackageEnrollmentRequestSerializer,
    )
    def package_enrollments(self, request, pk=None):  # type: ignore
        return self._attach(request, pk, PackageEnrollmentRequestSerializer)

    @action(detail=True, methods=["post"], url_path="services", serializer_class=ServiceBookingRequestSerializer)
    def services(self, request, pk=None):  # type: ignore
        return self._attach(request, pk, ServiceBookingRequestSerializer)


class LineItemViewSet(mixins.RetrieveModelMixin, mixins.DestroyModelMixin, viewsets.GenericViewSet):
    """Single line items; DELETE detaches the item from its reservation."""

    queryset = LineItem.objects.select_related("reservation").all()
    serializer_class = LineItemSerializer
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r"\d+"

    def destroy(self, request, *args, **kwargs):  # type: ignore
        message_bus.handle_command(
            DetachLineItemCommand(line_item_id=self.kwargs["pk"], performed_by=_actor(request))
        )
        return Response(status=status.HTTP_204_NO_CONTENT)
