"""URL routing for reservations and line items."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import LineItemViewSet, ReservationViewSet

router = DefaultRouter()
router.register(r"reservations", ReservationViewSet, basename="reservation")
router.register(r"line-items", LineItemViewSet, basename="line-item")

urlpatterns = [
    path("", include(router.urls)),
]
