"""URL routing for the reservations domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import ReservationViewSet

router = SimpleRouter()
router.register(r"", ReservationViewSet, basename="reservation")

urlpatterns = [
    path("", include(router.urls)),
]
