"""URL routing for job assignments."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import JobAssignmentViewSet, ServiceBookingViewSet

router = DefaultRouter()
router.register(r"service-bookings", ServiceBookingViewSet, basename="service-booking")
router.register(r"", JobAssignmentViewSet, basename="job-assignment")

urlpatterns = [
    path("", include(router.urls)),
]
