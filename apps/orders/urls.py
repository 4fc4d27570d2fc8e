"""URL routing for service orders."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import ServiceOrderViewSet

router = DefaultRouter()
router.register(r"", ServiceOrderViewSet, basename="service-order")

urlpatterns = [
    path("", include(router.urls)),
]
