"""URL routing for the finance domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import EarningsView, PlatformSettingViewSet

router = DefaultRouter()
router.register(r"settings", PlatformSettingViewSet, basename="platform-setting")

urlpatterns = [
    path("earnings/", EarningsView.as_view(), name="earnings"),
    path("", include(router.urls)),
]
