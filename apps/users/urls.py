"""URL declarations for the users app."""

from __future__ import annotations

from django.urls import path, include  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import RoleChangeRequestViewSet, UserViewSet

router = DefaultRouter()
router.register(r'role-change-requests', RoleChangeRequestViewSet, basename='role-change-request')
router.register(r'', UserViewSet, basename='user')

urlpatterns = [
    path('', include(router.urls)),
]
