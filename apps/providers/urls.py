"""URL routing for the provider catalog."""

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import ServiceCategoryViewSet, ServiceProviderViewSet

router = DefaultRouter()
router.register(r'categories', ServiceCategoryViewSet, basename='service-category')
router.register(r'', ServiceProviderViewSet, basename='service-provider')

urlpatterns = [path('', include(router.urls))]
