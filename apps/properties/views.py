"""Property API views."""

from __future__ import annotations

from rest_framework import permissions, viewsets  # type: ignore

from .filters import PropertyFilterSet
from .models import Property
from .serializers import PropertySerializer


class PropertyViewSet(viewsets.ReadOnlyModelViewSet):
    """Публичный каталог активных объектов. Редактирование идёт через админку."""

    queryset = Property.objects.filter(is_active=True).select_related("owner")
    serializer_class = PropertySerializer
    permission_classes = [permissions.AllowAny]
    filterset_class = PropertyFilterSet
