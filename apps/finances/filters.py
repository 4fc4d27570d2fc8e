"""FilterSet for earnings reports."""

from __future__ import annotations

import django_filters  # type: ignore

from apps.orders.models import ServiceOrder


class EarningsFilterSet(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name="service_date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="service_date", lookup_expr="lte")
    country = django_filters.CharFilter(field_name="service_country", lookup_expr="iexact")

    class Meta:
        model = ServiceOrder
        fields = ["status", "payment_status", "service_provider"]
