"""FilterSet definitions for the reservation listing."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Reservation


class ReservationFilterSet(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name="date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="date", lookup_expr="lte")
    source_channel = django_filters.CharFilter(field_name="source_channel", lookup_expr="iexact")
    customer = django_filters.CharFilter(field_name="customer__customer_code", lookup_expr="exact")

    class Meta:
        model = Reservation
        fields = [
            "date",
            "unit",
            "status",
            "external_key",
        ]
