"""FilterSet definitions for the processed message history."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import ProcessedMessage


class ProcessedMessageFilterSet(django_filters.FilterSet):
    processed_from = django_filters.IsoDateTimeFilter(field_name="processed_at", lookup_expr="gte")
    processed_to = django_filters.IsoDateTimeFilter(field_name="processed_at", lookup_expr="lte")

    class Meta:
        model = ProcessedMessage
        fields = [
            "source_type",
            "action_taken",
            "message_id",
        ]
