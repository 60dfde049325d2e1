"""Serializers for the reservation ledger."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Reservation


class ReservationSerializer(serializers.ModelSerializer):
    customer_code = serializers.CharField(source="customer.customer_code", read_only=True, allow_null=True)
    end_time = serializers.ReadOnlyField()

    class Meta:
        model = Reservation
        fields = [
            "id",
            "customer_code",
            "name",
            "phone_number",
            "email",
            "date",
            "start_time",
            "end_time",
            "duration",
            "number_of_people",
            "unit",
            "status",
            "source_channel",
            "external_key",
            "notes",
            "cancellation_reason",
            "cancelled_by",
            "cancelled_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ReservationCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255)
    cancelled_by = serializers.CharField(max_length=100, required=False, allow_blank=True)
