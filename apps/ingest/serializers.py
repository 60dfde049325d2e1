"""Serializers for the processed message history."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import ProcessedMessage


class ProcessedMessageSerializer(serializers.ModelSerializer):
    reservation_id = serializers.CharField(read_only=True, allow_null=True)

    class Meta:
        model = ProcessedMessage
        fields = [
            "id",
            "message_id",
            "source_type",
            "action_taken",
            "reservation_id",
            "error_message",
            "subject",
            "message_date",
            "processed_at",
        ]
        read_only_fields = fields


class ProcessedMessageStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    by_action = serializers.DictField(child=serializers.IntegerField())
    by_source = serializers.DictField(child=serializers.IntegerField())
