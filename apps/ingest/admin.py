"""Admin registration for the processed message history."""

from __future__ import annotations

from django.contrib import admin

from .models import ProcessedMessage


@admin.register(ProcessedMessage)
class ProcessedMessageAdmin(admin.ModelAdmin):
    list_display = (
        "message_id",
        "source_type",
        "action_taken",
        "reservation",
        "subject",
        "processed_at",
    )
    list_filter = ("source_type", "action_taken", "processed_at")
    search_fields = ("message_id", "subject", "error_message", "reservation__id")
    readonly_fields = (
        "message_id",
        "source_type",
        "action_taken",
        "reservation",
        "error_message",
        "subject",
        "message_date",
        "processed_at",
    )

    def has_add_permission(self, request):  # type: ignore
        return False
