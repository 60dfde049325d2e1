"""Admin registration for reservations."""

from __future__ import annotations

from django.contrib import admin

from .models import Reservation


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "name",
        "date",
        "start_time",
        "duration",
        "number_of_people",
        "unit",
        "status",
        "source_channel",
        "created_at",
    )
    list_filter = ("status", "unit", "source_channel", "date")
    search_fields = ("id", "name", "phone_number", "email", "external_key", "customer__customer_code")
    readonly_fields = (
        "id",
        "start_minute",
        "end_minute",
        "cancelled_at",
        "created_at",
        "updated_at",
    )
