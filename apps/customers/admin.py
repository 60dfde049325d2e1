"""Admin registration for customers."""

from __future__ import annotations

from django.contrib import admin

from .models import Customer, CustomerCodeSequence


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = (
        "customer_code",
        "customer_name",
        "contact_number",
        "email",
        "preferred_contact_method",
        "is_active",
        "created_at",
    )
    list_filter = ("is_active", "preferred_contact_method")
    search_fields = ("customer_code", "customer_name", "contact_number", "normalized_phone", "email")
    readonly_fields = ("customer_code", "normalized_phone", "created_at", "updated_at")


@admin.register(CustomerCodeSequence)
class CustomerCodeSequenceAdmin(admin.ModelAdmin):
    list_display = ("name", "last_value")
