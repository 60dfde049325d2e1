"""Reservation ledger models for BayLedger."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.db.models import F, Q  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import TimeSlot, round_duration

from .constants import UNIT_CHOICES


class Reservation(models.Model):
    """A bay held for a party on one date and time slot."""

    class Status(models.TextChoices):
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")

    id = models.CharField(primary_key=True, max_length=16, editable=False)
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reservations",
    )
    name = models.CharField(max_length=255)
    phone_number = models.CharField(
        max_length=32,
        help_text=_("Contact phone at booking time, or a 0000-prefixed placeholder."),
    )
    email = models.EmailField(blank=True, default="")
    date = models.DateField()
    start_time = models.CharField(max_length=5, help_text=_("Canonical 24-hour HH:mm."))
    duration = models.DecimalField(max_digits=5, decimal_places=3, help_text=_("Hours, fractional allowed."))
    start_minute = models.PositiveSmallIntegerField(editable=False)
    end_minute = models.PositiveSmallIntegerField(
        editable=False,
        help_text=_("Not wrapped at midnight."),
    )
    number_of_people = models.PositiveSmallIntegerField()
    unit = models.CharField(max_length=20, choices=UNIT_CHOICES)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.CONFIRMED,
    )
    source_channel = models.CharField(max_length=64)
    external_key = models.CharField(max_length=128, null=True, blank=True)
    notes = models.TextField(blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    cancelled_by = models.CharField(max_length=100, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Reservation")
        verbose_name_plural = _("Reservations")
        ordering = ["date", "start_minute", "unit"]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_minute__gt=F("start_minute")),
                name="reservation_valid_slot",
            ),
            models.CheckConstraint(
                condition=Q(number_of_people__gte=1),
                name="reservation_party_size_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["unit", "date", "status"], name="reservation_unit_day_idx"),
            models.Index(fields=["date", "start_time"], name="reservation_day_start_idx"),
            models.Index(fields=["external_key"], name="reservation_external_key_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.id} {self.unit} {self.date} {self.start_time}"

    @property
    def slot(self) -> TimeSlot:
        """The stored minute bounds, the same ones the overlap checks compare."""
        if self.start_minute is None or self.end_minute is None:
            return TimeSlot.from_start(self.start_time, self.duration)
        return TimeSlot(self.start_minute, self.end_minute)

    @property
    def end_time(self) -> str:
        return self.slot.end_label

    def save(self, *args, **kwargs):  # type: ignore
        self.duration = round_duration(self.duration)
        slot = TimeSlot.from_start(self.start_time, self.duration)
        self.start_minute, self.end_minute = slot.start_minute, slot.end_minute
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and {"start_time", "duration"} & set(update_fields):
            kwargs["update_fields"] = {*update_fields, "duration", "start_minute", "end_minute"}
        super().save(*args, **kwargs)

    def mark_cancelled(self, reason: str, cancelled_by: str) -> None:
        self.status = self.Status.CANCELLED
        self.cancellation_reason = reason or ""
        self.cancelled_by = cancelled_by
        self.cancelled_at = timezone.now()
        self.save(update_fields=["status", "cancellation_reason", "cancelled_by", "cancelled_at", "updated_at"])
