"""Processed message ledger for BayLedger."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class ProcessedMessage(models.Model):
    """One row per upstream message; the at-most-once processing barrier."""

    class SourceType(models.TextChoices):
        CLASSPASS = "classpass", _("ClassPass")
        RESOS = "resos", _("ResOS")
        WEBSITE = "website", _("Website")
        META_LEAD = "meta_lead", _("Meta Lead")

    class Action(models.TextChoices):
        RESERVATION_CREATED = "reservation_created", _("Reservation created")
        RESERVATION_CANCELLED = "reservation_cancelled", _("Reservation cancelled")
        NO_CAPACITY = "no_capacity", _("No capacity")
        ERROR = "error", _("Error")

    message_id = models.CharField(max_length=255, unique=True)
    source_type = models.CharField(max_length=20, choices=SourceType.choices)
    action_taken = models.CharField(max_length=30, choices=Action.choices)
    reservation = models.ForeignKey(
        "reservations.Reservation",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="processed_messages",
    )
    error_message = models.TextField(null=True, blank=True)
    subject = models.CharField(max_length=500, null=True, blank=True)
    message_date = models.DateTimeField(null=True, blank=True)
    processed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Processed message")
        verbose_name_plural = _("Processed messages")
        ordering = ["-processed_at", "-pk"]
        indexes = [
            models.Index(fields=["source_type", "processed_at"], name="processed_source_idx"),
            models.Index(fields=["action_taken"], name="processed_action_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.message_id} [{self.source_type}] {self.action_taken}"
