"""Customer registry models for BayLedger."""

from __future__ import annotations

from django.db import models, transaction  # type: ignore
from django.db.models import F, Q  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from .utils import normalize_phone


class Customer(models.Model):
    """A venue customer, deduplicated by normalized phone and email."""

    class ContactMethod(models.TextChoices):
        PHONE = "phone", _("Phone")
        EMAIL = "email", _("Email")

    customer_code = models.CharField(max_length=20, unique=True, editable=False)
    customer_name = models.CharField(max_length=255)
    contact_number = models.CharField(max_length=32, null=True, blank=True)
    email = models.EmailField(null=True, blank=True)
    normalized_phone = models.CharField(
        max_length=9,
        null=True,
        blank=True,
        editable=False,
        help_text=_("Last nine national digits of contact_number."),
    )
    preferred_contact_method = models.CharField(
        max_length=10,
        choices=ContactMethod.choices,
        default=ContactMethod.PHONE,
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Customer")
        verbose_name_plural = _("Customers")
        ordering = ["customer_code"]
        constraints = [
            models.UniqueConstraint(
                fields=["normalized_phone"],
                condition=Q(is_active=True) & Q(normalized_phone__isnull=False),
                name="uniq_active_customer_normalized_phone",
            ),
            models.CheckConstraint(
                condition=Q(contact_number__isnull=False) | Q(email__isnull=False),
                name="customer_has_contact",
            ),
        ]
        indexes = [
            models.Index(fields=["email"], name="customer_email_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.customer_code} {self.customer_name}"

    def save(self, *args, **kwargs):  # type: ignore
        self.normalized_phone = normalize_phone(self.contact_number) or None
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "contact_number" in update_fields:
            kwargs["update_fields"] = {*update_fields, "normalized_phone"}
        super().save(*args, **kwargs)


class CustomerCodeSequence(models.Model):
    """Store-owned counter backing customer codes.

    The increment is a single ``UPDATE ... SET last_value = last_value + 1``
    so concurrent writers never observe the same value.
    """

    DEFAULT_NAME = "customer_code"

    name = models.CharField(max_length=50, unique=True, default=DEFAULT_NAME)
    last_value = models.PositiveBigIntegerField(default=0)

    class Meta:
        verbose_name = _("Customer code sequence")

    def __str__(self) -> str:
        return f"{self.name}={self.last_value}"

    @classmethod
    def next_value(cls, name: str = DEFAULT_NAME) -> int:
        with transaction.atomic():
            updated = cls.objects.filter(name=name).update(last_value=F("last_value") + 1)
            if not updated:
                cls.objects.get_or_create(name=name)
                cls.objects.filter(name=name).update(last_value=F("last_value") + 1)
            return cls.objects.values_list("last_value", flat=True).get(name=name)
