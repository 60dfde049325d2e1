import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("customers", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Reservation",
            fields=[
                ("id", models.CharField(editable=False, max_length=16, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                (
                    "phone_number",
                    models.CharField(
                        help_text="Contact phone at booking time, or a 0000-prefixed placeholder.",
                        max_length=32,
                    ),
                ),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("date", models.DateField()),
                ("start_time", models.CharField(help_text="Canonical 24-hour HH:mm.", max_length=5)),
                (
                    "duration",
                    models.DecimalField(decimal_places=3, help_text="Hours, fractional allowed.", max_digits=5),
                ),
                ("start_minute", models.PositiveSmallIntegerField(editable=False)),
                ("end_minute", models.PositiveSmallIntegerField(editable=False, help_text="Not wrapped at midnight.")),
                ("number_of_people", models.PositiveSmallIntegerField()),
                (
                    "unit",
                    models.CharField(
                        choices=[("Bay 1", "Bay 1"), ("Bay 2", "Bay 2"), ("Bay 3", "Bay 3"), ("Bay 4", "Bay 4")],
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("confirmed", "Confirmed"), ("cancelled", "Cancelled")],
                        default="confirmed",
                        max_length=20,
                    ),
                ),
                ("source_channel", models.CharField(max_length=64)),
                ("external_key", models.CharField(blank=True, max_length=128, null=True)),
                ("notes", models.TextField(blank=True)),
                ("cancellation_reason", models.CharField(blank=True, max_length=255)),
                ("cancelled_by", models.CharField(blank=True, max_length=100)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reservations",
                        to="customers.customer",
                    ),
                ),
            ],
            options={
                "verbose_name": "Reservation",
                "verbose_name_plural": "Reservations",
                "ordering": ["date", "start_minute", "unit"],
                "indexes": [
                    models.Index(fields=["unit", "date", "status"], name="reservation_unit_day_idx"),
                    models.Index(fields=["date", "start_time"], name="reservation_day_start_idx"),
                    models.Index(fields=["external_key"], name="reservation_external_key_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("end_minute__gt", models.F("start_minute"))),
                        name="reservation_valid_slot",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("number_of_people__gte", 1)),
                        name="reservation_party_size_positive",
                    ),
                ],
            },
        ),
    ]
