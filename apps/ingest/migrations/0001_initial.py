import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("reservations", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ProcessedMessage",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("message_id", models.CharField(max_length=255, unique=True)),
                (
                    "source_type",
                    models.CharField(
                        choices=[
                            ("classpass", "ClassPass"),
                            ("resos", "ResOS"),
                            ("website", "Website"),
                            ("meta_lead", "Meta Lead"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "action_taken",
                    models.CharField(
                        choices=[
                            ("reservation_created", "Reservation created"),
                            ("reservation_cancelled", "Reservation cancelled"),
                            ("no_capacity", "No capacity"),
                            ("error", "Error"),
                        ],
                        max_length=30,
                    ),
                ),
                ("error_message", models.TextField(blank=True, null=True)),
                ("subject", models.CharField(blank=True, max_length=500, null=True)),
                ("message_date", models.DateTimeField(blank=True, null=True)),
                ("processed_at", models.DateTimeField(auto_now_add=True)),
                (
                    "reservation",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="processed_messages",
                        to="reservations.reservation",
                    ),
                ),
            ],
            options={
                "verbose_name": "Processed message",
                "verbose_name_plural": "Processed messages",
                "ordering": ["-processed_at", "-pk"],
                "indexes": [
                    models.Index(fields=["source_type", "processed_at"], name="processed_source_idx"),
                    models.Index(fields=["action_taken"], name="processed_action_idx"),
                ],
            },
        ),
    ]
