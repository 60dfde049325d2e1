from django.contrib.postgres.operations import TrigramExtension
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        TrigramExtension(),
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("customer_code", models.CharField(editable=False, max_length=20, unique=True)),
                ("customer_name", models.CharField(max_length=255)),
                ("contact_number", models.CharField(blank=True, max_length=32, null=True)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                (
                    "normalized_phone",
                    models.CharField(
                        blank=True,
                        editable=False,
                        help_text="Last nine national digits of contact_number.",
                        max_length=9,
                        null=True,
                    ),
                ),
                (
                    "preferred_contact_method",
                    models.CharField(
                        choices=[("phone", "Phone"), ("email", "Email")],
                        default="phone",
                        max_length=10,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Customer",
                "verbose_name_plural": "Customers",
                "ordering": ["customer_code"],
                "indexes": [models.Index(fields=["email"], name="customer_email_idx")],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_active", True), ("normalized_phone__isnull", False)),
                        fields=("normalized_phone",),
                        name="uniq_active_customer_normalized_phone",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("contact_number__isnull", False), ("email__isnull", False), _connector="OR"),
                        name="customer_has_contact",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CustomerCodeSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(default="customer_code", max_length=50, unique=True)),
                ("last_value", models.PositiveBigIntegerField(default=0)),
            ],
            options={
                "verbose_name": "Customer code sequence",
            },
        ),
    ]
