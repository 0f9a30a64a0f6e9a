import uuid

import django.core.validators
import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("authentication", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Opportunity",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified"),
                ),
                ("title", models.CharField(max_length=200)),
                ("company_name", models.CharField(blank=True, default="", max_length=200)),
                ("description", models.TextField(blank=True, default="")),
                (
                    "amount",
                    models.PositiveIntegerField(
                        help_text="Total price in the smallest currency unit (e.g., cents)",
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                ("currency", models.CharField(default="usd", max_length=3)),
                ("is_open", models.BooleanField(db_index=True, default=True)),
                (
                    "poster",
                    models.ForeignKey(
                        help_text="User who posted the opportunity",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="opportunities",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "opportunities",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="opportunity_amount_positive",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="JobApplication",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified"),
                ),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1, help_text="Version for optimistic locking - incremented on each save"
                    ),
                ),
                ("opportunity_title", models.CharField(max_length=200)),
                ("company_name", models.CharField(blank=True, default="", max_length=200)),
                ("name", models.CharField(max_length=200)),
                ("email", models.EmailField(max_length=254)),
                ("phone", models.CharField(blank=True, default="", max_length=50)),
                ("cover_letter", models.TextField()),
                ("portfolio_url", models.URLField(blank=True, default="")),
                ("rate", models.CharField(blank=True, default="", max_length=100)),
                ("availability", models.CharField(blank=True, default="", max_length=200)),
                ("additional_info", models.TextField(blank=True, default="")),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("hired", "Hired"),
                            ("completed", "Completed"),
                            ("paid", "Paid"),
                            ("rejected", "Rejected"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=50,
                        protected=True,
                    ),
                ),
                ("total_amount", models.PositiveIntegerField(blank=True, null=True)),
                ("deposit_amount", models.PositiveIntegerField(blank=True, null=True)),
                ("platform_fee", models.PositiveIntegerField(blank=True, null=True)),
                ("remaining_amount", models.PositiveIntegerField(blank=True, null=True)),
                ("platform_fee_on_remaining", models.PositiveIntegerField(blank=True, null=True)),
                ("total_platform_fee", models.PositiveIntegerField(blank=True, null=True)),
                ("transfer_amount", models.PositiveIntegerField(blank=True, null=True)),
                ("total_transfer_amount", models.PositiveIntegerField(blank=True, null=True)),
                ("applicant_connect_account_id", models.CharField(blank=True, default="", max_length=255)),
                ("deposit_paid", models.BooleanField(default=False)),
                ("deposit_payment_intent_id", models.CharField(blank=True, default="", max_length=255)),
                ("deposit_checkout_session_id", models.CharField(blank=True, default="", max_length=255)),
                ("final_payment_paid", models.BooleanField(default=False)),
                ("final_payment_intent_id", models.CharField(blank=True, default="", max_length=255)),
                ("final_checkout_session_id", models.CharField(blank=True, default="", max_length=255)),
                ("hired_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("deposit_paid_at", models.DateTimeField(blank=True, null=True)),
                ("final_payment_paid_at", models.DateTimeField(blank=True, null=True)),
                ("rejected_at", models.DateTimeField(blank=True, null=True)),
                (
                    "applicant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="job_applications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "opportunity",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="applications",
                        to="jobs.opportunity",
                    ),
                ),
                (
                    "poster",
                    models.ForeignKey(
                        help_text="Copied from the opportunity when the application is created",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="received_job_applications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["poster", "status"], name="jobapp_poster_status_idx"),
                    models.Index(fields=["applicant", "status"], name="jobapp_applicant_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("opportunity", "applicant"),
                        name="unique_application_per_opportunity",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Settlement",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified"),
                ),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1, help_text="Version for optimistic locking - incremented on each save"
                    ),
                ),
                (
                    "stage",
                    models.CharField(choices=[("deposit", "Deposit"), ("final", "Final Payment")], max_length=20),
                ),
                ("idempotency_key", models.CharField(max_length=100, unique=True)),
                ("attempt", models.PositiveIntegerField(default=0)),
                ("amount", models.PositiveIntegerField()),
                ("application_fee", models.PositiveIntegerField(default=0)),
                ("destination_account_id", models.CharField(max_length=255)),
                ("checkout_session_id", models.CharField(blank=True, db_index=True, default="", max_length=255)),
                ("checkout_url", models.URLField(blank=True, default="", max_length=2000)),
                ("is_paid", models.BooleanField(default=False)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("payment_intent_id", models.CharField(blank=True, default="", max_length=255)),
                (
                    "application",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="settlements",
                        to="jobs.jobapplication",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("application", "stage"),
                        name="unique_settlement_per_stage",
                    )
                ],
            },
        ),
    ]
