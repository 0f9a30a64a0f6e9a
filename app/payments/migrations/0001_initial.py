import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("authentication", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ConnectedAccount",
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
                    "stripe_account_id",
                    models.CharField(
                        db_index=True, help_text="Stripe Account ID (acct_xxx)", max_length=255, unique=True
                    ),
                ),
                (
                    "onboarding_status",
                    models.CharField(
                        choices=[
                            ("not_started", "Not Started"),
                            ("in_progress", "In Progress"),
                            ("complete", "Complete"),
                            ("rejected", "Rejected"),
                        ],
                        db_index=True,
                        default="not_started",
                        help_text="Current Stripe Connect onboarding status",
                        max_length=20,
                    ),
                ),
                (
                    "charges_enabled",
                    models.BooleanField(default=False, help_text="Whether Stripe has enabled charges for this account"),
                ),
                (
                    "payouts_enabled",
                    models.BooleanField(default=False, help_text="Whether Stripe has enabled payouts for this account"),
                ),
                (
                    "transfers_enabled",
                    models.BooleanField(default=False, help_text="Whether the transfers capability is active"),
                ),
                (
                    "metadata",
                    models.JSONField(
                        blank=True, default=dict, help_text="Arbitrary JSON metadata (e.g., requirements due)"
                    ),
                ),
                (
                    "profile",
                    models.OneToOneField(
                        help_text="Profile this connected account belongs to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="connected_account",
                        to="authentication.profile",
                    ),
                ),
            ],
            options={
                "verbose_name": "Connected Account",
                "verbose_name_plural": "Connected Accounts",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="WebhookEvent",
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
                    "stripe_event_id",
                    models.CharField(
                        db_index=True,
                        help_text="Stripe Event ID (evt_xxx) - unique constraint for idempotency",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "event_type",
                    models.CharField(
                        db_index=True,
                        help_text="Stripe event type (e.g., 'checkout.session.completed')",
                        max_length=100,
                    ),
                ),
                ("payload", models.JSONField(help_text="Full webhook payload from Stripe (JSON)")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("processed", "Processed"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current processing status",
                        max_length=20,
                    ),
                ),
                (
                    "processed_at",
                    models.DateTimeField(blank=True, help_text="When event was successfully processed", null=True),
                ),
                (
                    "error_message",
                    models.TextField(blank=True, help_text="Error message if processing failed", null=True),
                ),
                (
                    "retry_count",
                    models.PositiveSmallIntegerField(default=0, help_text="Number of processing attempts"),
                ),
            ],
            options={
                "verbose_name": "Webhook Event",
                "verbose_name_plural": "Webhook Events",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="webhook_status_created_idx"),
                    models.Index(fields=["status", "retry_count"], name="webhook_status_retry_idx"),
                ],
            },
        ),
    ]
