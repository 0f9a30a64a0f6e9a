"""
WebhookEvent model for Stripe webhook event tracking.

Stores every webhook event received from Stripe. The unique
stripe_event_id constraint turns duplicate deliveries into a lookup of
the existing row, so each event is handled at most once.

Usage:
    from payments.models import WebhookEvent

    event, created = WebhookEvent.objects.get_or_create(
        stripe_event_id="evt_1234567890",
        defaults={
            "event_type": "checkout.session.completed",
            "payload": webhook_payload,
        },
    )
    if not created and event.is_processed:
        return HttpResponse(status=200)
"""

from __future__ import annotations

from typing import Any

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import WebhookEventStatus


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    Tracks Stripe webhook events for idempotent processing.

    Processing Flow:
        1. Webhook arrives, Stripe signature verified
        2. get_or_create on stripe_event_id
        3. Already PROCESSED -> acknowledge and stop
        4. Celery task marks PROCESSING and routes to the registered handler
        5. Handler outcome marks PROCESSED or FAILED
        6. FAILED events are picked up again by retry_failed_webhooks

    Fields:
        stripe_event_id: Unique Stripe Event ID (evt_xxx)
        event_type: Type of webhook event
        payload: Full JSON payload from Stripe
        status: Processing status
        processed_at: When event was successfully processed
        error_message: Error details if processing failed
        retry_count: Number of processing attempts
    """

    stripe_event_id = models.CharField(
        max_length=255,
        unique=True,
        db_index=True,
        help_text="Stripe Event ID (evt_xxx) - unique constraint for idempotency",
    )

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Stripe event type (e.g., 'checkout.session.completed')",
    )

    payload = models.JSONField(
        help_text="Full webhook payload from Stripe (JSON)",
    )

    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.PENDING,
        db_index=True,
        help_text="Current processing status",
    )

    processed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When event was successfully processed",
    )

    error_message = models.TextField(
        null=True,
        blank=True,
        help_text="Error message if processing failed",
    )

    retry_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of processing attempts",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            models.Index(fields=["status", "created_at"], name="webhook_status_created_idx"),
            models.Index(fields=["status", "retry_count"], name="webhook_status_retry_idx"),
        ]

    def __str__(self) -> str:
        return f"WebhookEvent({self.stripe_event_id}, {self.event_type})"

    @property
    def is_processed(self) -> bool:
        return self.status == WebhookEventStatus.PROCESSED

    @property
    def can_retry(self) -> bool:
        """Failed and still under WEBHOOK_MAX_RETRIES attempts."""
        max_retries = getattr(settings, "WEBHOOK_MAX_RETRIES", 5)
        return self.status == WebhookEventStatus.FAILED and self.retry_count < max_retries

    # Status helpers do not save; the caller saves.

    def mark_processing(self) -> None:
        self.status = WebhookEventStatus.PROCESSING
        self.retry_count += 1

    def mark_processed(self) -> None:
        self.status = WebhookEventStatus.PROCESSED
        self.processed_at = timezone.now()
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        self.status = WebhookEventStatus.FAILED
        self.error_message = error_message

    def get_data_object(self) -> dict[str, Any]:
        """
        Return payload.data.object, the Stripe resource the event is about.

        Returns an empty dict for malformed payloads.
        """
        data = self.payload.get("data") if isinstance(self.payload, dict) else None
        obj = data.get("object") if isinstance(data, dict) else None
        return obj if isinstance(obj, dict) else {}

    def get_object_id(self) -> str | None:
        return self.get_data_object().get("id")

    def get_metadata(self) -> dict[str, str]:
        """Metadata attached to the event's object (session or payment intent)."""
        metadata = self.get_data_object().get("metadata")
        return metadata if isinstance(metadata, dict) else {}
