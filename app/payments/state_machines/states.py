"""
Status enums for payment models.

These are Django TextChoices for database storage and admin integration.

ConnectedAccount onboarding:
    not_started → in_progress → complete
    in_progress → rejected

WebhookEvent processing:
    pending → processing → processed
    pending → processing → failed → processing (retry)
"""

from django.db import models


class OnboardingStatus(models.TextChoices):
    """
    Stripe Connect onboarding status for ConnectedAccount.

    Derived from the account's requirements on every account.updated
    webhook. Only COMPLETE accounts are expected to pass the live
    capability probe, but the probe remains authoritative.
    """

    NOT_STARTED = "not_started", "Not Started"
    IN_PROGRESS = "in_progress", "In Progress"
    COMPLETE = "complete", "Complete"
    REJECTED = "rejected", "Rejected"


class WebhookEventStatus(models.TextChoices):
    """Processing status for WebhookEvent."""

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"


__all__ = [
    "OnboardingStatus",
    "WebhookEventStatus",
]
