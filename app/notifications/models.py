"""
Notification system models.

- NotificationType: Configuration for notification types with templates
- Notification: Individual in-app notifications sent to users

Design Decisions:
    - NotificationType uses integer PK (internal lookup table, seeded by
      data migration)
    - Actor uses SET_NULL (preserve notification when actor deleted)
    - NotificationType uses PROTECT (prevent deletion with existing notifications)
    - GenericForeignKey links a notification to its source (e.g. a JobApplication)
    - idempotency_key is unique when set, so the same event never notifies twice

Usage:
    from notifications.models import Notification, NotificationType

    nt = NotificationType.objects.get(key="job_application_accepted")
    title = nt.title_template.format(opportunity_title="Landing page")
"""

from __future__ import annotations

from django.conf import settings
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models

from core.models import BaseModel


class NotificationCategory(models.TextChoices):
    """Categories for grouping notification types."""

    TRANSACTIONAL = "transactional", "Transactional"
    JOBS = "jobs", "Jobs"
    PAYMENTS = "payments", "Payments"
    SYSTEM = "system", "System"


class NotificationType(models.Model):
    """
    Lookup table for notification type definitions.

    Fields:
        key: Unique programmatic identifier (e.g., "job_deposit_paid")
        display_name: Human-readable name for admin/UI display
        title_template: Python format string for notification title
        body_template: Python format string for notification body
        is_active: Whether this notification type is currently enabled
        category: Grouping for display

    Note:
        Templates use str.format() syntax; a missing placeholder raises
        KeyError during rendering.
    """

    key = models.CharField(
        max_length=100,
        unique=True,
        db_index=True,
        help_text="Unique programmatic identifier (e.g., 'job_deposit_paid')",
    )

    display_name = models.CharField(
        max_length=200,
        help_text="Human-readable name for display",
    )

    title_template = models.CharField(
        max_length=500,
        blank=True,
        default="",
        help_text="Python format string template for title",
    )

    body_template = models.TextField(
        blank=True,
        default="",
        help_text="Python format string template for body",
    )

    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether this notification type is currently enabled",
    )

    category = models.CharField(
        max_length=20,
        choices=NotificationCategory.choices,
        default=NotificationCategory.TRANSACTIONAL,
        db_index=True,
        help_text="Category for grouping",
    )

    class Meta:
        db_table = "notifications_notification_type"
        verbose_name = "notification type"
        verbose_name_plural = "notification types"
        ordering = ["key"]

    def __str__(self) -> str:
        return f"{self.display_name} ({self.key})"


class Notification(BaseModel):
    """
    Individual notification record for a user.

    Title and body are fully rendered at creation and never re-rendered.

    Fields:
        notification_type: FK to NotificationType
        recipient: User receiving the notification (scopes all queries)
        actor: Optional user who triggered the notification
        title: Fully rendered title string
        body: Fully rendered body string
        data: Arbitrary JSON context (deep links, ids, amounts)
        content_type/object_id/source_object: Generic FK to source entity
        is_read: Whether recipient has read this notification
        idempotency_key: Optional dedup key, unique when set
    """

    notification_type = models.ForeignKey(
        NotificationType,
        on_delete=models.PROTECT,
        related_name="notifications",
        help_text="Type of this notification",
    )

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        db_index=True,
        help_text="User receiving this notification",
    )

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="triggered_notifications",
        help_text="User who triggered this notification (optional)",
    )

    title = models.CharField(
        max_length=500,
        help_text="Fully rendered notification title",
    )

    body = models.TextField(
        blank=True,
        default="",
        help_text="Fully rendered notification body",
    )

    data = models.JSONField(
        default=dict,
        blank=True,
        help_text="Arbitrary context data (deep links, metadata)",
    )

    content_type = models.ForeignKey(
        ContentType,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        help_text="Content type of source object",
    )

    object_id = models.CharField(
        max_length=36,
        null=True,
        blank=True,
        help_text="ID of source object (supports UUID and integer PKs)",
    )

    source_object = GenericForeignKey("content_type", "object_id")

    is_read = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether recipient has read this notification",
    )

    idempotency_key = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Idempotency key to prevent duplicate notifications",
    )

    class Meta:
        db_table = "notifications_notification"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["recipient", "is_read", "-created_at"],
                name="notif_recipient_unread_idx",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["idempotency_key"],
                name="notif_idempotency_key_unique",
                condition=models.Q(idempotency_key__isnull=False),
            ),
        ]

    def __str__(self) -> str:
        read_status = "read" if self.is_read else "unread"
        return (
            f"Notification({self.notification_type.key}) -> "
            f"User {self.recipient_id} [{read_status}]"
        )
