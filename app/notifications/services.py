"""
Notification service layer.

Services:
    NotificationService: Notification creation and read status management

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure()
    - Template rendering raises KeyError on missing placeholders

Usage:
    from notifications.services import NotificationService

    result = NotificationService.create_notification(
        recipient=application.applicant,
        type_key="job_application_accepted",
        data={"opportunity_title": "Landing page", "application_id": str(application.id)},
        actor=application.poster,
        source_object=application,
        idempotency_key=f"hire:{application.id}:{application.applicant_id}",
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.contrib.contenttypes.models import ContentType
from django.db import IntegrityError, transaction

from core.services import BaseService, ServiceResult
from notifications.models import Notification, NotificationType

if TYPE_CHECKING:
    from django.db.models import Model

    from authentication.models import User


class NotificationService(BaseService):
    """
    Service for notification creation and read status.

    Methods:
        create_notification: Render and store a notification
        mark_as_read: Mark one notification read (owner only)
        mark_all_as_read: Mark every unread notification of a user read
    """

    @classmethod
    def create_notification(
        cls,
        recipient: User,
        type_key: str,
        data: dict | None = None,
        title: str | None = None,
        body: str | None = None,
        actor: User | None = None,
        source_object: Model | None = None,
        idempotency_key: str | None = None,
    ) -> ServiceResult[Notification]:
        """
        Create a new notification for a user.

        If title/body are not provided, templates from NotificationType are
        rendered using the data dict. Explicit title/body override templates.

        Error codes:
            TYPE_NOT_FOUND: Notification type key doesn't exist
            TYPE_INACTIVE: Notification type is deactivated
            DUPLICATE: Notification with this idempotency_key already exists

        Raises:
            KeyError: If a template placeholder is missing from data
        """
        data = data or {}

        notification_type = NotificationType.objects.filter(key=type_key).first()
        if notification_type is None:
            cls.get_logger().warning(f"Notification type not found: {type_key}")
            return ServiceResult.failure(
                f"Notification type not found: {type_key}",
                error_code="TYPE_NOT_FOUND",
            )

        if not notification_type.is_active:
            cls.get_logger().info(
                f"Notification type inactive: {type_key} - skipping creation"
            )
            return ServiceResult.failure(
                f"Notification type is inactive: {type_key}",
                error_code="TYPE_INACTIVE",
            )

        if idempotency_key and Notification.objects.filter(idempotency_key=idempotency_key).exists():
            cls.get_logger().info(
                f"Duplicate notification prevented: idempotency_key={idempotency_key}"
            )
            return cls._duplicate(idempotency_key)

        rendered_title = title or notification_type.title_template.format(**data)
        rendered_body = body or notification_type.body_template.format(**data)

        content_type = None
        object_id = None
        if source_object is not None:
            content_type = ContentType.objects.get_for_model(source_object)
            object_id = str(source_object.pk)

        try:
            # Savepoint so a lost race on the unique key doesn't poison the caller's transaction
            with transaction.atomic():
                notification = Notification.objects.create(
                    notification_type=notification_type,
                    recipient=recipient,
                    actor=actor,
                    title=rendered_title,
                    body=rendered_body,
                    data=data,
                    content_type=content_type,
                    object_id=object_id,
                    idempotency_key=idempotency_key,
                )
        except IntegrityError:
            if not idempotency_key:
                raise
            return cls._duplicate(idempotency_key)

        cls.get_logger().info(
            "Notification created",
            extra={
                "notification_id": notification.id,
                "type_key": type_key,
                "recipient_id": recipient.pk,
            },
        )
        return ServiceResult.success(notification)

    @staticmethod
    def _duplicate(idempotency_key: str) -> ServiceResult[Notification]:
        return ServiceResult.failure(
            f"Notification with idempotency_key already exists: {idempotency_key}",
            error_code="DUPLICATE",
        )

    @classmethod
    def mark_as_read(
        cls,
        notification: Notification,
        user: User,
    ) -> ServiceResult[Notification]:
        """
        Mark a single notification as read. Idempotent.

        Error codes:
            NOT_OWNER: User doesn't own the notification
        """
        if notification.recipient_id != user.pk:
            cls.get_logger().warning(
                f"User {user.pk} attempted to mark notification {notification.id} "
                f"owned by user {notification.recipient_id}"
            )
            return ServiceResult.failure(
                "Cannot mark notification you don't own",
                error_code="NOT_OWNER",
            )

        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read", "updated_at"])

        return ServiceResult.success(notification)

    @classmethod
    def mark_all_as_read(cls, user: User) -> ServiceResult[int]:
        """Mark all of a user's unread notifications read in one query."""
        count = Notification.objects.filter(
            recipient=user,
            is_read=False,
        ).update(is_read=True)

        cls.get_logger().info(f"Marked {count} notifications as read for user {user.pk}")
        return ServiceResult.success(count)
