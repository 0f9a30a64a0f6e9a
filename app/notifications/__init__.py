"""
Notifications app: the in-app notification sink.

This app provides:
- NotificationType model holding title/body templates, seeded by migration
- Notification model for storing user notifications
- NotificationService for centralized, idempotent notification creation
- REST API for reading the inbox

Usage:
    from notifications.services import NotificationService

    result = NotificationService.create_notification(
        recipient=user,
        type_key="job_deposit_paid",
        data={"opportunity_title": "Landing page", "amount": "25.00"},
    )
"""
