"""
Django admin configuration for notification models.
"""

from django.contrib import admin

from notifications.models import Notification, NotificationType


@admin.register(NotificationType)
class NotificationTypeAdmin(admin.ModelAdmin):
    """Notification type definitions and their templates."""

    list_display = ["key", "display_name", "category", "is_active"]
    list_filter = ["is_active", "category"]
    search_fields = ["key", "display_name"]
    ordering = ["category", "key"]
    fieldsets = (
        (None, {"fields": ("key", "display_name", "category", "is_active")}),
        ("Templates", {"fields": ("title_template", "body_template")}),
    )


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """Read-mostly view of delivered notifications."""

    list_display = ["id", "notification_type", "recipient", "title", "is_read", "created_at"]
    list_filter = ["is_read", "notification_type"]
    search_fields = ["title", "recipient__email", "idempotency_key"]
    raw_id_fields = ["recipient", "actor"]
    readonly_fields = ["idempotency_key", "created_at", "updated_at"]
    ordering = ["-created_at"]
