"""
Payment admin configuration.

Registers the Stripe Connect account cache and the webhook event log.
"""

from django.contrib import admin

from payments.models import ConnectedAccount, WebhookEvent


@admin.register(ConnectedAccount)
class ConnectedAccountAdmin(admin.ModelAdmin):
    """
    Admin configuration for ConnectedAccount.

    Provides visibility into Stripe Connect account status.
    """

    list_display = [
        "id",
        "profile",
        "stripe_account_id",
        "onboarding_status",
        "charges_enabled",
        "transfers_enabled",
        "created_at",
    ]
    list_filter = ["onboarding_status", "charges_enabled", "transfers_enabled"]
    search_fields = ["id", "stripe_account_id", "profile__user__email"]
    readonly_fields = ["id", "created_at", "updated_at", "version"]
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "profile", "stripe_account_id"),
            },
        ),
        (
            "Status",
            {
                "fields": (
                    "onboarding_status",
                    "charges_enabled",
                    "payouts_enabled",
                    "transfers_enabled",
                ),
            },
        ),
        (
            "Metadata",
            {
                "fields": ("metadata", "version"),
                "classes": ("collapse",),
            },
        ),
    )


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    """
    Admin configuration for WebhookEvent.

    Webhook events are immutable once received; only status and
    error_message may be edited, to requeue an event by hand.
    """

    list_display = [
        "id",
        "stripe_event_id",
        "event_type",
        "status",
        "retry_count",
        "processed_at",
        "created_at",
    ]
    list_filter = ["status", "event_type", "created_at"]
    search_fields = ["id", "stripe_event_id", "event_type"]
    readonly_fields = [
        "id",
        "created_at",
        "updated_at",
        "stripe_event_id",
        "event_type",
        "payload",
        "processed_at",
        "retry_count",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (None, {"fields": ("id", "stripe_event_id", "event_type", "status")}),
        ("Processing", {"fields": ("processed_at", "retry_count")}),
        ("Error Info", {"fields": ("error_message",), "classes": ("collapse",)}),
        ("Payload", {"fields": ("payload",), "classes": ("collapse",)}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )

    def has_delete_permission(self, request, obj=None) -> bool:
        return False

    def has_add_permission(self, request) -> bool:
        return False
