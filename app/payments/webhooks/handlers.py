"""
Webhook event handler registry and payment-side handlers.

Handlers are plain functions registered per Stripe event type. Domain apps
register their own handlers (the jobs app registers the checkout and
payment intent handlers in jobs.webhooks) and import them in
AppConfig.ready() so the registry is populated before a worker starts.

Usage:
    from payments.webhooks.handlers import dispatch_webhook, register_handler

    @register_handler("checkout.session.completed")
    def handle_checkout_completed(webhook_event: WebhookEvent) -> ServiceResult:
        ...

    result = dispatch_webhook(webhook_event)
"""

from __future__ import annotations

import logging
from typing import Callable

from django.db import transaction

from core.services import ServiceResult
from payments.adapters import AccountResult
from payments.models import ConnectedAccount, WebhookEvent

logger = logging.getLogger(__name__)


# =============================================================================
# Handler Registry
# =============================================================================


# Maps event type strings to handler functions
WEBHOOK_HANDLERS: dict[str, Callable[[WebhookEvent], ServiceResult]] = {}


def register_handler(event_type: str) -> Callable:
    """
    Decorator to register a webhook event handler.

    Registering a second handler for the same event type replaces the first.

    Args:
        event_type: The Stripe event type (e.g., "account.updated")
    """

    def decorator(func: Callable[[WebhookEvent], ServiceResult]) -> Callable:
        WEBHOOK_HANDLERS[event_type] = func
        logger.debug(f"Registered webhook handler for {event_type}")
        return func

    return decorator


def dispatch_webhook(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Dispatch a webhook event to the appropriate handler.

    Unknown event types succeed without doing anything, so Stripe stops
    redelivering events we never subscribed to on purpose.
    """
    handler = WEBHOOK_HANDLERS.get(webhook_event.event_type)

    if not handler:
        logger.info(
            f"No handler registered for event type: {webhook_event.event_type}",
            extra={"stripe_event_id": webhook_event.stripe_event_id},
        )
        return ServiceResult.success(None)

    logger.info(
        f"Dispatching {webhook_event.event_type} to handler",
        extra={"stripe_event_id": webhook_event.stripe_event_id},
    )

    return handler(webhook_event)


# =============================================================================
# Connect Account Handlers
# =============================================================================


@register_handler("account.updated")
def handle_account_updated(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Refresh a ConnectedAccount's cached flags from an account.updated event.

    Accounts unknown to us succeed as a no-op: Stripe sends updates for
    every account connected to the platform.
    """
    data_object = webhook_event.get_data_object()

    if not data_object.get("id"):
        logger.error(
            "account.updated: Could not extract account_id",
            extra={"stripe_event_id": webhook_event.stripe_event_id},
        )
        return ServiceResult.failure(
            "Could not extract account_id from webhook",
            error_code="INVALID_WEBHOOK_PAYLOAD",
        )

    account = AccountResult.from_dict(data_object)

    logger.info(
        "Processing account.updated",
        extra={
            "stripe_event_id": webhook_event.stripe_event_id,
            "account_id": account.id,
            "charges_enabled": account.charges_enabled,
            "transfers_capability": account.transfers_capability,
            "requirements_due": len(account.requirements_due),
        },
    )

    with transaction.atomic():
        connected_account = (
            ConnectedAccount.objects.select_for_update()
            .filter(stripe_account_id=account.id)
            .first()
        )

        if not connected_account:
            logger.info(
                "ConnectedAccount not found, may be external account",
                extra={
                    "account_id": account.id,
                    "stripe_event_id": webhook_event.stripe_event_id,
                },
            )
            return ServiceResult.success(None)

        changed = connected_account.apply_stripe_state(account)
        if changed:
            connected_account.save(update_fields=changed)

    logger.info(
        "ConnectedAccount updated",
        extra={
            "connected_account_id": str(connected_account.id),
            "onboarding_status": connected_account.onboarding_status,
            "changed_fields": changed,
        },
    )
    return ServiceResult.success(connected_account)
