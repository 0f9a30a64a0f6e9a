"""
Webhook endpoint for Stripe.

The view verifies the signature, stores the event idempotently, queues it
for Celery and answers straight away. Handling happens in
payments.tasks.process_webhook_event.
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payments.adapters import StripeAdapter
from payments.exceptions import StripeInvalidRequestError
from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> HttpResponse:
    """
    Receive and queue Stripe webhook events.

    Idempotency:
    - WebhookEvent.stripe_event_id is unique
    - Redelivery of a processed event returns 200 without reprocessing
    - Redelivery of a pending or failed event queues it again

    Returns:
        HttpResponse with status:
        - 200: Event accepted (new or duplicate)
        - 400: Missing or invalid signature, malformed event
    """
    payload = request.body
    signature = request.headers.get("Stripe-Signature", "")

    if not signature:
        logger.warning("Webhook received without Stripe-Signature header")
        return HttpResponse("Missing signature", status=400)

    try:
        event_data = StripeAdapter.verify_webhook_signature(payload, signature)
    except StripeInvalidRequestError as e:
        logger.warning(
            "Webhook signature verification failed",
            extra={"error": str(e)},
        )
        return HttpResponse("Invalid signature", status=400)

    stripe_event_id = event_data.get("id")
    event_type = event_data.get("type")

    if not stripe_event_id or not event_type:
        logger.warning("Webhook missing required fields")
        return HttpResponse("Invalid event", status=400)

    logger.info(
        f"Received Stripe webhook: {event_type}",
        extra={
            "stripe_event_id": stripe_event_id,
            "event_type": event_type,
        },
    )

    webhook_event, created = WebhookEvent.objects.get_or_create(
        stripe_event_id=stripe_event_id,
        defaults={
            "event_type": event_type,
            "payload": event_data,
            "status": WebhookEventStatus.PENDING,
        },
    )

    if not created and webhook_event.is_processed:
        logger.info(
            "Webhook already processed, returning success",
            extra={"stripe_event_id": stripe_event_id},
        )
        return HttpResponse("Already processed", status=200)

    try:
        from payments.tasks import process_webhook_event

        process_webhook_event.delay(str(webhook_event.id))
        logger.info(
            "Webhook queued for processing",
            extra={
                "stripe_event_id": stripe_event_id,
                "webhook_event_id": str(webhook_event.id),
            },
        )
    except Exception as e:
        # The stored event is picked up by retry_failed_webhooks / Stripe redelivery
        logger.error(
            f"Failed to queue webhook: {type(e).__name__}",
            extra={"stripe_event_id": stripe_event_id},
            exc_info=True,
        )

    return HttpResponse("Accepted", status=200)
