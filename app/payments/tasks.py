"""
Celery tasks for Stripe webhook processing.

- process_webhook_event: handle one stored event
- retry_failed_webhooks: periodic, re-queue FAILED events under the retry cap
- cleanup_stuck_webhooks: periodic, reset events a crashed worker left in PROCESSING

Usage:
    from payments.tasks import process_webhook_event

    process_webhook_event.delay(str(webhook_event.id))
"""

from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID

from celery import shared_task
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus

logger = logging.getLogger(__name__)


MAX_WEBHOOK_RETRIES = getattr(settings, "WEBHOOK_MAX_RETRIES", 5)
STUCK_PROCESSING_THRESHOLD_MINUTES = 30
RETRY_BATCH_SIZE = 100


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": MAX_WEBHOOK_RETRIES},
    acks_late=True,
)
def process_webhook_event(self, webhook_event_id: str) -> dict:
    """
    Process a stored Stripe webhook event.

    The handler runs inside one transaction, so a handler that raises
    leaves no partial writes behind. A handler that returns a failed
    ServiceResult marks the event FAILED for retry_failed_webhooks; an
    exception marks it FAILED and is re-raised for Celery's autoretry.

    Returns:
        Dict with processing result status
    """
    from payments.webhooks.handlers import dispatch_webhook

    if isinstance(webhook_event_id, str):
        webhook_event_id = UUID(webhook_event_id)

    log_extra = {"webhook_event_id": str(webhook_event_id)}
    logger.info("Processing webhook event", extra=log_extra)

    webhook_event = WebhookEvent.objects.filter(id=webhook_event_id).first()
    if webhook_event is None:
        logger.error("WebhookEvent not found", extra=log_extra)
        return {"status": "not_found", "webhook_event_id": str(webhook_event_id)}

    log_extra["stripe_event_id"] = webhook_event.stripe_event_id

    if webhook_event.is_processed:
        logger.info("WebhookEvent already processed, skipping", extra=log_extra)
        return {
            "status": "already_processed",
            "webhook_event_id": str(webhook_event_id),
        }

    webhook_event.mark_processing()
    webhook_event.save(update_fields=["status", "retry_count", "updated_at"])

    logger.info(
        f"Dispatching webhook: {webhook_event.event_type}",
        extra={
            **log_extra,
            "event_type": webhook_event.event_type,
            "retry_count": webhook_event.retry_count,
        },
    )

    try:
        with transaction.atomic():
            result = dispatch_webhook(webhook_event)
    except Exception as e:
        error_msg = f"{type(e).__name__}: {e}"
        webhook_event.mark_failed(error_msg)
        webhook_event.save(update_fields=["status", "error_message", "updated_at"])
        logger.exception(
            "Webhook processing failed with exception",
            extra={**log_extra, "error": error_msg},
        )
        raise

    if not result.success:
        error_msg = result.error or "Handler returned failure"
        webhook_event.mark_failed(error_msg)
        webhook_event.save(update_fields=["status", "error_message", "updated_at"])
        logger.warning(
            f"Webhook handler failed: {error_msg}",
            extra={**log_extra, "error_code": result.error_code},
        )
        return {
            "status": "handler_failed",
            "webhook_event_id": str(webhook_event_id),
            "error": error_msg,
            "error_code": result.error_code,
        }

    webhook_event.mark_processed()
    webhook_event.save(
        update_fields=["status", "processed_at", "error_message", "updated_at"]
    )
    logger.info("Webhook processed successfully", extra=log_extra)
    return {
        "status": "processed",
        "webhook_event_id": str(webhook_event_id),
        "stripe_event_id": webhook_event.stripe_event_id,
    }


@shared_task
def retry_failed_webhooks() -> dict:
    """
    Re-queue failed webhook events that are still under the retry cap.

    Scheduled through CELERY_BEAT_SCHEDULE.

    Returns:
        Dict with count of webhooks queued for retry
    """
    failed_webhooks = WebhookEvent.objects.filter(
        status=WebhookEventStatus.FAILED,
        retry_count__lt=MAX_WEBHOOK_RETRIES,
    ).order_by("created_at")[:RETRY_BATCH_SIZE]

    queued_count = 0
    for webhook in failed_webhooks:
        try:
            process_webhook_event.delay(str(webhook.id))
        except Exception:
            logger.exception(
                "Failed to queue webhook for retry",
                extra={"webhook_event_id": str(webhook.id)},
            )
            continue
        queued_count += 1
        logger.info(
            "Queued failed webhook for retry",
            extra={
                "webhook_event_id": str(webhook.id),
                "stripe_event_id": webhook.stripe_event_id,
                "retry_count": webhook.retry_count,
            },
        )

    logger.info(
        f"Queued {queued_count} failed webhooks for retry",
        extra={"queued_count": queued_count},
    )
    return {"queued_count": queued_count}


@shared_task
def cleanup_stuck_webhooks() -> dict:
    """
    Reset webhooks stuck in PROCESSING to FAILED so they are retried.

    Returns:
        Dict with count of webhooks reset
    """
    threshold = timezone.now() - timedelta(minutes=STUCK_PROCESSING_THRESHOLD_MINUTES)

    stuck_webhooks = WebhookEvent.objects.filter(
        status=WebhookEventStatus.PROCESSING,
        updated_at__lt=threshold,
    )

    reset_count = 0
    for webhook in stuck_webhooks:
        stuck_since = webhook.updated_at
        webhook.mark_failed("Processing timed out - reset for retry")
        webhook.save(update_fields=["status", "error_message", "updated_at"])
        reset_count += 1
        logger.warning(
            "Reset stuck webhook",
            extra={
                "webhook_event_id": str(webhook.id),
                "stripe_event_id": webhook.stripe_event_id,
                "stuck_since": stuck_since.isoformat(),
            },
        )

    if reset_count:
        logger.info(
            f"Reset {reset_count} stuck webhooks",
            extra={"reset_count": reset_count},
        )

    return {"reset_count": reset_count}
