"""
Stripe webhook handlers for job checkouts.

Both checkout.session.completed and payment_intent.succeeded can confirm a
stage; whichever arrives first records the payment and the other one is a
no-op replay. Events whose metadata type is not a job payment are
acknowledged without doing anything.

Imported from JobsConfig.ready() so the handlers are registered before a
worker picks up an event.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError
from core.services import ServiceResult
from jobs.services import ApplicationRepository, JobHiringService
from jobs.states import PaymentType
from payments.webhooks.handlers import register_handler

if TYPE_CHECKING:
    from typing import Any

    from payments.models import WebhookEvent

logger = logging.getLogger(__name__)

CONFIRMATIONS = {
    PaymentType.JOB_DEPOSIT.value: "confirm_deposit_paid",
    PaymentType.JOB_FINAL_PAYMENT.value: "confirm_final_paid",
}

PAID_SESSION_STATUSES = ("paid", "no_payment_required")


def _object_id(value: Any) -> str | None:
    """Expanded Stripe objects arrive as dicts, unexpanded ones as id strings."""
    if isinstance(value, dict):
        return value.get("id")
    return value or None


@register_handler("checkout.session.completed")
def handle_checkout_session_completed(webhook_event: WebhookEvent) -> ServiceResult:
    session = webhook_event.get_data_object()
    metadata = webhook_event.get_metadata()
    payment_type = metadata.get("type")

    if payment_type not in CONFIRMATIONS:
        return ServiceResult.success(None)

    session_id = session.get("id")
    payment_status = session.get("payment_status")
    if payment_status and payment_status not in PAID_SESSION_STATUSES:
        # Delayed payment methods complete the session before the money moves
        logger.info(
            "Checkout completed but not paid yet, waiting for payment_intent.succeeded",
            extra={
                "stripe_event_id": webhook_event.stripe_event_id,
                "checkout_session_id": session_id,
                "payment_status": payment_status,
            },
        )
        return ServiceResult.success(None)

    application_id = metadata.get("application_id")
    if not application_id and session_id:
        settlement = ApplicationRepository.find_settlement_by_session(session_id)
        application_id = settlement.application_id if settlement else None

    return _confirm(
        webhook_event,
        payment_type,
        application_id,
        checkout_session_id=session_id,
        payment_intent_id=_object_id(session.get("payment_intent")),
    )


@register_handler("payment_intent.succeeded")
def handle_payment_intent_succeeded(webhook_event: WebhookEvent) -> ServiceResult:
    payment_intent = webhook_event.get_data_object()
    metadata = webhook_event.get_metadata()
    payment_type = metadata.get("type")

    if payment_type not in CONFIRMATIONS:
        return ServiceResult.success(None)

    return _confirm(
        webhook_event,
        payment_type,
        metadata.get("application_id"),
        payment_intent_id=payment_intent.get("id"),
    )


def _confirm(
    webhook_event: WebhookEvent,
    payment_type: str,
    application_id: str | None,
    checkout_session_id: str | None = None,
    payment_intent_id: str | None = None,
) -> ServiceResult:
    log_extra = {
        "stripe_event_id": webhook_event.stripe_event_id,
        "event_type": webhook_event.event_type,
        "payment_type": payment_type,
        "application_id": application_id,
    }

    if not application_id:
        logger.error("Job payment event without application_id", extra=log_extra)
        return ServiceResult.failure(
            "Could not resolve the application for this payment",
            error_code="INVALID_WEBHOOK_PAYLOAD",
        )

    try:
        confirm = getattr(JobHiringService, CONFIRMATIONS[payment_type])
        outcome = confirm(
            application_id,
            checkout_session_id=checkout_session_id,
            payment_intent_id=payment_intent_id,
        )
    except BaseApplicationError as e:
        return JobHiringService.handle_exception(e, f"{webhook_event.event_type} ({payment_type})", logging.WARNING)

    logger.info(
        "Job payment confirmed" if outcome.changed else "Job payment already confirmed",
        extra={**log_extra, "status": outcome.application.status},
    )
    return ServiceResult.success(outcome.application)
