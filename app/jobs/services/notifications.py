"""
Best-effort notifications for escrow events.

Runs after the owning transaction commits (see JobHiringService). Nothing
here may fail a transition: every error is logged and swallowed.

Each notification carries the idempotency key
"{event}:{application_id}:{recipient_id}", so a replayed webhook or a
retried request never notifies the same person twice.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from jobs.services.escrow import EscrowEvent
from notifications.services import NotificationService

if TYPE_CHECKING:
    from authentication.models import User
    from jobs.models import JobApplication
    from jobs.services.escrow import TransitionOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Route:
    type_key: str
    recipient: str  # "applicant" or "poster"
    actor: str | None = None
    amount_field: str | None = None


ROUTES: dict[str, list[_Route]] = {
    EscrowEvent.APPLIED: [
        _Route("job_application_submitted", recipient="applicant"),
        _Route("job_application_received", recipient="poster", actor="applicant"),
    ],
    EscrowEvent.HIRED: [
        _Route("job_application_accepted", recipient="applicant", actor="poster"),
    ],
    EscrowEvent.REJECTED: [
        _Route("job_application_rejected", recipient="applicant", actor="poster"),
    ],
    EscrowEvent.COMPLETED: [
        _Route("job_completed", recipient="poster", actor="applicant"),
    ],
    EscrowEvent.DEPOSIT_PAID: [
        _Route("job_deposit_paid", recipient="applicant", actor="poster", amount_field="deposit_amount"),
    ],
    EscrowEvent.FINAL_PAID: [
        _Route("job_final_payment_paid", recipient="applicant", actor="poster", amount_field="remaining_amount"),
    ],
}


def format_amount(minor_units: int | None) -> str:
    """2500 -> "25.00"."""
    minor_units = minor_units or 0
    return f"{minor_units // 100}.{minor_units % 100:02d}"


class NotificationDispatcher:
    """Turns a TransitionOutcome into in-app notifications."""

    def __init__(self, notification_service: type | None = None) -> None:
        self.notifications = notification_service or NotificationService

    def dispatch(self, outcome: TransitionOutcome) -> int:
        """Send every notification for the outcome's event. Returns how many were created."""
        if outcome.event is None:
            return 0

        created = 0
        for route in ROUTES.get(outcome.event, []):
            try:
                if self._send(outcome.event, outcome.application, route):
                    created += 1
            except Exception:
                logger.exception(
                    "Failed to send job notification",
                    extra={
                        "event": str(outcome.event),
                        "type_key": route.type_key,
                        "application_id": str(outcome.application.pk),
                    },
                )
        return created

    def _send(self, event: str, application: JobApplication, route: _Route) -> bool:
        recipient: User = getattr(application, route.recipient)
        actor: User | None = getattr(application, route.actor) if route.actor else None

        data = {
            "application_id": str(application.pk),
            "opportunity_id": str(application.opportunity_id),
            "job_title": application.opportunity_title,
            "company_suffix": f" at {application.company_name}" if application.company_name else "",
            "applicant_name": application.name or application.applicant.get_full_name(),
            "amount": format_amount(getattr(application, route.amount_field)) if route.amount_field else "",
        }

        result = self.notifications.create_notification(
            recipient=recipient,
            type_key=route.type_key,
            data=data,
            actor=actor,
            source_object=application,
            idempotency_key=f"{event}:{application.pk}:{recipient.pk}",
        )
        if not result.success and result.error_code != "DUPLICATE":
            logger.warning(
                f"Job notification not created: {result.error}",
                extra={"type_key": route.type_key, "error_code": result.error_code},
            )
        return result.success
