"""
Orchestration for the job hiring flow.

JobHiringService is the entry point used by the API views and webhook
handlers. It runs one escrow transition per call and hands the resulting
event to the notification dispatcher through transaction.on_commit, so
notifications only go out for transitions that actually committed and
never run inside the transactional path.

Usage:
    from jobs.services import JobHiringService

    outcome = JobHiringService.hire(request.user, application_id)
    handle = JobHiringService.checkout_deposit(request.user, application_id)
"""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING

from django.db import transaction

from core.exceptions import PermissionDeniedError
from core.services import BaseService
from jobs.models import Opportunity
from jobs.services.escrow import EscrowStateMachine, TransitionOutcome
from jobs.services.notifications import NotificationDispatcher
from jobs.services.repository import ApplicationRepository
from jobs.services.settlement import SettlementHandle, SettlementInitiator
from jobs.states import SettlementStage
from payments.locks import lock_row

if TYPE_CHECKING:
    from typing import Any
    from uuid import UUID

    from authentication.models import User


class JobHiringService(BaseService):
    """
    Runs escrow transitions and dispatches their notifications after commit.

    Methods raise the domain exceptions of jobs.exceptions and
    payments.exceptions; views render them with their http_status.
    """

    state_machine_class = EscrowStateMachine
    settlement_initiator_class = SettlementInitiator
    dispatcher_class = NotificationDispatcher

    # =========================================================================
    # Opportunities
    # =========================================================================

    @classmethod
    def update_opportunity_amount(cls, poster: User, opportunity_id: UUID | str, amount: int) -> Opportunity:
        """
        Reprice an opportunity. Poster only, and only while nobody has applied.

        Raises:
            NotFoundError: Unknown opportunity
            PermissionDeniedError: Caller is not the poster
            ConflictError: Applications already exist
        """
        with cls.atomic():
            opportunity = lock_row(Opportunity, opportunity_id)
            if opportunity.poster_id != poster.pk:
                raise PermissionDeniedError(
                    "Only the poster can change this opportunity",
                    details={"opportunity_id": str(opportunity.pk)},
                )
            previous_amount = opportunity.amount
            opportunity.update_amount(amount)

        cls.get_logger().info(
            "Opportunity repriced",
            extra={
                "opportunity_id": str(opportunity.pk),
                "previous_amount": previous_amount,
                "amount": opportunity.amount,
            },
        )
        return opportunity

    # =========================================================================
    # Transitions
    # =========================================================================

    @classmethod
    def apply(cls, applicant: User, opportunity_id: UUID | str, payload: dict[str, Any]) -> TransitionOutcome:
        return cls._run(lambda machine: machine.apply(opportunity_id, applicant, payload))

    @classmethod
    def hire(cls, poster: User, application_id: UUID | str, expected_version: int | None = None) -> TransitionOutcome:
        return cls._run(lambda machine: machine.hire(application_id, poster, expected_version))

    @classmethod
    def reject(cls, poster: User, application_id: UUID | str, expected_version: int | None = None) -> TransitionOutcome:
        return cls._run(lambda machine: machine.reject(application_id, poster, expected_version))

    @classmethod
    def complete(
        cls, applicant: User, application_id: UUID | str, expected_version: int | None = None
    ) -> TransitionOutcome:
        return cls._run(lambda machine: machine.complete(application_id, applicant, expected_version))

    @classmethod
    def confirm_deposit_paid(
        cls,
        application_id: UUID | str,
        checkout_session_id: str | None = None,
        payment_intent_id: str | None = None,
    ) -> TransitionOutcome:
        return cls._run(
            lambda machine: machine.confirm_deposit_paid(application_id, checkout_session_id, payment_intent_id)
        )

    @classmethod
    def confirm_final_paid(
        cls,
        application_id: UUID | str,
        checkout_session_id: str | None = None,
        payment_intent_id: str | None = None,
    ) -> TransitionOutcome:
        return cls._run(
            lambda machine: machine.confirm_final_paid(application_id, checkout_session_id, payment_intent_id)
        )

    # =========================================================================
    # Settlements
    # =========================================================================

    @classmethod
    def checkout_deposit(cls, poster: User, application_id: UUID | str) -> SettlementHandle:
        """
        Open (or reuse) the deposit checkout.

        Raises:
            PermissionDeniedError: Caller is not the poster
            plus everything SettlementInitiator.initiate_settlement raises
        """
        application = ApplicationRepository.get_application(application_id)
        if application.poster_id != poster.pk:
            raise PermissionDeniedError(
                "Only the poster can pay for this application",
                details={"application_id": str(application.pk)},
            )
        return cls.settlement_initiator_class().initiate_settlement(application, SettlementStage.DEPOSIT)

    @classmethod
    def pay_final(
        cls, poster: User, application_id: UUID | str, expected_version: int | None = None
    ) -> tuple[TransitionOutcome, SettlementHandle]:
        """
        Freeze the final split, then open (or reuse) the final checkout.

        The split is committed before Stripe is called, so a Stripe failure
        leaves a resumable record and the retry reuses the stored amounts.
        """
        outcome = cls._run(lambda machine: machine.settle_final(application_id, poster, expected_version))
        handle = cls.settlement_initiator_class().initiate_settlement(outcome.application, SettlementStage.FINAL)
        return outcome, handle

    # =========================================================================
    # Internals
    # =========================================================================

    @classmethod
    def _run(cls, transition) -> TransitionOutcome:
        with cls.atomic():
            outcome = transition(cls.state_machine_class())
            if outcome.changed:
                transaction.on_commit(partial(cls.dispatcher_class().dispatch, outcome))

        if outcome.changed:
            cls.get_logger().info(
                "Escrow transition committed",
                extra={
                    "application_id": str(outcome.application.pk),
                    "event": str(outcome.event),
                    "status": outcome.application.status,
                },
            )
        return outcome
