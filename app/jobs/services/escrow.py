"""
The escrow state machine for job applications.

Every mutating transition follows the same steps:
    1. Open transaction.atomic()
    2. Re-read the application under a row lock (select_for_update), or
       through check_version when the caller sent the version it last saw
    3. Validate the preconditions against that fresh read
    4. Apply the django-fsm transition and save, which bumps ``version``

Preconditions are all checked before anything is written, so a failed
transition leaves no partial state. The Stripe account probes in hire run
before the row lock is taken, and the cheap preconditions are re-checked
under it, so no transition here calls Stripe while holding the lock.
Checkout creation is different: SettlementInitiator calls Stripe under
the application's row lock (see jobs.services.settlement).

Transitions return a TransitionOutcome. Its ``event`` is what the
orchestration layer dispatches notifications for after commit; it is
None when the call changed nothing (idempotent replays).

Usage:
    machine = EscrowStateMachine()
    outcome = machine.hire(application_id, caller=request.user)
    outcome.application.deposit_amount
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.db import models, transaction
from django.utils import timezone
from django_fsm import TransitionNotAllowed

from core.exceptions import NotFoundError, PermissionDeniedError
from jobs.exceptions import (
    AlreadyHiredError,
    AlreadyPaidError,
    DepositNotPaidError,
    InvalidAmountError,
    InvalidArgumentError,
    NotCompletedError,
    NotHiredError,
    PayeeNotReceivableError,
    PayerNotReadyError,
)
from jobs.fees import FeeCalculator, compute_deposit_amount, compute_remaining_amount
from jobs.services.account_verifier import AccountVerifier
from jobs.services.repository import ApplicationRepository, ApplicationSubmission
from jobs.states import ApplicationStatus, SettlementStage
from payments.exceptions import InvalidStateTransitionError

if TYPE_CHECKING:
    from typing import Any
    from uuid import UUID

    from authentication.models import User
    from jobs.models import JobApplication

logger = logging.getLogger(__name__)


class EscrowEvent(models.TextChoices):
    APPLIED = "applied", "Applied"
    HIRED = "hired", "Hired"
    REJECTED = "rejected", "Rejected"
    COMPLETED = "completed", "Completed"
    DEPOSIT_PAID = "deposit_paid", "Deposit Paid"
    FINAL_PAID = "final_paid", "Final Payment Paid"


@dataclass
class TransitionOutcome:
    """Result of a transition: the saved application and the event it produced."""

    application: JobApplication
    event: EscrowEvent | None = None

    @property
    def changed(self) -> bool:
        return self.event is not None


class EscrowStateMachine:
    """
    Runs the application lifecycle.

    Args:
        fee_calculator: Computes the deposit's platform fee
        account_verifier: Probes the poster's and applicant's Stripe accounts
    """

    def __init__(
        self,
        fee_calculator: FeeCalculator | None = None,
        account_verifier: AccountVerifier | None = None,
    ) -> None:
        self.fees = fee_calculator or FeeCalculator()
        self.verifier = account_verifier or AccountVerifier()
        self.repository = ApplicationRepository

    # =========================================================================
    # apply
    # =========================================================================

    def apply(
        self,
        opportunity_id: UUID | str,
        applicant: User,
        payload: dict[str, Any] | ApplicationSubmission,
    ) -> TransitionOutcome:
        """
        Create a pending application.

        Raises:
            NotFoundError: Unknown opportunity
            InvalidArgumentError: Applying to your own opportunity, or invalid content
            DuplicateApplicationError: Already applied
        """
        opportunity = self.repository.get_opportunity(opportunity_id)

        if opportunity.poster_id == applicant.pk:
            raise InvalidArgumentError(
                "You cannot apply to your own opportunity",
                error_code="CANNOT_APPLY_TO_OWN_OPPORTUNITY",
                details={"opportunity_id": str(opportunity.pk)},
            )
        if not opportunity.is_open:
            raise InvalidArgumentError(
                "This opportunity is no longer accepting applications",
                error_code="OPPORTUNITY_CLOSED",
                details={"opportunity_id": str(opportunity.pk)},
            )

        submission = (
            payload
            if isinstance(payload, ApplicationSubmission)
            else ApplicationSubmission.from_payload(payload)
        )
        application = self.repository.create_application(opportunity, applicant, submission)

        logger.info(
            "Application submitted",
            extra={
                "application_id": str(application.pk),
                "opportunity_id": str(opportunity.pk),
                "applicant_id": applicant.pk,
            },
        )
        return TransitionOutcome(application, EscrowEvent.APPLIED)

    # =========================================================================
    # hire / reject
    # =========================================================================

    def hire(
        self,
        application_id: UUID | str,
        caller: User,
        expected_version: int | None = None,
    ) -> TransitionOutcome:
        """
        Hire the applicant: pending -> hired. Records the split, moves no money.

        Raises:
            PermissionDeniedError: Caller is not the poster
            AlreadyHiredError: Application is not pending
            InvalidAmountError: Opportunity amount is not positive, or too small for a deposit
            PayerNotReadyError: Poster's account cannot take charges
            PayeeNotReceivableError: Applicant's transfers capability is not active
            StaleRecordError: expected_version is no longer current
        """
        # Cheap checks first so obviously invalid requests never reach Stripe
        application = self.repository.get_application(application_id)
        self._check_hire_preconditions(application, caller)

        payee_account_id = self._verify_accounts(application)

        with transaction.atomic():
            application = self.repository.lock_application(application_id, expected_version)
            self._check_hire_preconditions(application, caller)

            total_amount = application.opportunity.amount
            deposit_amount = compute_deposit_amount(total_amount)
            platform_fee = self.fees.compute_application_fee_amount(deposit_amount, payer=application.poster)

            self._transition(
                application,
                "hire",
                total_amount=total_amount,
                deposit_amount=deposit_amount,
                platform_fee=platform_fee,
                connect_account_id=payee_account_id,
            )
            application.save()

        logger.info(
            "Applicant hired",
            extra={
                **application.monetary_snapshot(),
                "applicant_connect_account_id": payee_account_id,
            },
        )
        return TransitionOutcome(application, EscrowEvent.HIRED)

    def _check_hire_preconditions(self, application: JobApplication, caller: User) -> None:
        self._require_poster(application, caller, "hire")

        if application.status != ApplicationStatus.PENDING:
            raise AlreadyHiredError(
                f"Application is already {application.status}",
                details=self._snapshot(application),
            )

        total_amount = application.opportunity.amount
        if not total_amount or total_amount <= 0:
            raise InvalidAmountError(
                "Opportunity must have a positive amount",
                details={**self._snapshot(application), "total_amount": total_amount},
            )

        # Both stages must be chargeable, or the job would be stuck after hire
        deposit_amount = compute_deposit_amount(total_amount)
        if deposit_amount <= 0 or compute_remaining_amount(total_amount, deposit_amount) <= 0:
            raise InvalidAmountError(
                "Opportunity amount is too small to split into a deposit and a final payment",
                details={
                    **self._snapshot(application),
                    "total_amount": total_amount,
                    "computed_deposit_amount": deposit_amount,
                },
            )

    def _verify_accounts(self, application: JobApplication) -> str:
        """Probe both accounts live. Returns the applicant's account id."""
        total = {"total_amount": application.opportunity.amount}

        payer_account_id = self.repository.connect_account_id_for(application.poster)
        payable = self.verifier.verify_payable(payer_account_id)
        if not payable:
            raise PayerNotReadyError(
                "Your Stripe account is not fully set up. Please complete onboarding.",
                details={**self._snapshot(application), **total, "reason": payable.reason},
            )

        payee_account_id = self.repository.connect_account_id_for(application.applicant)
        receivable = self.verifier.verify_receivable(payee_account_id)
        if not receivable:
            raise PayeeNotReceivableError(
                "The applicant's Stripe account cannot receive payments yet",
                details={**self._snapshot(application), **total, "reason": receivable.reason},
            )
        return payee_account_id

    def reject(
        self,
        application_id: UUID | str,
        caller: User,
        expected_version: int | None = None,
    ) -> TransitionOutcome:
        """
        Decline a pending application: pending -> rejected.

        Raises:
            PermissionDeniedError: Caller is not the poster
            AlreadyHiredError: Application is no longer pending
        """
        with transaction.atomic():
            application = self.repository.lock_application(application_id, expected_version)
            self._require_poster(application, caller, "reject")
            if application.status != ApplicationStatus.PENDING:
                raise AlreadyHiredError(
                    f"Only pending applications can be rejected (status: {application.status})",
                    details=self._snapshot(application),
                )
            self._transition(application, "reject")
            application.save()

        logger.info("Application rejected", extra={"application_id": str(application.pk)})
        return TransitionOutcome(application, EscrowEvent.REJECTED)

    # =========================================================================
    # Deposit
    # =========================================================================

    def confirm_deposit_paid(
        self,
        application_id: UUID | str,
        checkout_session_id: str | None = None,
        payment_intent_id: str | None = None,
    ) -> TransitionOutcome:
        """
        Record the deposit as paid. Re-applying a confirmation is a no-op.

        Raises:
            NotFoundError: No deposit settlement was ever initiated
        """
        with transaction.atomic():
            application = self.repository.lock_application(application_id)
            settlement = self.repository.get_settlement(application.pk, SettlementStage.DEPOSIT, for_update=True)
            if settlement is None:
                raise NotFoundError(
                    "No deposit settlement exists for this application",
                    error_code="SETTLEMENT_NOT_FOUND",
                    details=self._snapshot(application),
                )

            if application.deposit_paid:
                logger.info(
                    "Deposit already confirmed, ignoring",
                    extra={"application_id": str(application.pk)},
                )
                return TransitionOutcome(application)

            now = timezone.now()
            application.deposit_paid = True
            application.deposit_paid_at = now
            application.deposit_checkout_session_id = checkout_session_id or settlement.checkout_session_id
            if payment_intent_id:
                application.deposit_payment_intent_id = payment_intent_id
            application.save()

            self._mark_settlement_paid(settlement, now, payment_intent_id)

        logger.info(
            "Deposit confirmed",
            extra={
                **application.monetary_snapshot(),
                "checkout_session_id": application.deposit_checkout_session_id,
                "payment_intent_id": payment_intent_id,
            },
        )
        return TransitionOutcome(application, EscrowEvent.DEPOSIT_PAID)

    # =========================================================================
    # complete
    # =========================================================================

    def complete(
        self,
        application_id: UUID | str,
        caller: User,
        expected_version: int | None = None,
    ) -> TransitionOutcome:
        """
        Applicant marks the work done: hired -> completed.

        The deposit proof is checked on the locked row, so a confirmation
        that committed while this request waited for the lock is seen.

        Raises:
            PermissionDeniedError: Caller is not the hired applicant
            NotHiredError: Application is not hired
            DepositNotPaidError: No proof of deposit payment
        """
        with transaction.atomic():
            application = self.repository.lock_application(application_id, expected_version)

            if application.applicant_id != caller.pk:
                raise PermissionDeniedError(
                    "Only the hired applicant can mark this job complete",
                    details={"application_id": str(application.pk)},
                )
            if application.status != ApplicationStatus.HIRED:
                raise NotHiredError(
                    f"Application is {application.status}, not hired",
                    details=self._snapshot(application),
                )
            if not application.has_deposit_proof:
                raise DepositNotPaidError(
                    "The deposit has not been paid yet",
                    details=self._snapshot(application),
                )

            self._transition(application, "complete")
            application.save()

        logger.info("Job completed", extra={"application_id": str(application.pk)})
        return TransitionOutcome(application, EscrowEvent.COMPLETED)

    # =========================================================================
    # Final payment
    # =========================================================================

    def settle_final(
        self,
        application_id: UUID | str,
        caller: User,
        expected_version: int | None = None,
    ) -> TransitionOutcome:
        """
        Compute and persist the final payment split. Status stays completed.

        The first call stores the amounts; later calls return them unchanged,
        so a retried request never recomputes. Once the split is stored,
        expected_version is not checked: the first call already bumped the
        version, and a retry after a failed checkout must still succeed.

        Raises:
            PermissionDeniedError: Caller is not the poster
            AlreadyPaidError: The final payment is already recorded
            NotCompletedError: Application is not completed
            InvalidAmountError: Remaining amount is not positive
        """
        with transaction.atomic():
            application = self.repository.lock_application(application_id)
            if application.remaining_amount is None and expected_version is not None:
                application = self.repository.lock_application(application_id, expected_version)
            self._require_poster(application, caller, "pay")

            if application.is_final_paid:
                raise AlreadyPaidError(
                    "The final payment has already been made",
                    details=self._snapshot(application),
                )
            if application.status != ApplicationStatus.COMPLETED:
                raise NotCompletedError(
                    f"Application is {application.status}, not completed",
                    details=self._snapshot(application),
                )

            if application.remaining_amount is not None:
                if application.remaining_amount <= 0:
                    raise InvalidAmountError(
                        "Remaining amount must be positive",
                        details=self._snapshot(application),
                    )
                return TransitionOutcome(application)

            remaining_amount = compute_remaining_amount(
                application.total_amount or 0, application.deposit_amount or 0
            )
            if remaining_amount <= 0:
                raise InvalidAmountError(
                    "Remaining amount must be positive",
                    details={**self._snapshot(application), "computed_remaining_amount": remaining_amount},
                )

            application.remaining_amount = remaining_amount
            application.platform_fee_on_remaining = 0
            application.total_platform_fee = application.platform_fee or 0
            application.transfer_amount = remaining_amount
            application.save(
                update_fields=[
                    "remaining_amount",
                    "platform_fee_on_remaining",
                    "total_platform_fee",
                    "transfer_amount",
                ]
            )

        logger.info("Final payment split computed", extra=application.monetary_snapshot())
        # Field population only; notifications wait for the confirmed payment
        return TransitionOutcome(application)

    def confirm_final_paid(
        self,
        application_id: UUID | str,
        checkout_session_id: str | None = None,
        payment_intent_id: str | None = None,
    ) -> TransitionOutcome:
        """
        Record the final payment: completed -> paid. Idempotent.

        Raises:
            NotFoundError: No final settlement was ever initiated
            InvalidStateTransitionError: Application is not completed
        """
        with transaction.atomic():
            application = self.repository.lock_application(application_id)
            settlement = self.repository.get_settlement(application.pk, SettlementStage.FINAL, for_update=True)
            if settlement is None:
                raise NotFoundError(
                    "No final settlement exists for this application",
                    error_code="SETTLEMENT_NOT_FOUND",
                    details=self._snapshot(application),
                )

            if application.status == ApplicationStatus.PAID or application.final_payment_paid:
                logger.info(
                    "Final payment already confirmed, ignoring",
                    extra={"application_id": str(application.pk)},
                )
                return TransitionOutcome(application)

            now = timezone.now()
            application.final_checkout_session_id = checkout_session_id or settlement.checkout_session_id
            if payment_intent_id:
                application.final_payment_intent_id = payment_intent_id
            application.final_payment_paid_at = now
            self._transition(application, "mark_paid")
            application.save()

            self._mark_settlement_paid(settlement, now, payment_intent_id)

        logger.info(
            "Final payment confirmed",
            extra={
                **application.monetary_snapshot(),
                "total_transfer_amount": application.total_transfer_amount,
            },
        )
        return TransitionOutcome(application, EscrowEvent.FINAL_PAID)

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _mark_settlement_paid(settlement, paid_at, payment_intent_id: str | None) -> None:
        settlement.is_paid = True
        settlement.paid_at = paid_at
        if payment_intent_id:
            settlement.payment_intent_id = payment_intent_id
        settlement.save(update_fields=["is_paid", "paid_at", "payment_intent_id"])

    @staticmethod
    def _require_poster(application: JobApplication, caller: User, action: str) -> None:
        if application.poster_id != caller.pk:
            raise PermissionDeniedError(
                f"Only the poster can {action} this application",
                details={"application_id": str(application.pk)},
            )

    @staticmethod
    def _snapshot(application: JobApplication) -> dict[str, Any]:
        snapshot = application.monetary_snapshot()
        if snapshot["total_amount"] is None:
            snapshot["total_amount"] = application.opportunity.amount
        return snapshot

    @staticmethod
    def _transition(application: JobApplication, name: str, **kwargs) -> None:
        """Run a django-fsm transition, mapping TransitionNotAllowed to a 409."""
        try:
            getattr(application, name)(**kwargs)
        except TransitionNotAllowed as e:
            raise InvalidStateTransitionError(
                f"Cannot {name} application from '{application.status}'",
                details={"current_state": application.status, "transition": name},
            ) from e
