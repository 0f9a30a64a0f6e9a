"""
Opens Stripe Checkout sessions for the two escrow stages.

Each (application, stage) pair has exactly one Settlement row, keyed by
"{application_id}:{stage}". The row is created, or locked, before Stripe
is called, and it stays locked until the new session pointer is saved.
Concurrent initiations for the same stage therefore run one at a time:
the second one finds the first one's open session and reuses it.

The JobApplication row is locked too, and both locks are held across the
Stripe retrieve/create calls. Webhook confirmations for the same
application wait on that lock for up to the Stripe client timeout. Only
the customer lookup runs before the lock.

The attempt counter feeds the Stripe idempotency key. It is incremented
in the same transaction that stores the resulting session, so:
    - a crash or Stripe failure rolls the increment back, and the retry
      sends the same key, making Stripe replay rather than duplicate
    - an expired session moves to attempt + 1 and a fresh key

Usage:
    handle = SettlementInitiator().initiate_settlement(application, SettlementStage.DEPOSIT)
    return redirect(handle.redirect_url)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import transaction

from authentication.models import Profile
from jobs.exceptions import (
    AlreadySettledError,
    InvalidAmountError,
    InvalidArgumentError,
    PayeeAccountMissingError,
    SettlementProcessorError,
)
from jobs.models import JobApplication, Settlement
from jobs.services.repository import ApplicationRepository
from jobs.states import STAGE_PAYMENT_TYPES, SettlementStage
from payments.adapters import (
    CheckoutSessionResult,
    CreateCheckoutSessionParams,
    IdempotencyKeyGenerator,
    StripeAdapter,
)
from payments.exceptions import StripeError

if TYPE_CHECKING:
    from authentication.models import User

logger = logging.getLogger(__name__)

PRODUCT_NAMES = {
    SettlementStage.DEPOSIT: "Deposit (25%) - {title}",
    SettlementStage.FINAL: "Final Payment (75%) - {title}",
}

STAGE_AMOUNT_KEYS = {
    SettlementStage.DEPOSIT: "deposit_amount",
    SettlementStage.FINAL: "remaining_amount",
}


@dataclass(frozen=True)
class SettlementHandle:
    """Where to send the payer, and whether an existing session was reused."""

    session_id: str
    redirect_url: str
    stage: str
    attempt: int
    reused: bool = False


class SettlementInitiator:
    """
    Creates or reuses the Checkout Session for a stage.

    Args:
        stripe_adapter: Adapter class, injectable for tests
        frontend_url: Base URL for success/cancel redirects (FRONTEND_URL)
        currency: Charge currency (ESCROW_CURRENCY)
    """

    def __init__(
        self,
        stripe_adapter: type | None = None,
        frontend_url: str | None = None,
        currency: str | None = None,
    ) -> None:
        self.stripe = stripe_adapter or StripeAdapter
        self.frontend_url = (frontend_url or getattr(settings, "FRONTEND_URL", "http://localhost:3000")).rstrip("/")
        self.currency = currency or getattr(settings, "ESCROW_CURRENCY", "usd")

    def initiate_settlement(self, application: JobApplication, stage: str) -> SettlementHandle:
        """
        Return a Checkout redirect for the stage, opening a new session only when needed.

        Raises:
            InvalidArgumentError: Unknown stage
            AlreadySettledError: The stage has already been paid
            InvalidAmountError: The stage amount has not been computed
            PayeeAccountMissingError: No destination account on the application
            SettlementProcessorError: Stripe failed; retry with the same request
        """
        if stage not in SettlementStage.values:
            raise InvalidArgumentError(
                f"Unknown settlement stage: {stage}",
                error_code="INVALID_STAGE",
                details={"stage": stage},
            )
        stage = SettlementStage(stage)

        customer_id = self._get_or_create_customer(application.poster)

        with transaction.atomic():
            application = ApplicationRepository.lock_application(application.pk)
            amount, fee = self._check_stage(application, stage)
            settlement = self._lock_settlement(application, stage, amount, fee)

            if settlement.checkout_session_id:
                handle = self._reuse_open_session(application, settlement)
                if handle is not None:
                    return handle

            settlement.attempt += 1
            session = self._create_session(application, settlement, customer_id)

            settlement.checkout_session_id = session.id
            settlement.checkout_url = session.url or ""
            settlement.save(update_fields=["attempt", "checkout_session_id", "checkout_url"])

        logger.info(
            "Checkout session created",
            extra={
                "application_id": str(application.pk),
                "stage": stage,
                "attempt": settlement.attempt,
                "checkout_session_id": session.id,
                "amount": settlement.amount,
                "application_fee": settlement.application_fee,
            },
        )
        return SettlementHandle(
            session_id=session.id,
            redirect_url=session.url or "",
            stage=stage,
            attempt=settlement.attempt,
        )

    # =========================================================================
    # Guards
    # =========================================================================

    @staticmethod
    def _check_stage(application: JobApplication, stage: SettlementStage) -> tuple[int, int]:
        snapshot = application.monetary_snapshot()

        if application.is_stage_paid(stage):
            raise AlreadySettledError(
                f"The {stage.label.lower()} has already been paid",
                details={**snapshot, "stage": stage},
            )

        amount = application.stage_amount(stage)
        if not amount or amount <= 0:
            requirement = "hire" if stage == SettlementStage.DEPOSIT else "settle-final"
            raise InvalidAmountError(
                f"The {stage.label.lower()} amount has not been computed; {requirement} first",
                details={**snapshot, "stage": stage},
            )

        if not application.applicant_connect_account_id:
            raise PayeeAccountMissingError(
                "No destination account recorded for this application",
                details={**snapshot, "stage": stage},
            )

        return amount, application.stage_application_fee(stage)

    @staticmethod
    def _lock_settlement(
        application: JobApplication,
        stage: SettlementStage,
        amount: int,
        fee: int,
    ) -> Settlement:
        """Get or create the stage's row, locked for the rest of the transaction."""
        key = Settlement.build_key(application.pk, stage)
        Settlement.objects.get_or_create(
            idempotency_key=key,
            defaults={
                "application": application,
                "stage": stage,
                "amount": amount,
                "application_fee": fee,
                "destination_account_id": application.applicant_connect_account_id,
            },
        )
        settlement = Settlement.objects.select_for_update().get(idempotency_key=key)

        if settlement.is_paid:
            raise AlreadySettledError(
                f"The {stage.label.lower()} has already been paid",
                details={**application.monetary_snapshot(), "stage": stage},
            )
        return settlement

    # =========================================================================
    # Stripe
    # =========================================================================

    def _reuse_open_session(
        self,
        application: JobApplication,
        settlement: Settlement,
    ) -> SettlementHandle | None:
        """Handle for the current session if it can still be paid, else None."""
        try:
            session = self.stripe.retrieve_checkout_session(settlement.checkout_session_id)
        except StripeError as e:
            raise self._processor_error(e, application, settlement) from e

        if session.is_open:
            logger.info(
                "Reusing open checkout session",
                extra={
                    "application_id": str(application.pk),
                    "stage": settlement.stage,
                    "checkout_session_id": session.id,
                },
            )
            return SettlementHandle(
                session_id=session.id,
                redirect_url=session.url or settlement.checkout_url,
                stage=settlement.stage,
                attempt=settlement.attempt,
                reused=True,
            )

        if session.is_paid:
            # Paid at Stripe, confirmation webhook not processed yet
            raise AlreadySettledError(
                "This payment has already been completed",
                details={
                    **application.monetary_snapshot(),
                    "stage": settlement.stage,
                    "checkout_session_id": session.id,
                },
            )

        logger.info(
            "Previous checkout session unusable, opening a new one",
            extra={
                "application_id": str(application.pk),
                "stage": settlement.stage,
                "checkout_session_id": session.id,
                "session_status": session.status,
            },
        )
        return None

    def _create_session(
        self,
        application: JobApplication,
        settlement: Settlement,
        customer_id: str | None,
    ) -> CheckoutSessionResult:
        stage = SettlementStage(settlement.stage)
        payment_type = STAGE_PAYMENT_TYPES[stage].value
        poster_id = application.poster_id

        params = CreateCheckoutSessionParams(
            amount_cents=settlement.amount,
            currency=self.currency,
            product_name=PRODUCT_NAMES[stage].format(title=application.opportunity_title or "Job Opportunity"),
            destination_account=settlement.destination_account_id,
            application_fee_amount=settlement.application_fee,
            customer_id=customer_id,
            success_url=f"{self.frontend_url}/profile/{poster_id}?payment=success&type={stage.value}",
            cancel_url=f"{self.frontend_url}/profile/{poster_id}?payment=cancelled",
            idempotency_key=IdempotencyKeyGenerator.generate(
                f"checkout_{stage.value}", application.pk, settlement.attempt
            ),
            metadata={
                "type": payment_type,
                "application_id": str(application.pk),
                "stage": stage.value,
            },
            payment_intent_metadata={
                "type": payment_type,
                "application_id": str(application.pk),
                "stage": stage.value,
                "opportunity_id": str(application.opportunity_id),
                "poster_id": str(poster_id),
                "applicant_id": str(application.applicant_id),
                "applicant_connect_account_id": settlement.destination_account_id,
                "total_amount": str(application.total_amount or 0),
                STAGE_AMOUNT_KEYS[stage]: str(settlement.amount),
                "platform_fee": str(settlement.application_fee),
            },
        )

        try:
            return self.stripe.create_checkout_session(params)
        except StripeError as e:
            raise self._processor_error(e, application, settlement) from e

    def _get_or_create_customer(self, poster: User) -> str | None:
        """
        The poster's Stripe Customer, created on first checkout.

        Stored on Profile.stripe_customer_id. A failure here is logged and the
        checkout proceeds without a customer.
        """
        profile = Profile.objects.filter(user=poster).first()
        if profile is None:
            return None
        if profile.stripe_customer_id:
            return profile.stripe_customer_id

        try:
            customer = self.stripe.create_customer(
                email=poster.email,
                name=poster.get_full_name(),
                metadata={"user_id": str(poster.pk)},
                idempotency_key=IdempotencyKeyGenerator.generate("customer", poster.pk),
            )
        except StripeError:
            logger.warning(
                "Could not create Stripe customer, continuing without one",
                extra={"user_id": poster.pk},
                exc_info=True,
            )
            return None

        # Only fill an empty slot so a concurrent request can't overwrite it
        Profile.objects.filter(pk=profile.pk, stripe_customer_id="").update(stripe_customer_id=customer.id)
        return Profile.objects.filter(pk=profile.pk).values_list("stripe_customer_id", flat=True).first()

    @staticmethod
    def _processor_error(
        error: StripeError,
        application: JobApplication,
        settlement: Settlement,
    ) -> SettlementProcessorError:
        logger.error(
            "Stripe checkout failed",
            extra={
                "application_id": str(application.pk),
                "stage": settlement.stage,
                "attempt": settlement.attempt,
                "error_code": error.error_code,
                "retryable": error.is_retryable,
            },
        )
        return SettlementProcessorError(
            "Could not create the checkout session. Please try again.",
            is_retryable=error.is_retryable,
            details={
                **application.monetary_snapshot(),
                "stage": settlement.stage,
                "processor_error_code": error.error_code,
            },
        )
