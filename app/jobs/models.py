"""
Models for job opportunities and their escrow-backed applications.

- Opportunity: A posted job with a fixed total price
- JobApplication: One applicant's claim on an opportunity; the escrow record once hired
- Settlement: Idempotency record for one (application, stage) checkout

Money fields are integers in the currency's minor unit. Amounts stay NULL
until the transition that computes them runs, so "not computed yet" is
distinguishable from zero.

Usage:
    from jobs.models import JobApplication, Opportunity

    opportunity = Opportunity.objects.create(poster=user, title="Logo", amount=10000)
    application = JobApplication.objects.get(pk=application_id)
    application.monetary_snapshot()
"""

from __future__ import annotations

from typing import Any

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from core.exceptions import ConflictError
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel, VersionedModel
from jobs.states import ApplicationStatus, SettlementStage


class Opportunity(UUIDPrimaryKeyMixin, BaseModel):
    """
    A job posted by a user, paid through the escrow once someone is hired.

    Fields:
        poster: User who posted the job and pays for it
        title: Job title, copied onto applications and checkout line items
        company_name: Optional company shown in notifications
        description: Free text
        amount: Total price in minor units
        currency: ISO 4217 code
        is_open: Whether new applications are accepted
    """

    poster = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="opportunities",
        help_text="User who posted the opportunity",
    )

    title = models.CharField(max_length=200)

    company_name = models.CharField(max_length=200, blank=True, default="")

    description = models.TextField(blank=True, default="")

    amount = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Total price in the smallest currency unit (e.g., cents)",
    )

    currency = models.CharField(max_length=3, default="usd")

    is_open = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "opportunities"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="opportunity_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return self.title

    def update_amount(self, amount: int) -> None:
        """
        Change the price. Only allowed while nobody has applied.

        Raises:
            ConflictError: If applications already exist
        """
        if self.applications.exists():
            raise ConflictError(
                "Amount cannot change once applications exist",
                error_code="OPPORTUNITY_HAS_APPLICATIONS",
                details={"opportunity_id": str(self.pk), "amount": self.amount},
            )
        self.amount = amount
        self.save(update_fields=["amount", "updated_at"])


class JobApplication(UUIDPrimaryKeyMixin, VersionedModel):
    """
    An application to an opportunity, and the escrow record after a hire.

    State Flow:
        PENDING -> HIRED -> COMPLETED -> PAID
        PENDING -> REJECTED

    The status field is protected: it only changes through the transition
    methods, never by assignment.

    Money (minor units, NULL until computed):
        total_amount: Opportunity price at hire
        deposit_amount: round_half_up(total * 25%), set at hire
        platform_fee: Fee on the deposit, 0 for fee-exempt posters
        remaining_amount: total - deposit, set by settle-final
        platform_fee_on_remaining: Always 0
        total_platform_fee: platform_fee + platform_fee_on_remaining
        transfer_amount: What the final checkout routes to the applicant
        total_transfer_amount: Everything the applicant received, set when paid

    Settlement linkage:
        applicant_connect_account_id: Destination captured at hire, never re-resolved
        deposit_* / final_payment_*: Paid markers and Stripe identifiers
    """

    opportunity = models.ForeignKey(
        Opportunity,
        on_delete=models.PROTECT,
        related_name="applications",
    )

    applicant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="job_applications",
    )

    poster = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="received_job_applications",
        help_text="Copied from the opportunity when the application is created",
    )

    # Snapshot of the opportunity at apply time
    opportunity_title = models.CharField(max_length=200)
    company_name = models.CharField(max_length=200, blank=True, default="")

    # Application content
    name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=50, blank=True, default="")
    cover_letter = models.TextField()
    portfolio_url = models.URLField(blank=True, default="")
    rate = models.CharField(max_length=100, blank=True, default="")
    availability = models.CharField(max_length=200, blank=True, default="")
    additional_info = models.TextField(blank=True, default="")

    status = FSMField(
        default=ApplicationStatus.PENDING,
        choices=ApplicationStatus.choices,
        protected=True,
        db_index=True,
    )

    # Money
    total_amount = models.PositiveIntegerField(null=True, blank=True)
    deposit_amount = models.PositiveIntegerField(null=True, blank=True)
    platform_fee = models.PositiveIntegerField(null=True, blank=True)
    remaining_amount = models.PositiveIntegerField(null=True, blank=True)
    platform_fee_on_remaining = models.PositiveIntegerField(null=True, blank=True)
    total_platform_fee = models.PositiveIntegerField(null=True, blank=True)
    transfer_amount = models.PositiveIntegerField(null=True, blank=True)
    total_transfer_amount = models.PositiveIntegerField(null=True, blank=True)

    # Settlement linkage
    applicant_connect_account_id = models.CharField(max_length=255, blank=True, default="")
    deposit_paid = models.BooleanField(default=False)
    deposit_payment_intent_id = models.CharField(max_length=255, blank=True, default="")
    deposit_checkout_session_id = models.CharField(max_length=255, blank=True, default="")
    final_payment_paid = models.BooleanField(default=False)
    final_payment_intent_id = models.CharField(max_length=255, blank=True, default="")
    final_checkout_session_id = models.CharField(max_length=255, blank=True, default="")

    # Lifecycle timestamps
    hired_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    deposit_paid_at = models.DateTimeField(null=True, blank=True)
    final_payment_paid_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["opportunity", "applicant"],
                name="unique_application_per_opportunity",
            ),
        ]
        indexes = [
            models.Index(fields=["poster", "status"], name="jobapp_poster_status_idx"),
            models.Index(fields=["applicant", "status"], name="jobapp_applicant_status_idx"),
        ]

    def __str__(self) -> str:
        return f"JobApplication({self.opportunity_title}, {self.status})"

    # =========================================================================
    # Transitions
    # =========================================================================

    @transition(field=status, source=ApplicationStatus.PENDING, target=ApplicationStatus.HIRED)
    def hire(self, total_amount: int, deposit_amount: int, platform_fee: int, connect_account_id: str):
        self.total_amount = total_amount
        self.deposit_amount = deposit_amount
        self.platform_fee = platform_fee
        self.applicant_connect_account_id = connect_account_id
        self.hired_at = timezone.now()

    @transition(field=status, source=ApplicationStatus.PENDING, target=ApplicationStatus.REJECTED)
    def reject(self):
        self.rejected_at = timezone.now()

    @transition(field=status, source=ApplicationStatus.HIRED, target=ApplicationStatus.COMPLETED)
    def complete(self):
        self.completed_at = timezone.now()

    @transition(field=status, source=ApplicationStatus.COMPLETED, target=ApplicationStatus.PAID)
    def mark_paid(self):
        """Final payment confirmed; record everything the applicant received."""
        self.final_payment_paid = True
        self.final_payment_paid_at = self.final_payment_paid_at or timezone.now()
        self.total_transfer_amount = (
            (self.deposit_amount or 0) - (self.platform_fee or 0) + (self.remaining_amount or 0)
        )

    # =========================================================================
    # Paid markers
    # =========================================================================

    @property
    def has_deposit_proof(self) -> bool:
        """Any one of the flag, the intent id or the session id proves the deposit."""
        return bool(
            self.deposit_paid or self.deposit_payment_intent_id or self.deposit_checkout_session_id
        )

    @property
    def is_final_paid(self) -> bool:
        return bool(self.final_payment_paid or self.final_payment_intent_id)

    def is_stage_paid(self, stage: str) -> bool:
        if stage == SettlementStage.DEPOSIT:
            return self.deposit_paid
        return self.is_final_paid

    def stage_amount(self, stage: str) -> int | None:
        if stage == SettlementStage.DEPOSIT:
            return self.deposit_amount
        return self.transfer_amount

    def stage_application_fee(self, stage: str) -> int:
        if stage == SettlementStage.DEPOSIT:
            return self.platform_fee or 0
        return 0

    def monetary_snapshot(self) -> dict[str, Any]:
        """The authoritative amounts and markers, for error details and logs."""
        return {
            "application_id": str(self.pk),
            "status": self.status,
            "total_amount": self.total_amount,
            "deposit_amount": self.deposit_amount,
            "platform_fee": self.platform_fee,
            "remaining_amount": self.remaining_amount,
            "platform_fee_on_remaining": self.platform_fee_on_remaining,
            "transfer_amount": self.transfer_amount,
            "deposit_paid": self.deposit_paid,
            "final_payment_paid": self.final_payment_paid,
            "version": self.version,
        }


class Settlement(UUIDPrimaryKeyMixin, VersionedModel):
    """
    Idempotency record for one checkout stage of an application.

    Created, or locked when it exists, before any Stripe call. The
    idempotency_key "{application_id}:{stage}" is unique, so concurrent
    initiations for the same stage converge on one row. Each new Checkout
    Session bumps ``attempt``; the Stripe idempotency key is derived from
    it, so a retried call replays the same session instead of opening a
    second one.

    Fields:
        application: The JobApplication being paid
        stage: deposit or final
        idempotency_key: "{application_id}:{stage}"
        attempt: Number of checkout sessions created for this stage
        amount / application_fee / destination_account_id: What was charged
        checkout_session_id / checkout_url: Current session pointer
        is_paid / paid_at / payment_intent_id: Set on payment confirmation
    """

    application = models.ForeignKey(
        JobApplication,
        on_delete=models.PROTECT,
        related_name="settlements",
    )

    stage = models.CharField(max_length=20, choices=SettlementStage.choices)

    idempotency_key = models.CharField(max_length=100, unique=True)

    attempt = models.PositiveIntegerField(default=0)

    amount = models.PositiveIntegerField()

    application_fee = models.PositiveIntegerField(default=0)

    destination_account_id = models.CharField(max_length=255)

    checkout_session_id = models.CharField(max_length=255, blank=True, default="", db_index=True)

    checkout_url = models.URLField(max_length=2000, blank=True, default="")

    is_paid = models.BooleanField(default=False)

    paid_at = models.DateTimeField(null=True, blank=True)

    payment_intent_id = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["application", "stage"],
                name="unique_settlement_per_stage",
            ),
        ]

    def __str__(self) -> str:
        return f"Settlement({self.idempotency_key}, attempt={self.attempt})"

    @staticmethod
    def build_key(application_id: Any, stage: str) -> str:
        return f"{application_id}:{stage}"
