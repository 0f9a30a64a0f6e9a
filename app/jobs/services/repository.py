"""
Data access for opportunities and job applications.

The repository is the only place the escrow services touch the ORM for
these models. Input that reaches the database is validated here, so the
state machine works with typed values.

Usage:
    from jobs.services.repository import ApplicationRepository, ApplicationSubmission

    submission = ApplicationSubmission.from_payload(request.data)
    application = ApplicationRepository.create_application(opportunity, applicant, submission)

    with transaction.atomic():
        application = ApplicationRepository.lock_application(application_id)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import URLValidator, validate_email
from django.db import IntegrityError, transaction
from django.db.models import Q

from core.exceptions import NotFoundError
from jobs.exceptions import DuplicateApplicationError, InvalidArgumentError
from jobs.models import JobApplication, Opportunity, Settlement
from payments.locks import check_version, lock_row
from payments.models import ConnectedAccount

if TYPE_CHECKING:
    from uuid import UUID

    from django.db.models import QuerySet

    from authentication.models import User

logger = logging.getLogger(__name__)

REQUIRED_APPLICATION_FIELDS = ("name", "email", "cover_letter")


@dataclass(frozen=True)
class ApplicationSubmission:
    """
    Validated content of a job application.

    Attributes:
        name, email, cover_letter: Required
        phone, portfolio_url, rate, availability, additional_info: Optional
    """

    name: str
    email: str
    cover_letter: str
    phone: str = ""
    portfolio_url: str = ""
    rate: str = ""
    availability: str = ""
    additional_info: str = ""

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ApplicationSubmission:
        """
        Build from a loosely typed payload, dropping unknown keys.

        Raises:
            InvalidArgumentError: Missing required field or malformed email/URL
        """
        known = {f.name for f in fields(cls)}
        values = {
            key: str(value).strip()
            for key, value in payload.items()
            if key in known and value is not None
        }

        missing = [name for name in REQUIRED_APPLICATION_FIELDS if not values.get(name)]
        if missing:
            raise InvalidArgumentError(
                f"Missing required fields: {', '.join(missing)}",
                error_code="MISSING_REQUIRED_FIELDS",
                details={"missing": missing},
            )

        try:
            validate_email(values["email"])
        except DjangoValidationError as e:
            raise InvalidArgumentError(
                "Invalid email address",
                error_code="INVALID_EMAIL",
                details={"email": values["email"]},
            ) from e

        if values.get("portfolio_url"):
            try:
                URLValidator()(values["portfolio_url"])
            except DjangoValidationError as e:
                raise InvalidArgumentError(
                    "Invalid portfolio URL",
                    error_code="INVALID_PORTFOLIO_URL",
                    details={"portfolio_url": values["portfolio_url"]},
                ) from e

        return cls(**values)


class ApplicationRepository:
    """ORM access for Opportunity, JobApplication and Settlement."""

    # =========================================================================
    # Opportunities
    # =========================================================================

    @staticmethod
    def get_opportunity(opportunity_id: UUID | str) -> Opportunity:
        opportunity = Opportunity.objects.select_related("poster").filter(pk=opportunity_id).first()
        if opportunity is None:
            raise NotFoundError(
                f"Opportunity {opportunity_id} not found",
                error_code="OPPORTUNITY_NOT_FOUND",
                details={"opportunity_id": str(opportunity_id)},
            )
        return opportunity

    @staticmethod
    def list_open_opportunities() -> QuerySet[Opportunity]:
        return Opportunity.objects.filter(is_open=True).select_related("poster")

    # =========================================================================
    # Applications
    # =========================================================================

    @staticmethod
    def get_application(application_id: UUID | str) -> JobApplication:
        application = (
            JobApplication.objects.select_related("opportunity", "applicant", "poster")
            .filter(pk=application_id)
            .first()
        )
        if application is None:
            raise NotFoundError(
                f"Application {application_id} not found",
                error_code="APPLICATION_NOT_FOUND",
                details={"application_id": str(application_id)},
            )
        return application

    @staticmethod
    def lock_application(
        application_id: UUID | str,
        expected_version: int | None = None,
    ) -> JobApplication:
        """
        Re-read an application under a row lock. Call inside transaction.atomic().

        Raises:
            NotFoundError: Unknown application
            StaleRecordError: expected_version given and no longer current
        """
        if expected_version is not None:
            return check_version(JobApplication, application_id, expected_version)
        return lock_row(JobApplication, application_id)

    @staticmethod
    def applications_for_user(user: User) -> QuerySet[JobApplication]:
        """Applications where the user is the applicant or the poster."""
        return (
            JobApplication.objects.filter(Q(applicant=user) | Q(poster=user))
            .select_related("opportunity")
            .order_by("-created_at")
        )

    @staticmethod
    def create_application(
        opportunity: Opportunity,
        applicant: User,
        submission: ApplicationSubmission,
    ) -> JobApplication:
        """
        Insert a pending application.

        The unique (opportunity, applicant) constraint settles races between
        two submissions; the loser gets DuplicateApplicationError.
        """
        if JobApplication.objects.filter(opportunity=opportunity, applicant=applicant).exists():
            raise DuplicateApplicationError(
                "You have already applied to this opportunity",
                details={"opportunity_id": str(opportunity.pk)},
            )

        try:
            with transaction.atomic():
                return JobApplication.objects.create(
                    opportunity=opportunity,
                    applicant=applicant,
                    poster=opportunity.poster,
                    opportunity_title=opportunity.title,
                    company_name=opportunity.company_name,
                    name=submission.name,
                    email=submission.email,
                    cover_letter=submission.cover_letter,
                    phone=submission.phone,
                    portfolio_url=submission.portfolio_url,
                    rate=submission.rate,
                    availability=submission.availability,
                    additional_info=submission.additional_info,
                )
        except IntegrityError as e:
            logger.info(
                "Concurrent duplicate application rejected",
                extra={"opportunity_id": str(opportunity.pk), "applicant_id": applicant.pk},
            )
            raise DuplicateApplicationError(
                "You have already applied to this opportunity",
                details={"opportunity_id": str(opportunity.pk)},
            ) from e

    # =========================================================================
    # Settlements and accounts
    # =========================================================================

    @staticmethod
    def get_settlement(application_id: UUID | str, stage: str, for_update: bool = False) -> Settlement | None:
        queryset = Settlement.objects.filter(idempotency_key=Settlement.build_key(application_id, stage))
        if for_update:
            queryset = queryset.select_for_update()
        return queryset.first()

    @staticmethod
    def find_settlement_by_session(checkout_session_id: str) -> Settlement | None:
        if not checkout_session_id:
            return None
        return Settlement.objects.filter(checkout_session_id=checkout_session_id).first()

    @staticmethod
    def connect_account_id_for(user: User) -> str | None:
        """The user's Stripe Connect account id, or None if they never onboarded."""
        return (
            ConnectedAccount.objects.filter(profile__user=user)
            .values_list("stripe_account_id", flat=True)
            .first()
        )
