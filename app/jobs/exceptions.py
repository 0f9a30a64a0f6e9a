"""
Escrow domain exceptions.

Every error carries the authoritative monetary snapshot of the application
in ``details`` where one exists, so a client can reconcile without
re-deriving amounts.

Exception Hierarchy:
    ConflictError (409)
    ├── DuplicateApplicationError - Applicant already applied
    ├── AlreadyHiredError - hire on a non-pending application
    ├── NotHiredError - complete on a non-hired application
    ├── NotCompletedError - settle-final before completion
    ├── DepositNotPaidError - complete without deposit proof
    ├── AlreadyPaidError - settle-final after the final payment
    └── AlreadySettledError - checkout for a stage that is already paid
    ValidationError (400)
    ├── InvalidAmountError - Non-positive or not yet computed amounts
    └── InvalidArgumentError - Malformed input, applying to own opportunity
    AccountNotReadyError (400)
    ├── PayerNotReadyError - Poster's account cannot take charges
    ├── PayeeNotReceivableError - Applicant's transfers capability inactive
    └── PayeeAccountMissingError - No destination account recorded
    PaymentProcessingError (502)
    └── SettlementProcessorError - Stripe rejected or failed the checkout

Usage:
    from jobs.exceptions import AlreadyHiredError

    raise AlreadyHiredError(
        "Application is not pending",
        details=application.monetary_snapshot(),
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import ConflictError, ValidationError
from payments.exceptions import AccountNotReadyError, PaymentProcessingError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Conflicts (409)
# =============================================================================


class DuplicateApplicationError(ConflictError):
    default_error_code: str = "DUPLICATE_APPLICATION"


class AlreadyHiredError(ConflictError):
    default_error_code: str = "ALREADY_HIRED"


class NotHiredError(ConflictError):
    default_error_code: str = "NOT_HIRED"


class NotCompletedError(ConflictError):
    default_error_code: str = "NOT_COMPLETED"


class DepositNotPaidError(ConflictError):
    default_error_code: str = "DEPOSIT_NOT_PAID"


class AlreadyPaidError(ConflictError):
    default_error_code: str = "ALREADY_PAID"


class AlreadySettledError(ConflictError):
    """The stage's paid marker is set; no new checkout may be opened."""

    default_error_code: str = "ALREADY_SETTLED"


# =============================================================================
# Validation (400)
# =============================================================================


class InvalidAmountError(ValidationError):
    default_error_code: str = "INVALID_AMOUNT"


class InvalidArgumentError(ValidationError):
    default_error_code: str = "INVALID_ARGUMENT"


# =============================================================================
# Account readiness (400)
# =============================================================================


class PayerNotReadyError(AccountNotReadyError):
    default_error_code: str = "PAYER_NOT_READY"


class PayeeNotReceivableError(AccountNotReadyError):
    default_error_code: str = "PAYEE_NOT_RECEIVABLE"


class PayeeAccountMissingError(AccountNotReadyError):
    default_error_code: str = "PAYEE_ACCOUNT_MISSING"


# =============================================================================
# Processor failures (502)
# =============================================================================


class SettlementProcessorError(PaymentProcessingError):
    """
    Stripe failed to create or retrieve a checkout session.

    The application's computed amounts are left untouched, so the same
    request can be retried. ``is_retryable`` comes from the Stripe error.
    """

    default_error_code: str = "SETTLEMENT_PROCESSOR_ERROR"

    def __init__(
        self,
        message: str,
        is_retryable: bool = False,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = {**(details or {}), "retryable": is_retryable}
        super().__init__(message, error_code=error_code, details=details)
        self.is_retryable = is_retryable


__all__ = [
    "AlreadyHiredError",
    "AlreadyPaidError",
    "AlreadySettledError",
    "DepositNotPaidError",
    "DuplicateApplicationError",
    "InvalidAmountError",
    "InvalidArgumentError",
    "NotCompletedError",
    "NotHiredError",
    "PayeeAccountMissingError",
    "PayeeNotReceivableError",
    "PayerNotReadyError",
    "SettlementProcessorError",
]
