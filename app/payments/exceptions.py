"""
Payment-specific exceptions for Stripe and escrow operations.

Exception Hierarchy:
    PaymentError (base for payment domain, 400)
    ├── AccountNotReadyError (400) - Stripe account cannot take part in a charge
    └── PaymentProcessingError (502) - Payment processing failures
        └── StripeError - Base for all Stripe errors
            ├── StripeCardDeclinedError - Card declined (permanent)
            ├── StripeInvalidAccountError - Invalid Stripe account (permanent)
            ├── StripeInvalidRequestError - Invalid request params (permanent)
            ├── StripeRateLimitError - Rate limited (transient, retry)
            ├── StripeAPIUnavailableError - API unavailable (transient, retry)
            └── StripeTimeoutError - Request timeout (transient, retry)

    StaleRecordError - Optimistic locking conflict (inherits ConflictError)
    InvalidStateTransitionError - FSM transition not allowed (inherits ConflictError)

Usage:
    from payments.exceptions import StaleRecordError, StripeError

    try:
        StripeAdapter.create_checkout_session(params, idempotency_key=key)
    except StripeError as e:
        if e.is_retryable:
            ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ConflictError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment operations.

    Example:
        try:
            SettlementInitiator().initiate_settlement(application, "deposit")
        except PaymentError as e:
            return Response(e.to_dict(), status=e.http_status)
    """

    default_error_code: str = "PAYMENT_ERROR"
    http_status: int = 400


class AccountNotReadyError(PaymentError):
    """
    Raised when a Stripe account is not in a state to pay or be paid.

    The user has to finish onboarding before the operation can succeed, so
    this is a client error rather than a processing failure.
    """

    default_error_code: str = "ACCOUNT_NOT_READY"


class PaymentProcessingError(PaymentError):
    """
    Raised when payment processing fails at the processor.

    Example:
        except StripeError as e:
            raise PaymentProcessingError(
                "Could not create checkout session",
                details={"retryable": e.is_retryable},
            ) from e
    """

    default_error_code: str = "PAYMENT_PROCESSING_ERROR"
    http_status: int = 502


# =============================================================================
# Stripe-Specific Exceptions
# =============================================================================


class StripeError(PaymentProcessingError):
    """
    Base exception for all Stripe-related errors.

    Attributes:
        stripe_code: Stripe's internal error code
        decline_code: Card decline code (if applicable)
        is_retryable: True for transient errors that are safe to retry
            with the same idempotency key
    """

    default_error_code: str = "STRIPE_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        stripe_code: str | None = None,
        decline_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if stripe_code:
            details["stripe_code"] = stripe_code
        if decline_code:
            details["decline_code"] = decline_code
        super().__init__(message, error_code=error_code, details=details)
        self.stripe_code = stripe_code
        self.decline_code = decline_code


# -----------------------------------------------------------------------------
# Permanent Errors (do not retry)
# -----------------------------------------------------------------------------


class StripeCardDeclinedError(StripeError):
    """Card was declined by the issuing bank. decline_code holds the reason."""

    default_error_code: str = "CARD_DECLINED"
    is_retryable: bool = False


class StripeInvalidAccountError(StripeError):
    """
    Invalid Stripe Connect account.

    Raised when a connected account is missing, disabled or otherwise
    unusable as a charge destination. Needs the account holder to act.
    """

    default_error_code: str = "INVALID_STRIPE_ACCOUNT"
    is_retryable: bool = False


class StripeInvalidRequestError(StripeError):
    """
    Invalid request parameters sent to Stripe.

    Usually a bug on our side; the same request will never succeed.
    """

    default_error_code: str = "INVALID_STRIPE_REQUEST"
    is_retryable: bool = False


# -----------------------------------------------------------------------------
# Transient Errors (safe to retry with backoff)
# -----------------------------------------------------------------------------


class StripeRateLimitError(StripeError):
    """Rate limited by the Stripe API."""

    default_error_code: str = "STRIPE_RATE_LIMITED"
    is_retryable: bool = True


class StripeAPIUnavailableError(StripeError):
    """
    Stripe API is temporarily unavailable.

    Covers network failures and Stripe 5xx responses.
    """

    default_error_code: str = "STRIPE_UNAVAILABLE"
    is_retryable: bool = True


class StripeTimeoutError(StripeError):
    """
    Stripe API call timed out.

    The operation may have succeeded on Stripe's side. Retry with the same
    idempotency key so Stripe replays the original response.
    """

    default_error_code: str = "STRIPE_TIMEOUT"
    is_retryable: bool = True


# =============================================================================
# Concurrency Control Exceptions
# =============================================================================


class StaleRecordError(ConflictError):
    """
    Raised when optimistic locking detects concurrent modification.

    The record changed between the caller's read and this write. The
    caller should re-read and decide again.

    Attributes:
        details: Contains pk, expected_version, and current_version
    """

    default_error_code: str = "STALE_RECORD"


class InvalidStateTransitionError(ConflictError):
    """
    Raised when a state machine transition is not allowed.

    Wraps django-fsm's TransitionNotAllowed in the standard error format.

    Example:
        try:
            application.complete()
        except TransitionNotAllowed:
            raise InvalidStateTransitionError(
                f"Cannot complete application from '{application.status}'",
                details={"current_state": application.status, "transition": "complete"},
            )
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


__all__ = [
    # Payment domain
    "PaymentError",
    "AccountNotReadyError",
    "PaymentProcessingError",
    # Stripe-specific
    "StripeError",
    "StripeCardDeclinedError",
    "StripeInvalidAccountError",
    "StripeInvalidRequestError",
    "StripeRateLimitError",
    "StripeAPIUnavailableError",
    "StripeTimeoutError",
    # Concurrency control
    "StaleRecordError",
    "InvalidStateTransitionError",
]
