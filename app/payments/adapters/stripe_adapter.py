"""
Stripe API adapter for payment operations.

This module provides the StripeAdapter class which encapsulates all
Stripe API interactions. All Stripe calls should go through this
adapter to ensure consistent error handling, timeouts, idempotency,
and observability.

Features:
- Configurable timeouts on all API calls
- Automatic error translation to domain exceptions
- Structured logging with timing metrics
- Idempotency support for safe retries

Configuration (via settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_WEBHOOK_SECRET: Webhook signing secret
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- STRIPE_MAX_RETRIES: Network retries performed by the SDK (default: 3)

Usage:
    from payments.adapters import CreateCheckoutSessionParams, StripeAdapter

    # Destination charge: the payee receives amount - application_fee_amount
    result = StripeAdapter.create_checkout_session(
        CreateCheckoutSessionParams(
            amount_cents=2500,
            currency="usd",
            product_name="Deposit (25%) - Landing page",
            destination_account="acct_123",
            application_fee_amount=75,
            success_url="https://app.example.com/profile/1?payment=success",
            cancel_url="https://app.example.com/profile/1?payment=cancelled",
            idempotency_key="checkout_deposit:550e8400-...:1:a1b2c3d4",
        )
    )

    account = StripeAdapter.retrieve_account("acct_123")
    if account.charges_enabled:
        ...
"""

from __future__ import annotations

import hashlib
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

import stripe
from django.conf import settings

from payments.exceptions import (
    StripeAPIUnavailableError,
    StripeCardDeclinedError,
    StripeError,
    StripeInvalidAccountError,
    StripeInvalidRequestError,
    StripeRateLimitError,
)


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class CreateCheckoutSessionParams:
    """
    Parameters for creating a one-line-item Checkout Session.

    The session charges on the platform and routes the funds to
    destination_account (a destination charge), keeping
    application_fee_amount as the platform fee.

    Attributes:
        amount_cents: Line item amount in smallest currency unit
        currency: ISO 4217 currency code
        product_name: Line item name shown on the Checkout page
        destination_account: Connected account receiving the funds (acct_xxx)
        success_url: Redirect after successful payment
        cancel_url: Redirect when the payer abandons Checkout
        idempotency_key: Unique key for idempotent creation
        application_fee_amount: Platform fee kept from the charge
        customer_id: Stripe Customer paying (cus_xxx)
        metadata: Metadata attached to the session
        payment_intent_metadata: Metadata attached to the underlying PaymentIntent
    """

    amount_cents: int
    currency: str
    product_name: str
    destination_account: str
    success_url: str
    cancel_url: str
    idempotency_key: str
    application_fee_amount: int = 0
    customer_id: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    payment_intent_metadata: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate parameters after initialization."""
        if self.amount_cents <= 0:
            raise ValueError("amount_cents must be positive")
        if self.application_fee_amount < 0:
            raise ValueError("application_fee_amount must not be negative")
        if self.application_fee_amount >= self.amount_cents:
            raise ValueError("application_fee_amount must be less than amount_cents")
        if not self.destination_account:
            raise ValueError("destination_account is required")
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")
        if not self.currency:
            raise ValueError("currency is required")


@dataclass
class CheckoutSessionResult:
    """
    Result from Stripe Checkout Session operations.

    Attributes:
        id: Session ID (cs_xxx)
        url: Hosted Checkout URL (None once the session is complete or expired)
        status: open, complete or expired
        payment_status: paid, unpaid or no_payment_required
        payment_intent_id: Underlying PaymentIntent (pi_xxx) once created
        metadata: Attached metadata
        raw_response: Full Stripe response dict (for debugging)
    """

    id: str
    url: str | None
    status: str
    payment_status: str
    payment_intent_id: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)

    @property
    def is_open(self) -> bool:
        return self.status == "open"

    @property
    def is_paid(self) -> bool:
        return self.status == "complete" and self.payment_status == "paid"


@dataclass
class AccountResult:
    """
    Result from Stripe Connect account retrieval.

    Attributes:
        id: Account ID (acct_xxx)
        charges_enabled: Account can take charges
        payouts_enabled: Account can pay out to its bank
        details_submitted: Onboarding form was submitted
        transfers_capability: Status of the "transfers" capability
            (active, inactive, pending) or None if not requested
        requirements_due: currently_due + past_due requirement names
        disabled_reason: Stripe's reason the account is restricted
        raw_response: Full Stripe response dict
    """

    id: str
    charges_enabled: bool
    payouts_enabled: bool
    details_submitted: bool = False
    transfers_capability: str | None = None
    requirements_due: list[str] = field(default_factory=list)
    disabled_reason: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)

    @property
    def transfers_active(self) -> bool:
        return self.transfers_capability == "active"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccountResult:
        """Build from a raw account dict, as found in account.updated payloads."""
        capabilities = data.get("capabilities") or {}
        requirements = data.get("requirements") or {}
        return cls(
            id=data["id"],
            charges_enabled=bool(data.get("charges_enabled")),
            payouts_enabled=bool(data.get("payouts_enabled")),
            details_submitted=bool(data.get("details_submitted")),
            transfers_capability=capabilities.get("transfers"),
            requirements_due=[
                *(requirements.get("currently_due") or []),
                *(requirements.get("past_due") or []),
            ],
            disabled_reason=requirements.get("disabled_reason"),
            raw_response=data,
        )


@dataclass
class CustomerResult:
    """
    Result from Stripe Customer operations.

    Attributes:
        id: Customer ID (cus_xxx)
        email: Customer email
        metadata: Attached metadata
    """

    id: str
    email: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


# =============================================================================
# Idempotency Key Generator
# =============================================================================


class IdempotencyKeyGenerator:
    """
    Generate idempotency keys for Stripe API calls.

    Format: "{operation}:{entity_id}:{attempt}:{hash}"

    The hash component binds the key to this deployment's SECRET_KEY
    while the structured format aids debugging and correlation.

    Example:
        key = IdempotencyKeyGenerator.generate(
            operation="checkout_deposit",
            entity_id=application.id,
            attempt=1,
        )
        # Result: "checkout_deposit:550e8400-e29b-41d4-a716-446655440000:1:a1b2c3d4"
    """

    @staticmethod
    def generate(
        operation: str,
        entity_id: uuid.UUID | str,
        attempt: int = 1,
    ) -> str:
        """
        Generate a deterministic idempotency key.

        The same (operation, entity_id, attempt) always yields the same key,
        so a retried request replays Stripe's original response.
        """
        entity_str = str(entity_id)
        hash_input = f"{operation}:{entity_str}:{attempt}:{settings.SECRET_KEY}"
        short_hash = hashlib.sha256(hash_input.encode()).hexdigest()[:8]

        return f"{operation}:{entity_str}:{attempt}:{short_hash}"


def is_retryable_stripe_error(error: Exception) -> bool:
    """
    Check if an error is a transient Stripe error that can be retried.

    Args:
        error: The exception to check

    Returns:
        True for rate limits, timeouts and Stripe outages
    """
    if isinstance(error, StripeError):
        return getattr(error, "is_retryable", False)
    return False


def _to_dict(stripe_object: Any) -> dict[str, Any]:
    to_dict = getattr(stripe_object, "to_dict", None)
    return to_dict() if callable(to_dict) else {}


def _object_id(value: Any) -> str | None:
    """Return the id of an expandable field, expanded or not."""
    if value is None or isinstance(value, str):
        return value
    return getattr(value, "id", None)


# =============================================================================
# Stripe Adapter
# =============================================================================


class StripeAdapter:
    """
    Adapter for Stripe API operations.

    All methods are classmethods - no instance state is maintained.
    Thread-safe for use from Celery workers.

    Usage:
        session = StripeAdapter.create_checkout_session(params)
        session = StripeAdapter.retrieve_checkout_session("cs_xxx")
        account = StripeAdapter.retrieve_account("acct_xxx")
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def _configure_stripe() -> None:
        """Configure Stripe client with API key, timeout and retries."""
        stripe.api_key = settings.STRIPE_SECRET_KEY
        stripe.max_network_retries = getattr(settings, "STRIPE_MAX_RETRIES", 3)
        timeout = getattr(settings, "STRIPE_API_TIMEOUT_SECONDS", 10)
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Checkout Sessions
    # =========================================================================

    @classmethod
    def create_checkout_session(
        cls,
        params: CreateCheckoutSessionParams,
        trace_id: str | None = None,
    ) -> CheckoutSessionResult:
        """
        Create a payment-mode Checkout Session as a destination charge.

        Args:
            params: Parameters for creating the session
            trace_id: Optional trace ID for distributed tracing

        Returns:
            CheckoutSessionResult with the hosted Checkout URL

        Raises:
            StripeInvalidAccountError: Destination account cannot receive funds
            StripeInvalidRequestError: Invalid parameters
            StripeAPIUnavailableError: Stripe service unavailable
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_checkout_session",
            "amount_cents": params.amount_cents,
            "application_fee_amount": params.application_fee_amount,
            "destination_account": params.destination_account,
            "idempotency_key": params.idempotency_key,
            "trace_id": trace_id,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            payment_intent_data: dict[str, Any] = {
                "transfer_data": {"destination": params.destination_account},
                "metadata": params.payment_intent_metadata,
            }
            if params.application_fee_amount:
                payment_intent_data["application_fee_amount"] = params.application_fee_amount

            session_params: dict[str, Any] = {
                "mode": "payment",
                "payment_method_types": ["card"],
                "line_items": [
                    {
                        "price_data": {
                            "currency": params.currency,
                            "product_data": {"name": params.product_name},
                            "unit_amount": params.amount_cents,
                        },
                        "quantity": 1,
                    }
                ],
                "payment_intent_data": payment_intent_data,
                "metadata": params.metadata,
                "success_url": params.success_url,
                "cancel_url": params.cancel_url,
            }
            if params.customer_id:
                session_params["customer"] = params.customer_id

            session = stripe.checkout.Session.create(
                idempotency_key=params.idempotency_key,
                **session_params,
            )

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={
                    **log_context,
                    "checkout_session_id": session.id,
                    "duration_ms": duration_ms,
                },
            )

            return cls._session_result(session)

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise  # Never reached, but satisfies type checker

    @classmethod
    def retrieve_checkout_session(
        cls,
        session_id: str,
        trace_id: str | None = None,
    ) -> CheckoutSessionResult:
        """
        Retrieve a Checkout Session to learn whether it is still usable.

        Raises:
            StripeInvalidRequestError: Session not found
            StripeAPIUnavailableError: Stripe service unavailable
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "retrieve_checkout_session",
            "checkout_session_id": session_id,
            "trace_id": trace_id,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            session = stripe.checkout.Session.retrieve(session_id)

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={
                    **log_context,
                    "status": session.status,
                    "payment_status": session.payment_status,
                    "duration_ms": duration_ms,
                },
            )

            return cls._session_result(session)

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    @staticmethod
    def _session_result(session: Any) -> CheckoutSessionResult:
        return CheckoutSessionResult(
            id=session.id,
            url=session.url,
            status=session.status,
            payment_status=session.payment_status,
            payment_intent_id=_object_id(session.payment_intent),
            metadata=dict(session.metadata or {}),
            raw_response=_to_dict(session),
        )

    # =========================================================================
    # Connect Accounts and Customers
    # =========================================================================

    @classmethod
    def retrieve_account(
        cls,
        account_id: str,
        trace_id: str | None = None,
    ) -> AccountResult:
        """
        Retrieve a connected account's live capability flags.

        Args:
            account_id: Stripe Connect account ID (acct_xxx)
            trace_id: Optional trace ID for distributed tracing

        Returns:
            AccountResult with charges/payouts flags and transfers capability

        Raises:
            StripeInvalidAccountError: Account does not exist or is not connected
            StripeAPIUnavailableError: Stripe service unavailable
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "retrieve_account",
            "account_id": account_id,
            "trace_id": trace_id,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            account = stripe.Account.retrieve(account_id)

            capabilities = getattr(account, "capabilities", None)
            requirements = getattr(account, "requirements", None)
            requirements_due = [
                *(getattr(requirements, "currently_due", None) or []),
                *(getattr(requirements, "past_due", None) or []),
            ]

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={
                    **log_context,
                    "charges_enabled": bool(account.charges_enabled),
                    "duration_ms": duration_ms,
                },
            )

            return AccountResult(
                id=account.id,
                charges_enabled=bool(account.charges_enabled),
                payouts_enabled=bool(account.payouts_enabled),
                details_submitted=bool(getattr(account, "details_submitted", False)),
                transfers_capability=getattr(capabilities, "transfers", None),
                requirements_due=requirements_due,
                disabled_reason=getattr(requirements, "disabled_reason", None),
                raw_response=_to_dict(account),
            )

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    @classmethod
    def create_customer(
        cls,
        email: str,
        idempotency_key: str,
        name: str | None = None,
        metadata: dict[str, str] | None = None,
        trace_id: str | None = None,
    ) -> CustomerResult:
        """
        Create a Stripe Customer for a paying user.

        Raises:
            StripeInvalidRequestError: Invalid parameters
            StripeAPIUnavailableError: Stripe service unavailable
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_customer",
            "idempotency_key": idempotency_key,
            "trace_id": trace_id,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            customer_params: dict[str, Any] = {
                "email": email,
                "metadata": metadata or {},
            }
            if name:
                customer_params["name"] = name

            customer = stripe.Customer.create(
                idempotency_key=idempotency_key,
                **customer_params,
            )

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={
                    **log_context,
                    "customer_id": customer.id,
                    "duration_ms": duration_ms,
                },
            )

            return CustomerResult(
                id=customer.id,
                email=customer.email,
                metadata=dict(customer.metadata or {}),
            )

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    # =========================================================================
    # Webhook Verification
    # =========================================================================

    @classmethod
    def verify_webhook_signature(
        cls,
        payload: bytes,
        signature: str,
    ) -> dict[str, Any]:
        """
        Verify and parse a Stripe webhook event.

        Args:
            payload: Raw webhook payload bytes
            signature: Stripe-Signature header value

        Returns:
            Parsed event data dict

        Raises:
            StripeInvalidRequestError: Invalid signature or malformed payload
        """
        try:
            event = stripe.Webhook.construct_event(
                payload,
                signature,
                settings.STRIPE_WEBHOOK_SECRET,
            )
            return event.to_dict()
        except stripe.SignatureVerificationError as e:
            raise StripeInvalidRequestError(
                "Invalid webhook signature",
                stripe_code="signature_verification_failed",
                details={"error": str(e)},
            ) from e
        except ValueError as e:
            raise StripeInvalidRequestError(
                "Invalid webhook payload",
                stripe_code="invalid_payload",
                details={"error": str(e)},
            ) from e

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_stripe_error(
        cls,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe exceptions to domain exceptions.

        Raises:
            StripeCardDeclinedError: Card was declined
            StripeInvalidAccountError: Invalid Connect account
            StripeInvalidRequestError: Invalid request parameters
            StripeRateLimitError: Rate limited
            StripeAPIUnavailableError: API unavailable or unknown failure
        """
        logger = cls.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, stripe.CardError):
            decline_code = getattr(error, "decline_code", None)
            logger.warning(
                "Card error from Stripe",
                extra={**log_context, "decline_code": decline_code},
            )
            raise StripeCardDeclinedError(
                str(error.user_message or error),
                stripe_code=error.code,
                decline_code=decline_code,
            ) from error

        elif isinstance(error, stripe.InvalidRequestError):
            logger.error(
                "Invalid request to Stripe",
                extra={**log_context, "stripe_code": error.code},
            )

            if "account" in str(error).lower() or error.param == "account":
                raise StripeInvalidAccountError(
                    str(error),
                    stripe_code=error.code,
                ) from error

            raise StripeInvalidRequestError(
                str(error),
                stripe_code=error.code,
            ) from error

        elif isinstance(error, stripe.PermissionError):
            # Account is not connected to this platform
            logger.error("Stripe permission error", extra=log_context)
            raise StripeInvalidAccountError(
                str(error),
                stripe_code="permission_error",
            ) from error

        elif isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise StripeRateLimitError(
                "Stripe rate limit exceeded. Please retry.",
                stripe_code="rate_limit",
            ) from error

        elif isinstance(error, stripe.APIConnectionError):
            logger.error(
                "Connection error to Stripe",
                extra=log_context,
                exc_info=True,
            )
            raise StripeAPIUnavailableError(
                "Could not connect to Stripe. Please retry.",
                stripe_code="api_connection_error",
            ) from error

        elif isinstance(error, stripe.APIError):
            logger.error(
                "Stripe API error",
                extra=log_context,
                exc_info=True,
            )
            raise StripeAPIUnavailableError(
                "Stripe service error. Please retry.",
                stripe_code="api_error",
            ) from error

        elif isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise StripeInvalidRequestError(
                "Stripe authentication failed",
                stripe_code="authentication_error",
            ) from error

        else:
            logger.error(
                f"Unexpected error from Stripe: {type(error).__name__}",
                extra=log_context,
                exc_info=True,
            )
            raise StripeAPIUnavailableError(
                f"Unexpected Stripe error: {error}",
                stripe_code="unknown_error",
            ) from error
