"""
Payment adapters for external services.

All external payment API calls go through these adapters so that error
handling, timeouts, idempotency and logging stay consistent.

Usage:
    from payments.adapters import IdempotencyKeyGenerator, StripeAdapter

    account = StripeAdapter.retrieve_account("acct_123")
"""

from payments.adapters.stripe_adapter import (
    AccountResult,
    CheckoutSessionResult,
    CreateCheckoutSessionParams,
    CustomerResult,
    IdempotencyKeyGenerator,
    StripeAdapter,
    is_retryable_stripe_error,
)

__all__ = [
    "AccountResult",
    "CheckoutSessionResult",
    "CreateCheckoutSessionParams",
    "CustomerResult",
    "IdempotencyKeyGenerator",
    "StripeAdapter",
    "is_retryable_stripe_error",
]
