"""
Fixtures for Stripe adapter tests.

Stripe SDK calls are patched at the SDK boundary; responses are small
objects that expose attributes like StripeObject does.
"""

from types import SimpleNamespace

import pytest


class MockStripeObject(SimpleNamespace):
    """Attribute access plus to_dict(), like stripe.StripeObject."""

    def to_dict(self):
        return {
            key: value.to_dict() if isinstance(value, MockStripeObject) else value
            for key, value in vars(self).items()
        }


@pytest.fixture
def stripe_settings(settings):
    settings.STRIPE_SECRET_KEY = "sk_test_123"
    settings.STRIPE_WEBHOOK_SECRET = "whsec_test"
    settings.STRIPE_API_TIMEOUT_SECONDS = 5
    settings.STRIPE_MAX_RETRIES = 1
    return settings


@pytest.fixture
def mock_checkout_session():
    def _create(
        id="cs_test_123",
        url="https://checkout.stripe.com/c/pay/cs_test_123",
        status="open",
        payment_status="unpaid",
        payment_intent=None,
        metadata=None,
    ):
        return MockStripeObject(
            id=id,
            object="checkout.session",
            url=url,
            status=status,
            payment_status=payment_status,
            payment_intent=payment_intent,
            metadata=metadata or {},
        )

    return _create


@pytest.fixture
def mock_account():
    def _create(
        id="acct_test_123",
        charges_enabled=True,
        payouts_enabled=True,
        details_submitted=True,
        transfers="active",
        currently_due=None,
        past_due=None,
        disabled_reason=None,
    ):
        return MockStripeObject(
            id=id,
            object="account",
            charges_enabled=charges_enabled,
            payouts_enabled=payouts_enabled,
            details_submitted=details_submitted,
            capabilities=MockStripeObject(transfers=transfers),
            requirements=MockStripeObject(
                currently_due=currently_due or [],
                past_due=past_due or [],
                disabled_reason=disabled_reason,
            ),
        )

    return _create


@pytest.fixture
def checkout_params():
    from payments.adapters import CreateCheckoutSessionParams

    def _create(**overrides):
        values = {
            "amount_cents": 2500,
            "currency": "usd",
            "product_name": "Deposit (25%) - Landing page",
            "destination_account": "acct_dest_123",
            "success_url": "https://app.example.com/success",
            "cancel_url": "https://app.example.com/cancel",
            "idempotency_key": "checkout_deposit:abc:1:deadbeef",
            "application_fee_amount": 75,
        }
        values.update(overrides)
        return CreateCheckoutSessionParams(**values)

    return _create
