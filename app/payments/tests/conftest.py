"""
Fixtures for payment tests.
"""

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import UserFactory
from payments.adapters import AccountResult
from payments.tests.factories import ConnectedAccountFactory


@pytest.fixture
def user(db):
    return UserFactory()


@pytest.fixture
def connected_account(user):
    return ConnectedAccountFactory(profile=user.profile, stripe_account_id="acct_test_ready")


@pytest.fixture
def onboarding_account(db):
    return ConnectedAccountFactory(onboarding=True)


@pytest.fixture
def account_result():
    """Build an AccountResult as returned by StripeAdapter.retrieve_account."""

    def _create(**overrides):
        values = {
            "id": "acct_test_ready",
            "charges_enabled": True,
            "payouts_enabled": True,
            "details_submitted": True,
            "transfers_capability": "active",
            "requirements_due": [],
            "disabled_reason": None,
        }
        values.update(overrides)
        return AccountResult(**values)

    return _create


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def authenticated_client(api_client, user):
    api_client.force_authenticate(user=user)
    return api_client
