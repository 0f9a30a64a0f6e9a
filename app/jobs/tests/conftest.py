"""
Fixtures for jobs tests.

Stripe is never called: StripeAdapter's classmethods are patched per test
through the stripe_accounts and stripe_checkout fixtures.
"""

import itertools
from types import SimpleNamespace

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import UserFactory
from jobs.tests.factories import JobApplicationFactory, OpportunityFactory
from payments.adapters import AccountResult, CheckoutSessionResult, CustomerResult, StripeAdapter
from payments.tests.factories import ConnectedAccountFactory


class AccountRegistry(dict):
    """Per-account overrides for the patched retrieve_account; .mock is the patch."""

    mock = None


@pytest.fixture
def poster(db):
    return UserFactory(first_name="Paula")


@pytest.fixture
def applicant(db):
    return UserFactory(first_name="Andre")


@pytest.fixture
def outsider(db):
    return UserFactory()


@pytest.fixture
def poster_account(poster):
    return ConnectedAccountFactory(profile=poster.profile, stripe_account_id="acct_poster")


@pytest.fixture
def applicant_account(applicant):
    return ConnectedAccountFactory(profile=applicant.profile, stripe_account_id="acct_applicant")


@pytest.fixture
def opportunity(poster):
    return OpportunityFactory(poster=poster, title="Brand Video Edit", company_name="Acme Studios", amount=10000)


@pytest.fixture
def application(opportunity, applicant):
    return JobApplicationFactory(opportunity=opportunity, applicant=applicant, name="Andre Applicant")


@pytest.fixture
def ready_accounts(poster_account, applicant_account, stripe_accounts):
    """Both parties onboarded, and Stripe agrees."""
    return stripe_accounts


@pytest.fixture
def stripe_accounts(mocker):
    """
    Patch StripeAdapter.retrieve_account with a registry of accounts.

    Unknown ids come back fully enabled; tests override with
    stripe_accounts["acct_x"] = {...}.
    """
    overrides = AccountRegistry()

    def _retrieve(account_id, **kwargs):
        values = {
            "id": account_id,
            "charges_enabled": True,
            "payouts_enabled": True,
            "details_submitted": True,
            "transfers_capability": "active",
        }
        values.update(overrides.get(account_id, {}))
        return AccountResult(**values)

    overrides.mock = mocker.patch.object(StripeAdapter, "retrieve_account", side_effect=_retrieve)
    return overrides


@pytest.fixture
def stripe_checkout(mocker):
    """
    Patch the checkout and customer calls.

    Each create_checkout_session call returns a new open session
    (cs_test_1, cs_test_2, ...). retrieve_checkout_session returns an open
    session by default; replace ``.side_effect`` to change it.
    """
    counter = itertools.count(1)

    def _create(params):
        session_id = f"cs_test_{next(counter)}"
        return CheckoutSessionResult(
            id=session_id,
            url=f"https://checkout.stripe.com/c/pay/{session_id}",
            status="open",
            payment_status="unpaid",
            metadata=dict(params.metadata),
        )

    def _retrieve(session_id, **kwargs):
        return CheckoutSessionResult(
            id=session_id,
            url=f"https://checkout.stripe.com/c/pay/{session_id}",
            status="open",
            payment_status="unpaid",
        )

    return SimpleNamespace(
        create=mocker.patch.object(StripeAdapter, "create_checkout_session", side_effect=_create),
        retrieve=mocker.patch.object(StripeAdapter, "retrieve_checkout_session", side_effect=_retrieve),
        customer=mocker.patch.object(
            StripeAdapter,
            "create_customer",
            return_value=CustomerResult(id="cus_test_poster", email="poster@example.com"),
        ),
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def poster_client(poster):
    client = APIClient()
    client.force_authenticate(user=poster)
    return client


@pytest.fixture
def applicant_client(applicant):
    client = APIClient()
    client.force_authenticate(user=applicant)
    return client
