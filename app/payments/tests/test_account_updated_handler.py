"""
Tests for the account.updated webhook handler.
"""

import pytest

from payments.state_machines import OnboardingStatus
from payments.tests.factories import WebhookEventFactory
from payments.webhooks.handlers import dispatch_webhook


def account_event(account_object):
    return WebhookEventFactory(
        event_type="account.updated",
        payload={"type": "account.updated", "data": {"object": account_object}},
    )


class TestAccountUpdatedHandler:
    def test_refreshes_cached_flags(self, onboarding_account):
        event = account_event(
            {
                "id": onboarding_account.stripe_account_id,
                "charges_enabled": True,
                "payouts_enabled": True,
                "details_submitted": True,
                "capabilities": {"transfers": "active"},
                "requirements": {"currently_due": [], "past_due": []},
            }
        )

        result = dispatch_webhook(event)

        assert result.success
        onboarding_account.refresh_from_db()
        assert onboarding_account.onboarding_status == OnboardingStatus.COMPLETE
        assert onboarding_account.transfers_enabled
        assert onboarding_account.version == 2

    def test_unknown_account_is_noop(self, db):
        result = dispatch_webhook(account_event({"id": "acct_someone_else"}))

        assert result.success
        assert result.data is None

    def test_missing_account_id_fails(self, db):
        result = dispatch_webhook(account_event({}))

        assert not result.success
        assert result.error_code == "INVALID_WEBHOOK_PAYLOAD"

    @pytest.mark.django_db
    def test_unregistered_event_type_succeeds(self):
        event = WebhookEventFactory(event_type="balance.available")

        assert dispatch_webhook(event).success
