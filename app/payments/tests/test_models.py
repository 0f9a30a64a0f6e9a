"""
Tests for ConnectedAccount and WebhookEvent.
"""

import pytest
from django.db import IntegrityError

from payments.models import ConnectedAccount
from payments.state_machines import OnboardingStatus, WebhookEventStatus
from payments.tests.factories import ConnectedAccountFactory, WebhookEventFactory


class TestConnectedAccount:
    def test_defaults(self, user):
        account = ConnectedAccount.objects.create(profile=user.profile, stripe_account_id="acct_new")

        assert account.onboarding_status == OnboardingStatus.NOT_STARTED
        assert account.version == 1
        assert not account.is_ready_to_receive

    def test_stripe_account_id_unique(self, connected_account):
        with pytest.raises(IntegrityError):
            ConnectedAccountFactory(stripe_account_id=connected_account.stripe_account_id)

    def test_ready_needs_complete_and_transfers(self, connected_account):
        assert connected_account.is_ready_to_receive

        connected_account.transfers_enabled = False
        assert not connected_account.is_ready_to_receive

    def test_version_increments_on_save(self, connected_account):
        connected_account.charges_enabled = False
        connected_account.save(update_fields=["charges_enabled"])

        assert connected_account.version == 2
        connected_account.refresh_from_db()
        assert connected_account.version == 2


class TestApplyStripeState:
    def test_complete_account_unchanged(self, connected_account, account_result):
        changed = connected_account.apply_stripe_state(account_result())

        # First probe records the empty requirements snapshot
        assert changed == ["metadata"]
        assert connected_account.onboarding_status == OnboardingStatus.COMPLETE

    def test_onboarding_becomes_complete(self, onboarding_account, account_result):
        changed = onboarding_account.apply_stripe_state(account_result(id=onboarding_account.stripe_account_id))

        assert set(changed) >= {"charges_enabled", "payouts_enabled", "transfers_enabled", "onboarding_status"}
        assert onboarding_account.onboarding_status == OnboardingStatus.COMPLETE
        assert onboarding_account.is_ready_to_receive

    def test_requirements_due_means_in_progress(self, connected_account, account_result):
        connected_account.apply_stripe_state(account_result(requirements_due=["external_account"]))

        assert connected_account.onboarding_status == OnboardingStatus.IN_PROGRESS
        assert connected_account.metadata["requirements_due"] == ["external_account"]

    def test_rejected(self, connected_account, account_result):
        connected_account.apply_stripe_state(
            account_result(charges_enabled=False, payouts_enabled=False, disabled_reason="rejected.fraud")
        )

        assert connected_account.onboarding_status == OnboardingStatus.REJECTED
        assert connected_account.metadata["disabled_reason"] == "rejected.fraud"

    def test_nothing_submitted(self, onboarding_account, account_result):
        onboarding_account.apply_stripe_state(
            account_result(
                charges_enabled=False,
                payouts_enabled=False,
                details_submitted=False,
                transfers_capability=None,
            )
        )

        assert onboarding_account.onboarding_status == OnboardingStatus.NOT_STARTED

    def test_does_not_save(self, onboarding_account, account_result):
        onboarding_account.apply_stripe_state(account_result())

        onboarding_account.refresh_from_db()
        assert onboarding_account.onboarding_status == OnboardingStatus.IN_PROGRESS


@pytest.mark.django_db
class TestWebhookEvent:
    def test_status_helpers(self):
        event = WebhookEventFactory()

        event.mark_processing()
        assert event.status == WebhookEventStatus.PROCESSING
        assert event.retry_count == 1

        event.mark_failed("boom")
        assert event.can_retry
        assert event.error_message == "boom"

        event.mark_processed()
        assert event.is_processed
        assert event.processed_at is not None
        assert event.error_message is None

    def test_can_retry_respects_cap(self, settings):
        settings.WEBHOOK_MAX_RETRIES = 2
        event = WebhookEventFactory(status=WebhookEventStatus.FAILED, retry_count=2)

        assert not event.can_retry

    def test_payload_accessors(self):
        event = WebhookEventFactory(
            payload={"data": {"object": {"id": "cs_1", "metadata": {"stage": "deposit"}}}}
        )

        assert event.get_object_id() == "cs_1"
        assert event.get_metadata() == {"stage": "deposit"}

    def test_malformed_payload(self):
        event = WebhookEventFactory(payload={"data": "nope"})

        assert event.get_data_object() == {}
        assert event.get_metadata() == {}
        assert event.get_object_id() is None
