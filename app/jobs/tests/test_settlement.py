"""
Tests for SettlementInitiator.

Checkout and customer calls are patched by the stripe_checkout fixture;
create_checkout_session hands out cs_test_1, cs_test_2, ... in order.
"""

import pytest

from authentication.models import Profile
from authentication.tests.factories import UserFactory
from jobs.exceptions import (
    AlreadySettledError,
    InvalidAmountError,
    InvalidArgumentError,
    PayeeAccountMissingError,
    SettlementProcessorError,
)
from jobs.models import Settlement
from jobs.services import SettlementInitiator
from jobs.states import SettlementStage
from jobs.tests.factories import JobApplicationFactory, OpportunityFactory, SettlementFactory
from payments.adapters import CheckoutSessionResult, IdempotencyKeyGenerator
from payments.exceptions import (
    StripeAPIUnavailableError,
    StripeCardDeclinedError,
    StripeRateLimitError,
)


def session(status, payment_status="unpaid"):
    def _retrieve(session_id, **kwargs):
        return CheckoutSessionResult(id=session_id, url=None, status=status, payment_status=payment_status)

    return _retrieve


@pytest.fixture
def hired_application(poster, applicant):
    return JobApplicationFactory(
        opportunity=OpportunityFactory(poster=poster, title="Brand Video Edit"),
        applicant=applicant,
        hired=True,
    )


@pytest.fixture
def initiator(settings):
    settings.FRONTEND_URL = "https://app.example.com/"
    return SettlementInitiator()


def sent_params(stripe_checkout):
    return stripe_checkout.create.call_args.args[0]


@pytest.mark.django_db
class TestNewSession:
    def test_opens_deposit_checkout(self, initiator, hired_application, stripe_checkout):
        handle = initiator.initiate_settlement(hired_application, SettlementStage.DEPOSIT)

        assert handle.session_id == "cs_test_1"
        assert handle.redirect_url == "https://checkout.stripe.com/c/pay/cs_test_1"
        assert handle.stage == SettlementStage.DEPOSIT
        assert handle.attempt == 1
        assert handle.reused is False
        stripe_checkout.retrieve.assert_not_called()

    def test_charge_parameters(self, initiator, hired_application, stripe_checkout):
        initiator.initiate_settlement(hired_application, SettlementStage.DEPOSIT)

        params = sent_params(stripe_checkout)
        assert params.amount_cents == 2500
        assert params.application_fee_amount == 75
        assert params.destination_account == "acct_applicant"
        assert params.currency == "usd"
        assert params.product_name == "Deposit (25%) - Brand Video Edit"
        assert params.customer_id == "cus_test_poster"
        assert params.idempotency_key == IdempotencyKeyGenerator.generate(
            "checkout_deposit", hired_application.pk, 1
        )

    def test_redirect_urls(self, initiator, hired_application, stripe_checkout):
        initiator.initiate_settlement(hired_application, SettlementStage.DEPOSIT)

        params = sent_params(stripe_checkout)
        poster_id = hired_application.poster_id
        assert params.success_url == f"https://app.example.com/profile/{poster_id}?payment=success&type=deposit"
        assert params.cancel_url == f"https://app.example.com/profile/{poster_id}?payment=cancelled"

    def test_metadata(self, initiator, hired_application, stripe_checkout):
        initiator.initiate_settlement(hired_application, SettlementStage.DEPOSIT)

        params = sent_params(stripe_checkout)
        application_id = str(hired_application.pk)
        assert params.metadata == {"type": "job_deposit", "application_id": application_id, "stage": "deposit"}
        assert params.payment_intent_metadata["type"] == "job_deposit"
        assert params.payment_intent_metadata["application_id"] == application_id
        assert params.payment_intent_metadata["applicant_connect_account_id"] == "acct_applicant"
        assert params.payment_intent_metadata["total_amount"] == "10000"
        assert params.payment_intent_metadata["deposit_amount"] == "2500"
        assert params.payment_intent_metadata["platform_fee"] == "75"

    def test_records_settlement(self, initiator, hired_application, stripe_checkout):
        initiator.initiate_settlement(hired_application, SettlementStage.DEPOSIT)

        settlement = Settlement.objects.get(application=hired_application)
        assert settlement.idempotency_key == f"{hired_application.pk}:deposit"
        assert settlement.stage == SettlementStage.DEPOSIT
        assert settlement.attempt == 1
        assert settlement.amount == 2500
        assert settlement.application_fee == 75
        assert settlement.destination_account_id == "acct_applicant"
        assert settlement.checkout_session_id == "cs_test_1"
        assert settlement.is_paid is False

    def test_final_stage_carries_no_fee(self, initiator, poster, stripe_checkout):
        application = JobApplicationFactory(
            opportunity=OpportunityFactory(poster=poster, title="Brand Video Edit"),
            final_split=True,
        )

        initiator.initiate_settlement(application, SettlementStage.FINAL)

        params = sent_params(stripe_checkout)
        assert params.amount_cents == 7500
        assert params.application_fee_amount == 0
        assert params.product_name == "Final Payment (75%) - Brand Video Edit"
        assert params.metadata["type"] == "job_final_payment"
        assert params.payment_intent_metadata["remaining_amount"] == "7500"
        assert params.idempotency_key == IdempotencyKeyGenerator.generate("checkout_final", application.pk, 1)

    def test_stage_given_as_string(self, initiator, hired_application, stripe_checkout):
        handle = initiator.initiate_settlement(hired_application, "deposit")

        assert handle.stage == SettlementStage.DEPOSIT


@pytest.mark.django_db
class TestExistingSession:
    def test_open_session_is_reused(self, initiator, hired_application, stripe_checkout):
        first = initiator.initiate_settlement(hired_application, SettlementStage.DEPOSIT)

        second = initiator.initiate_settlement(hired_application, SettlementStage.DEPOSIT)

        assert second.session_id == first.session_id
        assert second.reused is True
        assert second.attempt == 1
        assert stripe_checkout.create.call_count == 1
        stripe_checkout.retrieve.assert_called_once_with("cs_test_1")

    def test_session_paid_at_stripe(self, initiator, stripe_checkout):
        settlement = SettlementFactory(checkout_session_id="cs_paid")
        stripe_checkout.retrieve.side_effect = session("complete", "paid")

        with pytest.raises(AlreadySettledError) as exc_info:
            initiator.initiate_settlement(settlement.application, SettlementStage.DEPOSIT)

        assert exc_info.value.details["checkout_session_id"] == "cs_paid"
        stripe_checkout.create.assert_not_called()

    @pytest.mark.parametrize("status", ["expired", "complete"])
    def test_unusable_session_moves_to_next_attempt(self, initiator, stripe_checkout, status):
        settlement = SettlementFactory(attempt=1, checkout_session_id="cs_old")
        stripe_checkout.retrieve.side_effect = session(status)

        handle = initiator.initiate_settlement(settlement.application, SettlementStage.DEPOSIT)

        assert handle.session_id == "cs_test_1"
        assert handle.attempt == 2
        assert sent_params(stripe_checkout).idempotency_key == IdempotencyKeyGenerator.generate(
            "checkout_deposit", settlement.application_id, 2
        )
        settlement.refresh_from_db()
        assert settlement.attempt == 2
        assert settlement.checkout_session_id == "cs_test_1"

    def test_paid_marker_blocks_new_checkout(self, initiator, stripe_checkout):
        application = JobApplicationFactory(deposit_confirmed=True)

        with pytest.raises(AlreadySettledError):
            initiator.initiate_settlement(application, SettlementStage.DEPOSIT)

        stripe_checkout.create.assert_not_called()

    def test_paid_settlement_blocks_new_checkout(self, initiator, stripe_checkout):
        settlement = SettlementFactory(is_paid=True)

        with pytest.raises(AlreadySettledError):
            initiator.initiate_settlement(settlement.application, SettlementStage.DEPOSIT)

        stripe_checkout.retrieve.assert_not_called()
        stripe_checkout.create.assert_not_called()


@pytest.mark.django_db
class TestGuards:
    def test_deposit_not_computed(self, initiator, application, stripe_checkout):
        with pytest.raises(InvalidAmountError):
            initiator.initiate_settlement(application, SettlementStage.DEPOSIT)

        assert not Settlement.objects.filter(application=application).exists()

    def test_final_not_computed(self, initiator, stripe_checkout):
        application = JobApplicationFactory(completed=True)

        with pytest.raises(InvalidAmountError):
            initiator.initiate_settlement(application, SettlementStage.FINAL)

    def test_destination_missing(self, initiator, stripe_checkout):
        application = JobApplicationFactory(hired=True, applicant_connect_account_id="")

        with pytest.raises(PayeeAccountMissingError):
            initiator.initiate_settlement(application, SettlementStage.DEPOSIT)

        stripe_checkout.create.assert_not_called()

    def test_unknown_stage(self, initiator, hired_application, stripe_checkout):
        with pytest.raises(InvalidArgumentError) as exc_info:
            initiator.initiate_settlement(hired_application, "refund")

        assert exc_info.value.error_code == "INVALID_STAGE"


@pytest.mark.django_db
class TestProcessorFailures:
    def test_retryable_failure(self, initiator, hired_application, stripe_checkout):
        stripe_checkout.create.side_effect = StripeRateLimitError("Too many requests")

        with pytest.raises(SettlementProcessorError) as exc_info:
            initiator.initiate_settlement(hired_application, SettlementStage.DEPOSIT)

        assert exc_info.value.is_retryable is True
        assert exc_info.value.details["retryable"] is True
        assert exc_info.value.http_status == 502

    def test_permanent_failure(self, initiator, hired_application, stripe_checkout):
        stripe_checkout.create.side_effect = StripeCardDeclinedError("Card declined")

        with pytest.raises(SettlementProcessorError) as exc_info:
            initiator.initiate_settlement(hired_application, SettlementStage.DEPOSIT)

        assert exc_info.value.is_retryable is False

    def test_failure_rolls_back_attempt(self, initiator, stripe_checkout):
        settlement = SettlementFactory(attempt=1, checkout_session_id="cs_old")
        stripe_checkout.retrieve.side_effect = session("expired")
        stripe_checkout.create.side_effect = StripeAPIUnavailableError("Stripe is down")

        with pytest.raises(SettlementProcessorError):
            initiator.initiate_settlement(settlement.application, SettlementStage.DEPOSIT)

        settlement.refresh_from_db()
        assert settlement.attempt == 1
        assert settlement.checkout_session_id == "cs_old"
        assert sent_params(stripe_checkout).idempotency_key == IdempotencyKeyGenerator.generate(
            "checkout_deposit", settlement.application_id, 2
        )

    def test_first_attempt_failure_leaves_no_row(self, initiator, hired_application, stripe_checkout):
        stripe_checkout.create.side_effect = StripeAPIUnavailableError("Stripe is down")

        with pytest.raises(SettlementProcessorError):
            initiator.initiate_settlement(hired_application, SettlementStage.DEPOSIT)

        assert not Settlement.objects.filter(application=hired_application).exists()

    def test_retrieve_failure(self, initiator, stripe_checkout):
        settlement = SettlementFactory()
        stripe_checkout.retrieve.side_effect = StripeAPIUnavailableError("Stripe is down")

        with pytest.raises(SettlementProcessorError):
            initiator.initiate_settlement(settlement.application, SettlementStage.DEPOSIT)

        stripe_checkout.create.assert_not_called()


@pytest.mark.django_db
class TestCustomer:
    def test_customer_created_and_stored(self, initiator, hired_application, poster, stripe_checkout):
        initiator.initiate_settlement(hired_application, SettlementStage.DEPOSIT)

        stripe_checkout.customer.assert_called_once()
        assert stripe_checkout.customer.call_args.kwargs["email"] == poster.email
        assert Profile.objects.get(user=poster).stripe_customer_id == "cus_test_poster"

    def test_existing_customer_reused(self, initiator, applicant, stripe_checkout):
        poster = UserFactory(stripe_customer_id="cus_existing")
        application = JobApplicationFactory(
            opportunity=OpportunityFactory(poster=poster), applicant=applicant, hired=True
        )

        initiator.initiate_settlement(application, SettlementStage.DEPOSIT)

        stripe_checkout.customer.assert_not_called()
        assert sent_params(stripe_checkout).customer_id == "cus_existing"

    def test_customer_failure_does_not_block_checkout(self, initiator, hired_application, poster, stripe_checkout):
        stripe_checkout.customer.side_effect = StripeAPIUnavailableError("Stripe is down")

        handle = initiator.initiate_settlement(hired_application, SettlementStage.DEPOSIT)

        assert handle.session_id == "cs_test_1"
        assert sent_params(stripe_checkout).customer_id is None
        assert Profile.objects.get(user=poster).stripe_customer_id == ""
