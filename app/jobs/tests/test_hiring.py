"""
Tests for JobHiringService and NotificationDispatcher.

Notifications are queued with transaction.on_commit, so every test that
expects one runs the transition inside django_capture_on_commit_callbacks.
"""

from unittest.mock import MagicMock

import pytest

from core.exceptions import PermissionDeniedError
from jobs.exceptions import AlreadyHiredError, SettlementProcessorError
from jobs.models import JobApplication
from jobs.services import EscrowEvent, JobHiringService, NotificationDispatcher, TransitionOutcome
from jobs.services.notifications import format_amount
from jobs.states import ApplicationStatus, SettlementStage
from jobs.tests.factories import JobApplicationFactory, OpportunityFactory, SettlementFactory
from notifications.models import Notification
from payments.exceptions import StaleRecordError, StripeAPIUnavailableError

PAYLOAD = {"name": "Andre Applicant", "email": "andre@example.com", "cover_letter": "Ready when you are."}


def notifications_for(user):
    return Notification.objects.filter(recipient=user)


# =============================================================================
# Dispatch after commit
# =============================================================================


@pytest.mark.django_db
class TestDispatchOnCommit:
    def test_apply_notifies_both_parties(self, opportunity, poster, applicant, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            JobHiringService.apply(applicant, opportunity.pk, PAYLOAD)

        assert len(callbacks) == 1
        submitted = notifications_for(applicant).get()
        received = notifications_for(poster).get()
        assert submitted.notification_type.key == "job_application_submitted"
        assert submitted.title == "Application Submitted"
        assert submitted.body == 'Your application for "Brand Video Edit" at Acme Studios has been submitted successfully.'
        assert received.title == "New Application Received"
        assert received.body == 'Andre Applicant applied for "Brand Video Edit".'
        assert received.actor == applicant

    def test_hire_notifies_applicant(self, application, poster, applicant, ready_accounts, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            JobHiringService.hire(poster, application.pk)

        notification = notifications_for(applicant).get()
        assert notification.title == "You've Been Hired!"
        assert notification.data["application_id"] == str(application.pk)
        assert notification.object_id == str(application.pk)
        assert not notifications_for(poster).exists()

    def test_reject_notifies_applicant(self, application, poster, applicant, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            JobHiringService.reject(poster, application.pk)

        assert notifications_for(applicant).get().title == "Application Update"

    def test_complete_notifies_poster(self, poster, applicant, django_capture_on_commit_callbacks):
        application = JobApplicationFactory(
            opportunity=OpportunityFactory(poster=poster), applicant=applicant, deposit_confirmed=True
        )

        with django_capture_on_commit_callbacks(execute=True):
            JobHiringService.complete(applicant, application.pk)

        assert notifications_for(poster).get().title == "Job Marked as Complete"

    def test_deposit_paid_shows_amount(self, applicant, django_capture_on_commit_callbacks):
        application = JobApplicationFactory(applicant=applicant, hired=True)
        SettlementFactory(application=application)

        with django_capture_on_commit_callbacks(execute=True):
            JobHiringService.confirm_deposit_paid(application.pk, payment_intent_id="pi_dep")

        notification = notifications_for(applicant).get()
        assert notification.title == "Deposit Payment Received"
        assert "($25.00)" in notification.body

    def test_final_paid_shows_remaining(self, applicant, django_capture_on_commit_callbacks):
        application = JobApplicationFactory(applicant=applicant, final_split=True)
        SettlementFactory(application=application, stage=SettlementStage.FINAL)

        with django_capture_on_commit_callbacks(execute=True):
            JobHiringService.confirm_final_paid(application.pk, payment_intent_id="pi_fin")

        notification = notifications_for(applicant).get()
        assert notification.title == "Final Payment Received"
        assert "($75.00)" in notification.body

    def test_failed_transition_dispatches_nothing(self, application, outsider, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(PermissionDeniedError):
                JobHiringService.reject(outsider, application.pk)

        assert callbacks == []
        assert not Notification.objects.exists()

    def test_replay_dispatches_nothing(self, django_capture_on_commit_callbacks):
        application = JobApplicationFactory(deposit_confirmed=True)
        SettlementFactory(application=application)

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            outcome = JobHiringService.confirm_deposit_paid(application.pk, payment_intent_id="pi_test_deposit")

        assert outcome.changed is False
        assert callbacks == []

    def test_nothing_sent_before_commit(self, application, poster, applicant, ready_accounts):
        JobHiringService.hire(poster, application.pk)

        # The test transaction never commits
        assert not Notification.objects.exists()

    def test_dispatcher_failure_does_not_undo_transition(
        self, mocker, application, poster, ready_accounts, django_capture_on_commit_callbacks
    ):
        mocker.patch(
            "notifications.services.NotificationService.create_notification",
            side_effect=RuntimeError("notification store down"),
        )

        with django_capture_on_commit_callbacks(execute=True):
            outcome = JobHiringService.hire(poster, application.pk)

        assert outcome.application.status == ApplicationStatus.HIRED
        assert JobApplication.objects.get(pk=application.pk).status == ApplicationStatus.HIRED


# =============================================================================
# Settlements
# =============================================================================


@pytest.mark.django_db
class TestSettlementEntryPoints:
    def test_checkout_deposit(self, poster, stripe_checkout):
        application = JobApplicationFactory(opportunity=OpportunityFactory(poster=poster), hired=True)

        handle = JobHiringService.checkout_deposit(poster, application.pk)

        assert handle.session_id == "cs_test_1"
        assert handle.stage == SettlementStage.DEPOSIT

    def test_checkout_deposit_poster_only(self, applicant, stripe_checkout):
        application = JobApplicationFactory(applicant=applicant, hired=True)

        with pytest.raises(PermissionDeniedError):
            JobHiringService.checkout_deposit(applicant, application.pk)

        stripe_checkout.create.assert_not_called()

    def test_pay_final(self, poster, stripe_checkout):
        application = JobApplicationFactory(opportunity=OpportunityFactory(poster=poster), completed=True)

        outcome, handle = JobHiringService.pay_final(poster, application.pk)

        assert outcome.application.remaining_amount == 7500
        assert outcome.application.transfer_amount == 7500
        assert handle.stage == SettlementStage.FINAL
        assert stripe_checkout.create.call_args.args[0].amount_cents == 7500

    def test_pay_final_keeps_split_when_stripe_fails(self, poster, stripe_checkout):
        application = JobApplicationFactory(opportunity=OpportunityFactory(poster=poster), completed=True)
        stripe_checkout.create.side_effect = StripeAPIUnavailableError("Stripe is down")

        with pytest.raises(SettlementProcessorError):
            JobHiringService.pay_final(poster, application.pk)

        stored = JobApplication.objects.get(pk=application.pk)
        assert stored.remaining_amount == 7500
        assert stored.status == ApplicationStatus.COMPLETED

    def test_pay_final_retry_with_same_version_after_stripe_failure(self, poster, stripe_checkout):
        application = JobApplicationFactory(opportunity=OpportunityFactory(poster=poster), completed=True)
        version = JobApplication.objects.get(pk=application.pk).version
        create_session = stripe_checkout.create.side_effect
        stripe_checkout.create.side_effect = StripeAPIUnavailableError("Stripe is down")

        with pytest.raises(SettlementProcessorError) as exc_info:
            JobHiringService.pay_final(poster, application.pk, expected_version=version)
        assert exc_info.value.details["retryable"] is True

        stripe_checkout.create.side_effect = create_session
        outcome, handle = JobHiringService.pay_final(poster, application.pk, expected_version=version)

        assert outcome.application.remaining_amount == 7500
        assert handle.session_id == "cs_test_1"
        assert handle.stage == SettlementStage.FINAL
        assert handle.attempt == 1

    def test_pay_final_checks_version_before_storing_split(self, poster, stripe_checkout):
        application = JobApplicationFactory(opportunity=OpportunityFactory(poster=poster), completed=True)
        version = JobApplication.objects.get(pk=application.pk).version

        with pytest.raises(StaleRecordError):
            JobHiringService.pay_final(poster, application.pk, expected_version=version + 1)

        assert JobApplication.objects.get(pk=application.pk).remaining_amount is None
        stripe_checkout.create.assert_not_called()

    def test_pay_final_retry_reuses_session(self, poster, stripe_checkout):
        application = JobApplicationFactory(opportunity=OpportunityFactory(poster=poster), completed=True)
        JobHiringService.pay_final(poster, application.pk)

        _, handle = JobHiringService.pay_final(poster, application.pk)

        assert handle.reused is True
        assert stripe_checkout.create.call_count == 1


# =============================================================================
# NotificationDispatcher
# =============================================================================


@pytest.mark.django_db
class TestNotificationDispatcher:
    def test_no_event_sends_nothing(self):
        service = MagicMock()

        sent = NotificationDispatcher(notification_service=service).dispatch(
            TransitionOutcome(JobApplicationFactory())
        )

        assert sent == 0
        service.create_notification.assert_not_called()

    def test_idempotency_key(self, applicant):
        application = JobApplicationFactory(applicant=applicant, hired=True)
        service = MagicMock()

        NotificationDispatcher(notification_service=service).dispatch(
            TransitionOutcome(application, EscrowEvent.HIRED)
        )

        kwargs = service.create_notification.call_args.kwargs
        assert kwargs["idempotency_key"] == f"hired:{application.pk}:{applicant.pk}"
        assert kwargs["recipient"] == applicant
        assert kwargs["type_key"] == "job_application_accepted"

    def test_dispatching_twice_notifies_once(self, applicant):
        outcome = TransitionOutcome(JobApplicationFactory(applicant=applicant, hired=True), EscrowEvent.HIRED)
        dispatcher = NotificationDispatcher()

        assert dispatcher.dispatch(outcome) == 1
        assert dispatcher.dispatch(outcome) == 0
        assert notifications_for(applicant).count() == 1

    def test_one_failure_does_not_stop_the_rest(self, poster, applicant):
        application = JobApplicationFactory(opportunity=OpportunityFactory(poster=poster), applicant=applicant)
        service = MagicMock()
        service.create_notification.side_effect = [KeyError("job_title"), MagicMock(success=True)]

        sent = NotificationDispatcher(notification_service=service).dispatch(
            TransitionOutcome(application, EscrowEvent.APPLIED)
        )

        assert sent == 1
        assert service.create_notification.call_count == 2

    def test_company_suffix_omitted_without_company(self, applicant):
        application = JobApplicationFactory(applicant=applicant, company_name="")

        NotificationDispatcher().dispatch(TransitionOutcome(application, EscrowEvent.REJECTED))

        body = notifications_for(applicant).get().body
        assert body.endswith(f'"{application.opportunity_title}" was not selected.')

    @pytest.mark.parametrize(
        "minor_units,expected",
        [(2500, "25.00"), (75, "0.75"), (7505, "75.05"), (0, "0.00"), (None, "0.00")],
    )
    def test_format_amount(self, minor_units, expected):
        assert format_amount(minor_units) == expected


@pytest.mark.django_db
def test_hiring_errors_propagate(application, poster, ready_accounts):
    JobHiringService.hire(poster, application.pk)

    with pytest.raises(AlreadyHiredError):
        JobHiringService.hire(poster, application.pk)
