"""
Factory Boy factories for payment test data.

Usage:
    from payments.tests.factories import ConnectedAccountFactory, WebhookEventFactory

    account = ConnectedAccountFactory(profile=applicant.profile)
    pending = ConnectedAccountFactory(onboarding=True)
    event = WebhookEventFactory(event_type="account.updated", payload={...})
"""

import uuid

import factory

from authentication.tests.factories import UserFactory
from payments.models import ConnectedAccount, WebhookEvent
from payments.state_machines import OnboardingStatus, WebhookEventStatus


class ConnectedAccountFactory(factory.django.DjangoModelFactory):
    """
    Connected account that has finished onboarding.

    Traits:
        onboarding: Details submitted, capabilities not yet active
    """

    class Meta:
        model = ConnectedAccount

    profile = factory.LazyAttribute(lambda _: UserFactory().profile)
    stripe_account_id = factory.Sequence(lambda n: f"acct_test{n:08d}")
    onboarding_status = OnboardingStatus.COMPLETE
    charges_enabled = True
    payouts_enabled = True
    transfers_enabled = True
    metadata = factory.LazyFunction(dict)

    class Params:
        onboarding = factory.Trait(
            onboarding_status=OnboardingStatus.IN_PROGRESS,
            charges_enabled=False,
            payouts_enabled=False,
            transfers_enabled=False,
        )


class WebhookEventFactory(factory.django.DjangoModelFactory):
    """Pending webhook event with a minimal Stripe envelope."""

    class Meta:
        model = WebhookEvent

    stripe_event_id = factory.LazyFunction(lambda: f"evt_{uuid.uuid4().hex[:24]}")
    event_type = "account.updated"
    payload = factory.LazyAttribute(
        lambda obj: {
            "id": obj.stripe_event_id,
            "type": obj.event_type,
            "data": {"object": {}},
        }
    )
    status = WebhookEventStatus.PENDING
    retry_count = 0
