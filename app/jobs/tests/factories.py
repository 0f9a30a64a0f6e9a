"""
Factory Boy factories for jobs test data.

Usage:
    from jobs.tests.factories import JobApplicationFactory, OpportunityFactory

    application = JobApplicationFactory()
    hired = JobApplicationFactory(hired=True)
    awaiting_final = JobApplicationFactory(final_split=True)
"""

import factory
from django.utils import timezone

from authentication.tests.factories import UserFactory
from jobs.fees import compute_deposit_amount, round_half_up
from jobs.models import JobApplication, Opportunity, Settlement
from jobs.states import ApplicationStatus, SettlementStage


class OpportunityFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Opportunity

    poster = factory.SubFactory(UserFactory)
    title = factory.Sequence(lambda n: f"Video Edit #{n}")
    company_name = "Acme Studios"
    description = "Cut a two minute brand video from raw footage."
    amount = 10000


class JobApplicationFactory(factory.django.DjangoModelFactory):
    """
    Application in any lifecycle state.

    Traits build on each other:
        hired: Amounts for a standard (3%) poster, destination recorded
        deposit_confirmed: hired plus a confirmed deposit
        completed: deposit_confirmed and marked complete
        final_split: completed with the final split computed
    """

    class Meta:
        model = JobApplication

    opportunity = factory.SubFactory(OpportunityFactory)
    applicant = factory.SubFactory(UserFactory)
    poster = factory.LazyAttribute(lambda o: o.opportunity.poster)
    opportunity_title = factory.LazyAttribute(lambda o: o.opportunity.title)
    company_name = factory.LazyAttribute(lambda o: o.opportunity.company_name)
    name = factory.Faker("name")
    email = factory.Sequence(lambda n: f"applicant{n}@example.com")
    cover_letter = "I have edited dozens of brand videos."
    status = ApplicationStatus.PENDING

    class Params:
        hired = factory.Trait(
            status=ApplicationStatus.HIRED,
            total_amount=factory.LazyAttribute(lambda o: o.opportunity.amount),
            deposit_amount=factory.LazyAttribute(lambda o: compute_deposit_amount(o.opportunity.amount)),
            platform_fee=factory.LazyAttribute(lambda o: round_half_up(o.deposit_amount * 300, 10000)),
            applicant_connect_account_id="acct_applicant",
            hired_at=factory.LazyFunction(timezone.now),
        )
        deposit_confirmed = factory.Trait(
            hired=True,
            deposit_paid=True,
            deposit_paid_at=factory.LazyFunction(timezone.now),
            deposit_checkout_session_id="cs_test_deposit",
            deposit_payment_intent_id="pi_test_deposit",
        )
        completed = factory.Trait(
            deposit_confirmed=True,
            status=ApplicationStatus.COMPLETED,
            completed_at=factory.LazyFunction(timezone.now),
        )
        final_split = factory.Trait(
            completed=True,
            remaining_amount=factory.LazyAttribute(lambda o: o.total_amount - o.deposit_amount),
            platform_fee_on_remaining=0,
            total_platform_fee=factory.LazyAttribute(lambda o: o.platform_fee),
            transfer_amount=factory.LazyAttribute(lambda o: o.total_amount - o.deposit_amount),
        )


class SettlementFactory(factory.django.DjangoModelFactory):
    """Deposit settlement with an open checkout session."""

    class Meta:
        model = Settlement

    application = factory.SubFactory(JobApplicationFactory, hired=True)
    stage = SettlementStage.DEPOSIT
    idempotency_key = factory.LazyAttribute(lambda o: Settlement.build_key(o.application.pk, o.stage))
    attempt = 1
    amount = factory.LazyAttribute(lambda o: o.application.stage_amount(o.stage))
    application_fee = factory.LazyAttribute(lambda o: o.application.stage_application_fee(o.stage))
    destination_account_id = factory.LazyAttribute(lambda o: o.application.applicant_connect_account_id)
    checkout_session_id = factory.Sequence(lambda n: f"cs_test_existing{n}")
    checkout_url = factory.LazyAttribute(lambda o: f"https://checkout.stripe.com/c/pay/{o.checkout_session_id}")
