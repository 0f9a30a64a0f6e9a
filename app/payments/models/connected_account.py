"""
ConnectedAccount model for Stripe Connect integration.

Each applicant who wants to be paid for a job links a Stripe Express
account to their profile. The flags stored here are a cache refreshed by
the account.updated webhook and by the connect status endpoint; hiring
always re-probes Stripe live through the account verifier.

Usage:
    from payments.models import ConnectedAccount

    account = ConnectedAccount.objects.create(
        profile=applicant.profile,
        stripe_account_id="acct_1234567890",
        onboarding_status=OnboardingStatus.IN_PROGRESS,
    )

    # After retrieving the account from Stripe
    account.apply_stripe_state(StripeAdapter.retrieve_account(account.stripe_account_id))
    account.save()
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import VersionedModel
from payments.state_machines import OnboardingStatus

if TYPE_CHECKING:
    from payments.adapters import AccountResult


class ConnectedAccount(UUIDPrimaryKeyMixin, VersionedModel):
    """
    A Stripe Connected Account able to receive destination charges.

    Fields:
        profile: OneToOne link to the user's Profile
        stripe_account_id: Unique Stripe Account ID (acct_xxx)
        onboarding_status: Current state of Stripe Connect onboarding
        charges_enabled: Cached Stripe charges_enabled flag
        payouts_enabled: Cached Stripe payouts_enabled flag
        transfers_enabled: Cached "transfers" capability == active
        version: Optimistic locking version field
        metadata: Flexible JSON storage (requirements, disabled reason)

    Note:
        The profile field uses PROTECT so a profile with a connected
        account can't be deleted by accident.
    """

    profile = models.OneToOneField(
        "authentication.Profile",
        on_delete=models.PROTECT,
        related_name="connected_account",
        help_text="Profile this connected account belongs to",
    )

    stripe_account_id = models.CharField(
        max_length=255,
        unique=True,
        db_index=True,
        help_text="Stripe Account ID (acct_xxx)",
    )

    onboarding_status = models.CharField(
        max_length=20,
        choices=OnboardingStatus.choices,
        default=OnboardingStatus.NOT_STARTED,
        db_index=True,
        help_text="Current Stripe Connect onboarding status",
    )

    charges_enabled = models.BooleanField(
        default=False,
        help_text="Whether Stripe has enabled charges for this account",
    )

    payouts_enabled = models.BooleanField(
        default=False,
        help_text="Whether Stripe has enabled payouts for this account",
    )

    transfers_enabled = models.BooleanField(
        default=False,
        help_text="Whether the transfers capability is active",
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Arbitrary JSON metadata (e.g., requirements due)",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Connected Account"
        verbose_name_plural = "Connected Accounts"

    def __str__(self) -> str:
        return f"ConnectedAccount({self.stripe_account_id}, {self.onboarding_status})"

    @property
    def is_ready_to_receive(self) -> bool:
        """True when the cached flags say the account can be a charge destination."""
        return self.onboarding_status == OnboardingStatus.COMPLETE and self.transfers_enabled

    def apply_stripe_state(self, account: AccountResult) -> list[str]:
        """
        Copy live Stripe flags onto this row and derive the onboarding status.

        Does not save. Returns the names of fields that changed, for use as
        update_fields.
        """
        if account.disabled_reason and account.disabled_reason.startswith("rejected"):
            status = OnboardingStatus.REJECTED
        elif account.charges_enabled and account.payouts_enabled and not account.requirements_due:
            status = OnboardingStatus.COMPLETE
        elif account.details_submitted or account.requirements_due:
            status = OnboardingStatus.IN_PROGRESS
        else:
            status = OnboardingStatus.NOT_STARTED

        new_values = {
            "charges_enabled": account.charges_enabled,
            "payouts_enabled": account.payouts_enabled,
            "transfers_enabled": account.transfers_active,
            "onboarding_status": status,
        }
        changed = [name for name, value in new_values.items() if getattr(self, name) != value]
        for name in changed:
            setattr(self, name, new_values[name])

        requirements = {
            "requirements_due": account.requirements_due,
            "disabled_reason": account.disabled_reason,
        }
        if any(self.metadata.get(key) != value for key, value in requirements.items()):
            self.metadata = {**self.metadata, **requirements}
            changed.append("metadata")
        return changed
