"""
Live readiness checks for the Stripe accounts on either side of a hire.

The cached flags on payments.ConnectedAccount can lag behind Stripe, so a
hire always asks Stripe directly. Both probes are read-only.

Usage:
    verifier = AccountVerifier()
    result = verifier.verify_receivable("acct_123")
    if not result:
        raise PayeeNotReceivableError(result.reason)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from payments.adapters import StripeAdapter

logger = logging.getLogger(__name__)

NOT_READY = "NotReady"
TRANSFERS_NOT_ENABLED = "TransfersNotEnabled"


@dataclass(frozen=True)
class VerificationResult:
    ok: bool
    reason: str | None = None
    account_id: str | None = None

    def __bool__(self) -> bool:
        return self.ok


class AccountVerifier:
    """
    Probes Stripe Connect accounts through the Stripe adapter.

    Stripe errors raised while probing (StripeError subclasses) propagate
    to the caller.
    """

    def __init__(self, stripe_adapter: type | None = None) -> None:
        self.stripe = stripe_adapter or StripeAdapter

    def verify_payable(self, account_id: str | None) -> VerificationResult:
        """The account can take charges (charges_enabled)."""
        if not account_id:
            return VerificationResult(ok=False, reason=NOT_READY)

        account = self.stripe.retrieve_account(account_id)
        if not account.charges_enabled:
            logger.info(
                "Payer account cannot take charges",
                extra={"account_id": account_id, "requirements_due": account.requirements_due},
            )
            return VerificationResult(ok=False, reason=NOT_READY, account_id=account_id)
        return VerificationResult(ok=True, account_id=account_id)

    def verify_receivable(self, account_id: str | None) -> VerificationResult:
        """
        The account's "transfers" capability is active.

        Checked on its own: an account can be chargeable and still unable
        to receive destination transfers.
        """
        if not account_id:
            return VerificationResult(ok=False, reason=TRANSFERS_NOT_ENABLED)

        account = self.stripe.retrieve_account(account_id)
        if not account.transfers_active:
            logger.info(
                "Payee account transfers capability not active",
                extra={
                    "account_id": account_id,
                    "transfers_capability": account.transfers_capability,
                },
            )
            return VerificationResult(ok=False, reason=TRANSFERS_NOT_ENABLED, account_id=account_id)
        return VerificationResult(ok=True, account_id=account_id)
