"""
Platform fee and escrow split arithmetic.

All amounts are integers in the currency's minor unit (cents). Rounding is
half up on integers, so results never depend on float representation:

    round_half_up(2475, 100)  -> 25   (24.75)
    round_half_up(2525, 100)  -> 25   (25.25)
    round_half_up(250, 100)   -> 3    (2.5)

Usage:
    from jobs.fees import FeeCalculator, compute_deposit_amount

    deposit = compute_deposit_amount(10000)                        # 2500
    fee = FeeCalculator().compute_application_fee_amount(deposit, payer=poster)  # 75

    # Tests inject the rate and the exemption rule
    calculator = FeeCalculator(fee_bps=500, exemption_lookup=lambda payer: False)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from django.conf import settings

from jobs.exceptions import InvalidAmountError

if TYPE_CHECKING:
    from authentication.models import User

logger = logging.getLogger(__name__)

BASIS_POINTS = 10_000


def round_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounding .5 away from zero, for non-negative inputs."""
    return (2 * numerator + denominator) // (2 * denominator)


def compute_deposit_amount(total_amount: int, percent: int | None = None) -> int:
    """Deposit share of total_amount, ESCROW_DEPOSIT_PERCENT (25) by default."""
    if percent is None:
        percent = getattr(settings, "ESCROW_DEPOSIT_PERCENT", 25)
    return round_half_up(total_amount * percent, 100)


def compute_remaining_amount(total_amount: int, deposit_amount: int) -> int:
    """Remaining share, always derived by subtraction so the split never drifts."""
    return total_amount - deposit_amount


def is_fee_exempt(payer: User | None) -> bool:
    """
    True when the payer has an active membership on a no-fee plan.

    Never raises: a missing payer, a missing profile or any lookup error
    is logged and treated as not exempt.
    """
    if payer is None:
        return False

    exempt_plans = set(getattr(settings, "FEE_EXEMPT_MEMBERSHIP_PLANS", ()))
    try:
        profile = payer.profile
        exempt = bool(profile.membership_active) and profile.membership_plan in exempt_plans
    except Exception:
        logger.warning(
            "Membership lookup failed, charging the standard fee",
            extra={"payer_id": getattr(payer, "pk", None)},
            exc_info=True,
        )
        return False

    if exempt:
        logger.info(
            "Payer is fee exempt",
            extra={"payer_id": payer.pk, "membership_plan": profile.membership_plan},
        )
    return exempt


class FeeCalculator:
    """
    Computes the platform's application fee for a charge.

    Args:
        fee_bps: Fee rate in basis points. Defaults to PLATFORM_FEE_BPS (300 = 3%).
        exemption_lookup: Callable deciding whether a payer pays no fee.
            Defaults to is_fee_exempt.
    """

    def __init__(
        self,
        fee_bps: int | None = None,
        exemption_lookup: Callable[[User | None], bool] | None = None,
    ) -> None:
        if fee_bps is None:
            fee_bps = getattr(settings, "PLATFORM_FEE_BPS", 300)
        if fee_bps < 0:
            raise ValueError("fee_bps must not be negative")
        self.fee_bps = fee_bps
        self.exemption_lookup = exemption_lookup or is_fee_exempt

    def compute_application_fee_amount(self, amount: int, payer: User | None = None) -> int:
        """
        Fee for a charge of ``amount`` paid by ``payer``.

        Raises:
            InvalidAmountError: If amount is negative
        """
        if amount < 0:
            raise InvalidAmountError(
                "Amount must not be negative",
                details={"amount": amount},
            )
        if amount == 0:
            return 0
        if self._is_exempt(payer):
            return 0
        return round_half_up(amount * self.fee_bps, BASIS_POINTS)

    def _is_exempt(self, payer: User | None) -> bool:
        try:
            return bool(self.exemption_lookup(payer))
        except Exception:
            logger.warning(
                "Fee exemption lookup raised, charging the standard fee",
                extra={"payer_id": getattr(payer, "pk", None)},
                exc_info=True,
            )
            return False


def compute_application_fee_amount(amount: int, payer: User | None = None) -> int:
    """Fee for ``amount`` using the configured rate and membership exemption."""
    return FeeCalculator().compute_application_fee_amount(amount, payer=payer)


__all__ = [
    "FeeCalculator",
    "compute_application_fee_amount",
    "compute_deposit_amount",
    "compute_remaining_amount",
    "is_fee_exempt",
    "round_half_up",
]
