"""
Service layer for the job hiring escrow.

Services:
    ApplicationRepository: ORM access and input validation for jobs models
    AccountVerifier: Live Stripe probes for payer and payee accounts
    EscrowStateMachine: The application lifecycle and its money fields
    SettlementInitiator: Stripe Checkout sessions per escrow stage
    NotificationDispatcher: Best-effort notifications for escrow events
    JobHiringService: Runs transitions and dispatches events after commit
"""

from jobs.services.account_verifier import AccountVerifier, VerificationResult
from jobs.services.escrow import EscrowEvent, EscrowStateMachine, TransitionOutcome
from jobs.services.hiring import JobHiringService
from jobs.services.notifications import NotificationDispatcher
from jobs.services.repository import ApplicationRepository, ApplicationSubmission
from jobs.services.settlement import SettlementHandle, SettlementInitiator

__all__ = [
    "AccountVerifier",
    "ApplicationRepository",
    "ApplicationSubmission",
    "EscrowEvent",
    "EscrowStateMachine",
    "JobHiringService",
    "NotificationDispatcher",
    "SettlementHandle",
    "SettlementInitiator",
    "TransitionOutcome",
    "VerificationResult",
]
