"""
Payment domain models.

- ConnectedAccount: Stripe Connect accounts that receive escrow payments
- WebhookEvent: Stripe webhook event tracking for idempotent processing
"""

from payments.models.connected_account import ConnectedAccount
from payments.models.webhook_event import WebhookEvent

__all__ = [
    "ConnectedAccount",
    "WebhookEvent",
]
