"""
Payments app for Stripe integration.

This app handles:
- All Stripe API calls (payments.adapters.StripeAdapter)
- Stripe Connect accounts that receive escrow payments
- Webhook intake, idempotent storage and async processing

Related apps:
    - authentication: Profile owns the ConnectedAccount
    - jobs: registers checkout/payment intent webhook handlers
"""
