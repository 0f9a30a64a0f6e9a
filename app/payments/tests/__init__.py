"""
Tests for payments app.

- test_models.py: ConnectedAccount, WebhookEvent
- test_locks.py: lock_row and check_version
- test_webhook_view.py: Signature verification and idempotent intake
- test_tasks.py: Webhook processing, retry and cleanup tasks
- test_account_updated_handler.py: account.updated sync
- test_connect_status_view.py: Connect status endpoint

Stripe adapter tests live in payments/adapters/tests/.
"""
