"""
Tests for notifications app.

- test_services.py: NotificationService creation, idempotency and read state
- test_views.py: List, unread count and mark-read endpoints
"""
