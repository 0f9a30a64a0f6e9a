"""
Fixtures for notification tests.

Usage:
    def test_example(user, notification, authenticated_client):
        response = authenticated_client.get("/api/v1/notifications/")
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import UserFactory
from notifications.tests.factories import NotificationFactory, NotificationTypeFactory

# =============================================================================
# Users
# =============================================================================


@pytest.fixture
def user(db):
    return UserFactory()


@pytest.fixture
def other_user(db):
    return UserFactory()


# =============================================================================
# Notification types
# =============================================================================


@pytest.fixture
def notification_type(db):
    """Active type with plain templates."""
    return NotificationTypeFactory(
        key="test_notification",
        display_name="Test Notification",
        title_template="Test Title",
        body_template="Test Body",
    )


@pytest.fixture
def templated_type(db):
    """Active type whose templates need job_title and amount."""
    return NotificationTypeFactory(
        key="test_deposit_paid",
        display_name="Test Deposit Paid",
        title_template="Deposit for {job_title}",
        body_template="The employer has paid the deposit (${amount}).",
    )


@pytest.fixture
def inactive_type(db):
    return NotificationTypeFactory(key="disabled_type", is_active=False)


# =============================================================================
# Notifications
# =============================================================================


@pytest.fixture
def notification(user, notification_type):
    return NotificationFactory(recipient=user, notification_type=notification_type)


@pytest.fixture
def read_notification(user, notification_type):
    return NotificationFactory(recipient=user, notification_type=notification_type, is_read=True)


@pytest.fixture
def other_user_notifications(other_user, notification_type):
    return NotificationFactory.create_batch(3, recipient=other_user, notification_type=notification_type)


# =============================================================================
# API clients
# =============================================================================


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def authenticated_client(api_client, user):
    api_client.force_authenticate(user=user)
    return api_client
