"""
Fixtures for authentication tests.
"""

import pytest

from authentication.tests.factories import UserFactory


@pytest.fixture
def user(db):
    """A verified user with an auto-created profile."""
    return UserFactory()


@pytest.fixture
def member(db):
    """A user on an active no-fee membership plan."""
    return UserFactory(membership_plan="cca_no_fees_60", membership_active=True)
