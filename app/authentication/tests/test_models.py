"""
Tests for User, UserManager and Profile.
"""

import pytest

from authentication.models import Profile, User
from authentication.tests.factories import UserFactory


class TestUserManager:
    """Tests for email-based user creation."""

    def test_create_user_normalizes_email_domain(self, db):
        user = User.objects.create_user(email="Poster@EXAMPLE.com", password="pw12345!")

        assert user.email == "Poster@example.com"
        assert user.check_password("pw12345!")
        assert user.is_staff is False

    def test_create_user_requires_email(self, db):
        with pytest.raises(ValueError):
            User.objects.create_user(email="", password="pw")

    def test_create_user_ignores_profile_fields(self, db):
        user = User.objects.create_user(
            email="member@example.com", password="pw", first_name="Paula", membership_plan="cca_no_fees_60"
        )

        assert user.profile.membership_plan == ""

    def test_create_superuser_sets_flags(self, db):
        admin = User.objects.create_superuser(email="admin@example.com", password="pw")

        assert admin.is_staff is True
        assert admin.is_superuser is True


class TestProfile:
    """Tests for the auto-created profile."""

    def test_profile_created_with_user(self, user):
        assert Profile.objects.filter(user=user).exists()
        assert user.profile.membership_active is False
        assert user.profile.membership_plan == ""
        assert user.profile.stripe_customer_id == ""

    def test_factory_copies_membership_to_profile(self, member):
        member.profile.refresh_from_db()

        assert member.profile.membership_plan == "cca_no_fees_60"
        assert member.profile.membership_active is True

    def test_username_normalized_on_save(self, user):
        user.profile.username = "MixedCase"
        user.profile.save()
        user.profile.refresh_from_db()

        assert user.profile.username == "mixedcase"

    def test_get_full_name_falls_back_to_email(self, db):
        user = UserFactory(email="nameless@example.com")

        assert user.get_full_name() == "nameless@example.com"
        assert user.get_short_name() == "nameless"
