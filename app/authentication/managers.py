"""
User manager for email-based accounts.

Posters and applicants are the same kind of user; which side of a job
they are on comes from the Opportunity and JobApplication rows, never
from a flag on the user.
"""

from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    """
    Creates users keyed by email.

    Display names, membership plan and Stripe customer id live on Profile,
    which the post_save signal creates for every new user.

    Usage:
        poster = User.objects.create_user(email="poster@example.com", password="pw")
        staff = User.objects.create_superuser(email="ops@example.com", password="pw")
    """

    # Profile fields callers sometimes pass by habit
    PROFILE_FIELDS = ("first_name", "last_name", "membership_plan", "membership_active", "stripe_customer_id")

    def create_user(self, email, password=None, **extra_fields):
        """
        Create a regular user.

        Raises:
            ValueError: If email is empty
        """
        if not email:
            raise ValueError("The Email field must be set")

        email = self.normalize_email(email)
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        for name in self.PROFILE_FIELDS:
            extra_fields.pop(name, None)

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """Create a staff superuser for the admin site."""
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("email_verified", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(email, password, **extra_fields)
