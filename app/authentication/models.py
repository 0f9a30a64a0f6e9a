"""
Authentication models.

- User: Custom user model with email-based authentication (slim, auth-focused)
- Profile: Extended user data (OneToOne with User): display name, membership
  plan used for fee exemption, and the Stripe Customer used at checkout

Related files:
    - managers.py: Custom user manager for email-based creation
    - signals.py: Auto-create profile on user creation
"""

import re

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models.functions import Lower

from authentication.managers import UserManager
from core.models import BaseModel


def validate_username_format(value):
    """Validate username format: 3-30 chars, alphanumeric + _ + -."""
    if not re.match(r"^[a-zA-Z0-9_-]{3,30}$", value):
        raise ValidationError(
            "Username must be 3-30 characters and contain only "
            "letters, numbers, underscores, and hyphens."
        )


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Profile data (name, membership, Stripe customer) lives on Profile.

    Usage:
        user = User.objects.create_user(email="poster@example.com", password="pw")
        user.profile.membership_plan
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )

    email_verified = models.BooleanField(
        default=False,
        help_text="Whether the user's email has been verified",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def get_full_name(self):
        """Full name from profile, or email if no profile/name set."""
        try:
            return self.profile.full_name or self.email
        except Profile.DoesNotExist:
            return self.email

    def get_short_name(self):
        try:
            return self.profile.first_name or self.email.split("@")[0]
        except Profile.DoesNotExist:
            return self.email.split("@")[0]


class Profile(BaseModel):
    """
    Extended user profile data.

    Fields:
        user: OneToOne link to User (also serves as primary key)
        username: Optional unique handle
        first_name, last_name: Display name
        timezone: User's preferred timezone
        preferences: JSON field for flexible user preferences
        membership_plan: Plan identifier from the membership system
        membership_active: Whether membership_plan is currently paid up
        stripe_customer_id: Stripe Customer used when this user pays (cus_xxx)

    Note:
        Profile is automatically created via signals when a User is created.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
        primary_key=True,
        help_text="User this profile belongs to",
    )

    first_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="User's first name",
    )
    last_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="User's last name",
    )

    username = models.CharField(
        max_length=30,
        blank=True,
        db_index=True,
        validators=[validate_username_format],
        help_text="Unique username (3-30 chars, alphanumeric + _ + -)",
    )

    timezone = models.CharField(
        max_length=50,
        default="UTC",
        help_text="User's preferred timezone (e.g., 'America/New_York')",
    )

    preferences = models.JSONField(
        default=dict,
        blank=True,
        help_text="User preferences as JSON (e.g., theme, language)",
    )

    # Membership (drives platform fee exemption)
    membership_plan = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Membership plan identifier (e.g., 'cca_no_fees_60')",
    )
    membership_active = models.BooleanField(
        default=False,
        help_text="Whether the membership plan is currently active",
    )

    stripe_customer_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Stripe Customer ID (cus_xxx) used for checkouts",
    )

    class Meta:
        db_table = "authentication_profile"
        verbose_name = "profile"
        verbose_name_plural = "profiles"
        constraints = [
            models.UniqueConstraint(
                Lower("username"),
                name="unique_username_case_insensitive",
                condition=models.Q(username__gt=""),
            ),
        ]

    def __str__(self):
        return self.username or str(self.user)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def save(self, *args, **kwargs):
        """Normalize username before saving."""
        if self.username:
            self.username = self.username.lower()
        super().save(*args, **kwargs)
