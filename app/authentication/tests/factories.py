"""
Factory Boy factories for authentication models.

Usage:
    from authentication.tests.factories import UserFactory

    user = UserFactory()
    member = UserFactory(membership_plan="cca_no_fees_60", membership_active=True)
"""

import factory

from authentication.models import Profile, User


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for User model.

    The Profile is created by the post_save signal; membership_plan,
    membership_active and stripe_customer_id are copied onto it.

    Examples:
        user = UserFactory()
        user = UserFactory(email_verified=True)
        user = UserFactory(membership_plan="cca_membership_87", membership_active=True)
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    email_verified = True
    is_active = True
    is_staff = False

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Create through UserManager.create_user() and fill in the profile."""
        password = kwargs.pop("password", "TestPass123!")
        profile_fields = {
            name: kwargs.pop(name)
            for name in ("membership_plan", "membership_active", "stripe_customer_id", "first_name")
            if name in kwargs
        }
        user = model_class.objects.create_user(
            email=kwargs.pop("email"), password=password, **kwargs
        )
        if profile_fields:
            Profile.objects.filter(user=user).update(**profile_fields)
            user.profile.refresh_from_db()
        return user


class ProfileFactory(factory.django.DjangoModelFactory):
    """
    Factory for Profile model.

    Uses get_or_create on user, so it updates the signal-created profile.
    """

    class Meta:
        model = Profile
        django_get_or_create = ("user",)

    user = factory.SubFactory(UserFactory)
    username = factory.Sequence(lambda n: f"username{n}")
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    timezone = "UTC"
