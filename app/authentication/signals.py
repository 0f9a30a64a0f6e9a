"""
Django signals for authentication.

- Auto-creating Profile when User is created

Signals are connected by AuthenticationConfig.ready().
"""

import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_user_profile(sender, instance, created, **kwargs):
    """
    Create a Profile for newly created users.

    Every user can end up paying for a hire, and the fee calculator and
    checkout both read the profile, so it must always exist.
    """
    if created:
        from authentication.models import Profile

        Profile.objects.get_or_create(user=instance)
        logger.debug("Profile created", extra={"user_id": instance.pk})
