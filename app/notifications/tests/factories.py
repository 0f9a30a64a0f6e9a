"""
Factory Boy factories for notification models.

Usage:
    from notifications.tests.factories import NotificationFactory, NotificationTypeFactory

    notification_type = NotificationTypeFactory(
        key="job_deposit_paid",
        body_template='Deposit (${amount}) paid for "{job_title}".',
    )
    notification = NotificationFactory(recipient=user, is_read=False)
"""

import factory

from authentication.tests.factories import UserFactory


class NotificationTypeFactory(factory.django.DjangoModelFactory):
    """Active notification type with static templates."""

    class Meta:
        model = "notifications.NotificationType"
        django_get_or_create = ("key",)

    key = factory.Sequence(lambda n: f"notification_type_{n}")
    display_name = factory.LazyAttribute(lambda obj: obj.key.replace("_", " ").title())
    category = "transactional"
    title_template = factory.LazyAttribute(lambda obj: f"{obj.display_name} Title")
    body_template = factory.LazyAttribute(lambda obj: f"{obj.display_name} body message.")
    is_active = True


class NotificationFactory(factory.django.DjangoModelFactory):
    """
    Unread notification without an actor.

    Examples:
        notification = NotificationFactory(recipient=user, is_read=True)
        notification = NotificationFactory(recipient=user, data={"application_id": "..."})
    """

    class Meta:
        model = "notifications.Notification"

    notification_type = factory.SubFactory(NotificationTypeFactory)
    recipient = factory.SubFactory(UserFactory)
    actor = None
    title = factory.Faker("sentence", nb_words=5)
    body = factory.Faker("paragraph", nb_sentences=2)
    data = factory.LazyFunction(dict)
    is_read = False
