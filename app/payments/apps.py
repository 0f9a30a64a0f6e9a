"""
Payments app configuration.
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Stripe integration: adapter, connected accounts and webhook intake."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

    def ready(self):
        # Populate the webhook handler registry
        import payments.webhooks.handlers  # noqa: F401
