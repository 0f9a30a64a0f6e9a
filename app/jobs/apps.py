from django.apps import AppConfig


class JobsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "jobs"
    verbose_name = "Jobs"

    def ready(self):
        # Registers the checkout and payment intent webhook handlers
        import jobs.webhooks  # noqa: F401
