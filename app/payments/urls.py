"""
URL configuration for the payments app.

Routes:
    - POST /webhooks/stripe/ - Stripe webhook endpoint
    - GET /connect/status/ - Caller's Stripe Connect status

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.
"""

from django.urls import path

from payments.views import ConnectStatusView
from payments.webhooks.views import stripe_webhook

app_name = "payments"

urlpatterns = [
    path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
    path("connect/status/", ConnectStatusView.as_view(), name="connect_status"),
]
