"""
URL configuration for the Django application.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/token/            - Obtain a JWT pair (POST)
    /api/v1/auth/token/refresh/    - Refresh an access token (POST)
    /api/v1/jobs/                  - Job hiring endpoints
        opportunities/             - List open / post an opportunity
        opportunities/{id}/        - Opportunity detail
        opportunities/{id}/apply/  - Apply
        applications/              - Caller's applications
        applications/{id}/         - Application detail
        applications/{id}/hire/    - Hire
        applications/{id}/reject/  - Reject
        applications/{id}/checkout-deposit/ - Deposit checkout
        applications/{id}/complete/ - Mark work done
        applications/{id}/pay-final/ - Final payment checkout
    /api/v1/payments/              - Payment endpoints
        webhooks/stripe/           - Stripe webhook endpoint (POST)
        connect/status/            - Caller's Stripe Connect status
    /api/v1/notifications/         - Notification inbox
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Authentication (simplejwt)
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    # Jobs
    path("jobs/", include("jobs.urls")),
    # Notifications
    path("notifications/", include("notifications.urls")),
    # Payments
    path("payments/", include("payments.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Job Escrow Admin"
admin.site.site_title = "Job Escrow Admin"
admin.site.index_title = "Opportunities, applications and payments"
