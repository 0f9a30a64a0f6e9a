"""
URL configuration for the jobs app.

All routes are prefixed with /api/v1/jobs/ when included in the main URLconf.
"""

from django.urls import path

from jobs import views

app_name = "jobs"

urlpatterns = [
    path("opportunities/", views.OpportunityListCreateView.as_view(), name="opportunity-list"),
    path("opportunities/<uuid:pk>/", views.OpportunityDetailView.as_view(), name="opportunity-detail"),
    path("opportunities/<uuid:pk>/apply/", views.ApplyView.as_view(), name="opportunity-apply"),
    path("applications/", views.ApplicationListView.as_view(), name="application-list"),
    path("applications/<uuid:pk>/", views.ApplicationDetailView.as_view(), name="application-detail"),
    path("applications/<uuid:pk>/hire/", views.HireView.as_view(), name="application-hire"),
    path("applications/<uuid:pk>/reject/", views.RejectView.as_view(), name="application-reject"),
    path(
        "applications/<uuid:pk>/checkout-deposit/",
        views.CheckoutDepositView.as_view(),
        name="application-checkout-deposit",
    ),
    path("applications/<uuid:pk>/complete/", views.CompleteView.as_view(), name="application-complete"),
    path("applications/<uuid:pk>/pay-final/", views.PayFinalView.as_view(), name="application-pay-final"),
]
