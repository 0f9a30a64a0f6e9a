"""
Django admin configuration for authentication models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from authentication.models import Profile, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin for the email-based User model. Profile data is on ProfileAdmin."""

    list_display = (
        "email",
        "email_verified",
        "is_active",
        "is_staff",
        "date_joined",
    )
    list_filter = (
        "is_active",
        "is_staff",
        "is_superuser",
        "email_verified",
    )
    search_fields = ("email",)
    ordering = ("-date_joined",)

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        (
            "Status",
            {"fields": ("email_verified", "is_active", "is_staff", "is_superuser")},
        ),
        ("Permissions", {"fields": ("groups", "user_permissions")}),
        ("Important dates", {"fields": ("date_joined", "last_login")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "password1", "password2"),
            },
        ),
    )

    readonly_fields = ("date_joined", "last_login")


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    """Profile identity, membership and Stripe customer linkage."""

    list_display = (
        "user",
        "username",
        "membership_plan",
        "membership_active",
        "stripe_customer_id",
        "created_at",
    )
    list_filter = ("membership_active", "membership_plan")
    search_fields = ("user__email", "username", "stripe_customer_id")
    ordering = ("-created_at",)

    raw_id_fields = ("user",)
    readonly_fields = ("stripe_customer_id", "created_at", "updated_at")

    fieldsets = (
        ("User", {"fields": ("user",)}),
        ("Identity", {"fields": ("username", "first_name", "last_name")}),
        ("Membership", {"fields": ("membership_plan", "membership_active")}),
        ("Billing", {"fields": ("stripe_customer_id",)}),
        ("Preferences", {"fields": ("timezone", "preferences")}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )
