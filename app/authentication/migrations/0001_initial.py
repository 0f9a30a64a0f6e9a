import django.db.models.deletion
import django.db.models.functions.text
from django.conf import settings
from django.db import migrations, models

import authentication.managers
import authentication.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                (
                    "is_superuser",
                    models.BooleanField(
                        default=False,
                        help_text="Designates that this user has all permissions without explicitly assigning them.",
                        verbose_name="superuser status",
                    ),
                ),
                (
                    "email",
                    models.EmailField(
                        db_index=True,
                        help_text="User's email address (primary identifier)",
                        max_length=254,
                        unique=True,
                    ),
                ),
                (
                    "email_verified",
                    models.BooleanField(default=False, help_text="Whether the user's email has been verified"),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        default=True,
                        help_text="Whether this user account is active. Deselect instead of deleting.",
                    ),
                ),
                (
                    "is_staff",
                    models.BooleanField(default=False, help_text="Whether the user can access the admin site."),
                ),
                (
                    "date_joined",
                    models.DateTimeField(auto_now_add=True, help_text="When the user account was created"),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, help_text="When the user record was last modified"),
                ),
                (
                    "groups",
                    models.ManyToManyField(
                        blank=True,
                        help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.",
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.group",
                        verbose_name="groups",
                    ),
                ),
                (
                    "user_permissions",
                    models.ManyToManyField(
                        blank=True,
                        help_text="Specific permissions for this user.",
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.permission",
                        verbose_name="user permissions",
                    ),
                ),
            ],
            options={
                "verbose_name": "user",
                "verbose_name_plural": "users",
                "ordering": ["-date_joined"],
            },
            managers=[
                ("objects", authentication.managers.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name="Profile",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified"),
                ),
                (
                    "user",
                    models.OneToOneField(
                        help_text="User this profile belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        primary_key=True,
                        related_name="profile",
                        serialize=False,
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                ("first_name", models.CharField(blank=True, help_text="User's first name", max_length=150)),
                ("last_name", models.CharField(blank=True, help_text="User's last name", max_length=150)),
                (
                    "username",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="Unique username (3-30 chars, alphanumeric + _ + -)",
                        max_length=30,
                        validators=[authentication.models.validate_username_format],
                    ),
                ),
                (
                    "timezone",
                    models.CharField(
                        default="UTC",
                        help_text="User's preferred timezone (e.g., 'America/New_York')",
                        max_length=50,
                    ),
                ),
                (
                    "preferences",
                    models.JSONField(
                        blank=True, default=dict, help_text="User preferences as JSON (e.g., theme, language)"
                    ),
                ),
                (
                    "membership_plan",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Membership plan identifier (e.g., 'cca_no_fees_60')",
                        max_length=64,
                    ),
                ),
                (
                    "membership_active",
                    models.BooleanField(default=False, help_text="Whether the membership plan is currently active"),
                ),
                (
                    "stripe_customer_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Stripe Customer ID (cus_xxx) used for checkouts",
                        max_length=255,
                    ),
                ),
            ],
            options={
                "verbose_name": "profile",
                "verbose_name_plural": "profiles",
                "db_table": "authentication_profile",
                "constraints": [
                    models.UniqueConstraint(
                        django.db.models.functions.text.Lower("username"),
                        condition=models.Q(("username__gt", "")),
                        name="unique_username_case_insensitive",
                    )
                ],
            },
        ),
    ]
