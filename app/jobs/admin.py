"""
Django admin configuration for the jobs app.

Applications are read-only here: status is an FSM-protected field and the
money fields are written by the escrow transitions only.
"""

from django.contrib import admin

from jobs.models import JobApplication, Opportunity, Settlement

MONEY_FIELDS = (
    "total_amount",
    "deposit_amount",
    "platform_fee",
    "remaining_amount",
    "platform_fee_on_remaining",
    "total_platform_fee",
    "transfer_amount",
    "total_transfer_amount",
)


@admin.register(Opportunity)
class OpportunityAdmin(admin.ModelAdmin):
    list_display = ["title", "poster", "amount", "currency", "is_open", "created_at"]
    list_filter = ["is_open", "currency"]
    search_fields = ["title", "company_name", "poster__email"]
    raw_id_fields = ["poster"]
    ordering = ["-created_at"]


class SettlementInline(admin.TabularInline):
    model = Settlement
    extra = 0
    can_delete = False
    fields = ["stage", "attempt", "amount", "application_fee", "checkout_session_id", "is_paid", "paid_at"]
    readonly_fields = fields


@admin.register(JobApplication)
class JobApplicationAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "opportunity_title",
        "applicant",
        "poster",
        "status",
        "total_amount",
        "deposit_paid",
        "final_payment_paid",
        "created_at",
    ]
    list_filter = ["status", "deposit_paid", "final_payment_paid"]
    search_fields = ["id", "opportunity_title", "applicant__email", "poster__email", "email"]
    raw_id_fields = ["opportunity", "applicant", "poster"]
    inlines = [SettlementInline]
    ordering = ["-created_at"]

    fieldsets = (
        (None, {"fields": ("id", "opportunity", "applicant", "poster", "status", "version")}),
        (
            "Application",
            {
                "fields": (
                    "opportunity_title",
                    "company_name",
                    "name",
                    "email",
                    "phone",
                    "cover_letter",
                    "portfolio_url",
                    "rate",
                    "availability",
                    "additional_info",
                ),
                "classes": ("collapse",),
            },
        ),
        ("Money", {"fields": MONEY_FIELDS}),
        (
            "Settlement",
            {
                "fields": (
                    "applicant_connect_account_id",
                    "deposit_paid",
                    "deposit_paid_at",
                    "deposit_checkout_session_id",
                    "deposit_payment_intent_id",
                    "final_payment_paid",
                    "final_payment_paid_at",
                    "final_checkout_session_id",
                    "final_payment_intent_id",
                ),
            },
        ),
        ("Timestamps", {"fields": ("hired_at", "completed_at", "rejected_at", "created_at", "updated_at")}),
    )

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Settlement)
class SettlementAdmin(admin.ModelAdmin):
    list_display = ["idempotency_key", "stage", "attempt", "amount", "application_fee", "is_paid", "paid_at"]
    list_filter = ["stage", "is_paid"]
    search_fields = ["idempotency_key", "checkout_session_id", "payment_intent_id"]
    readonly_fields = [
        "id",
        "application",
        "stage",
        "idempotency_key",
        "attempt",
        "amount",
        "application_fee",
        "destination_account_id",
        "checkout_session_id",
        "checkout_url",
        "is_paid",
        "paid_at",
        "payment_intent_id",
        "version",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        return False
