"""
Serializers for the jobs API.

Serializers:
    OpportunitySerializer: Read-only opportunity
    OpportunityCreateSerializer: Input for posting an opportunity
    OpportunityAmountSerializer: Input for changing the price
    ApplicationSubmitSerializer: Input for applying
    TransitionRequestSerializer: Optional expected_version for state changes
    CheckoutRequestSerializer: Empty body for the deposit checkout
    JobApplicationListSerializer: Compact application rows
    JobApplicationSerializer: Full application with the escrow amounts
    SettlementHandleSerializer: Checkout redirect returned by the pay endpoints
    PayFinalResponseSerializer: Final split plus its checkout redirect
"""

from __future__ import annotations

from rest_framework import serializers

from jobs.fees import compute_deposit_amount, compute_remaining_amount
from jobs.models import JobApplication, Opportunity


def validate_splittable_amount(value):
    """Both the deposit and the final payment must come out above zero."""
    deposit_amount = compute_deposit_amount(value)
    if deposit_amount <= 0 or compute_remaining_amount(value, deposit_amount) <= 0:
        raise serializers.ValidationError(
            "Amount is too small to split into a deposit and a final payment."
        )


class OpportunitySerializer(serializers.ModelSerializer):
    poster_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Opportunity
        fields = [
            "id",
            "poster_id",
            "title",
            "company_name",
            "description",
            "amount",
            "currency",
            "is_open",
            "created_at",
        ]
        read_only_fields = fields


class OpportunityCreateSerializer(serializers.ModelSerializer):
    amount = serializers.IntegerField(
        min_value=1,
        validators=[validate_splittable_amount],
        help_text="Total price in cents",
    )

    class Meta:
        model = Opportunity
        fields = ["title", "company_name", "description", "amount"]


class OpportunityAmountSerializer(serializers.Serializer):
    amount = serializers.IntegerField(
        min_value=1,
        validators=[validate_splittable_amount],
        help_text="New total price in cents",
    )


class ApplicationSubmitSerializer(serializers.Serializer):
    """
    Shape of an application body.

    Content rules (required fields, email and URL format) are enforced by
    ApplicationSubmission so that the same rules apply to every caller.
    """

    name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    email = serializers.CharField(max_length=254, required=False, allow_blank=True)
    cover_letter = serializers.CharField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    portfolio_url = serializers.CharField(max_length=200, required=False, allow_blank=True)
    rate = serializers.CharField(max_length=100, required=False, allow_blank=True)
    availability = serializers.CharField(max_length=200, required=False, allow_blank=True)
    additional_info = serializers.CharField(required=False, allow_blank=True)


class TransitionRequestSerializer(serializers.Serializer):
    expected_version = serializers.IntegerField(
        min_value=1,
        required=False,
        allow_null=True,
        help_text="Version the client last saw; the request fails with 409 if it changed",
    )


class CheckoutRequestSerializer(serializers.Serializer):
    """
    The deposit checkout changes no escrow state, so it takes no version.

    Sending expected_version is rejected rather than ignored.
    """

    def validate(self, attrs):
        if "expected_version" in self.initial_data:
            raise serializers.ValidationError(
                {"expected_version": "Not accepted here; the deposit checkout does not change the application."}
            )
        return attrs


class JobApplicationListSerializer(serializers.ModelSerializer):
    opportunity_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = JobApplication
        fields = [
            "id",
            "opportunity_id",
            "opportunity_title",
            "company_name",
            "name",
            "status",
            "total_amount",
            "deposit_paid",
            "final_payment_paid",
            "version",
            "created_at",
        ]
        read_only_fields = fields


class JobApplicationSerializer(serializers.ModelSerializer):
    """Everything the two parties may see, including the escrow amounts."""

    opportunity_id = serializers.UUIDField(read_only=True)
    applicant_id = serializers.IntegerField(read_only=True)
    poster_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = JobApplication
        fields = [
            "id",
            "opportunity_id",
            "applicant_id",
            "poster_id",
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
            "status",
            "total_amount",
            "deposit_amount",
            "platform_fee",
            "remaining_amount",
            "platform_fee_on_remaining",
            "total_platform_fee",
            "transfer_amount",
            "total_transfer_amount",
            "deposit_paid",
            "deposit_paid_at",
            "final_payment_paid",
            "final_payment_paid_at",
            "hired_at",
            "completed_at",
            "rejected_at",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class SettlementHandleSerializer(serializers.Serializer):
    session_id = serializers.CharField()
    redirect_url = serializers.CharField()
    stage = serializers.CharField()
    attempt = serializers.IntegerField()
    reused = serializers.BooleanField()


class PayFinalResponseSerializer(serializers.Serializer):
    application = JobApplicationSerializer()
    checkout = SettlementHandleSerializer()
