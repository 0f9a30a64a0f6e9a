"""
Serializers for the payments API.

Serializers:
    ConnectedAccountStatusSerializer: Read-only connected account status
"""

from __future__ import annotations

from rest_framework import serializers

from payments.models import ConnectedAccount


class ConnectedAccountStatusSerializer(serializers.ModelSerializer):
    """
    Connected account status as last refreshed from Stripe.

    can_receive_payments mirrors what hiring checks live: onboarding
    complete and the transfers capability active.
    """

    can_receive_payments = serializers.BooleanField(source="is_ready_to_receive", read_only=True)
    requirements_due = serializers.SerializerMethodField()

    class Meta:
        model = ConnectedAccount
        fields = [
            "stripe_account_id",
            "onboarding_status",
            "charges_enabled",
            "payouts_enabled",
            "transfers_enabled",
            "can_receive_payments",
            "requirements_due",
            "updated_at",
        ]
        read_only_fields = fields

    def get_requirements_due(self, obj: ConnectedAccount) -> list[str]:
        return list(obj.metadata.get("requirements_due") or [])
