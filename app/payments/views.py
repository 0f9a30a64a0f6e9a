"""
DRF views for the payments app.

Endpoints:
    GET /api/v1/payments/connect/status/ - Caller's Stripe Connect status

The Stripe webhook endpoint is a plain Django view in payments.webhooks.views.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from payments.adapters import StripeAdapter
from payments.exceptions import StripeError
from payments.models import ConnectedAccount
from payments.serializers import ConnectedAccountStatusSerializer

logger = logging.getLogger(__name__)


class ConnectStatusView(APIView):
    """
    Report the caller's connected account status.

    Probes Stripe live and writes the fresh flags back to the cached
    ConnectedAccount row. When Stripe is unreachable the cached row is
    returned with "stale": true.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_connect_status",
        summary="Get Stripe Connect status",
        responses={
            200: ConnectedAccountStatusSerializer,
            404: OpenApiResponse(description="No connected account for this user"),
        },
        tags=["Payments - Connect"],
    )
    def get(self, request):
        account = ConnectedAccount.objects.filter(profile__user=request.user).first()
        if account is None:
            return Response(
                {
                    "error": "No connected account for this user",
                    "error_code": "CONNECTED_ACCOUNT_NOT_FOUND",
                },
                status=status.HTTP_404_NOT_FOUND,
            )

        stale = False
        try:
            live = StripeAdapter.retrieve_account(account.stripe_account_id)
        except StripeError as e:
            logger.warning(
                "Could not refresh connected account from Stripe",
                extra={"stripe_account_id": account.stripe_account_id, "error": str(e)},
            )
            stale = True
        else:
            changed = account.apply_stripe_state(live)
            if changed:
                account.save(update_fields=changed)

        data = ConnectedAccountStatusSerializer(account).data
        data["stale"] = stale
        return Response(data)
