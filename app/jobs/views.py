"""
Views for the job hiring escrow.

Endpoints:
    GET  /api/v1/jobs/opportunities/ - List open opportunities
    POST /api/v1/jobs/opportunities/ - Post an opportunity
    GET  /api/v1/jobs/opportunities/{id}/ - Get opportunity
    PATCH /api/v1/jobs/opportunities/{id}/ - Change the amount (poster, before any application)
    POST /api/v1/jobs/opportunities/{id}/apply/ - Apply
    GET  /api/v1/jobs/applications/ - Caller's applications (as applicant or poster)
    GET  /api/v1/jobs/applications/{id}/ - Get application (parties only)
    POST /api/v1/jobs/applications/{id}/hire/ - Hire (poster)
    POST /api/v1/jobs/applications/{id}/reject/ - Reject (poster)
    POST /api/v1/jobs/applications/{id}/checkout-deposit/ - Deposit checkout (poster)
    POST /api/v1/jobs/applications/{id}/complete/ - Mark work done (applicant)
    POST /api/v1/jobs/applications/{id}/pay-final/ - Final payment checkout (poster)

Domain errors are rendered as ``exc.to_dict()`` with ``exc.http_status``.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema, extend_schema_view
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError
from jobs.serializers import (
    ApplicationSubmitSerializer,
    CheckoutRequestSerializer,
    JobApplicationListSerializer,
    JobApplicationSerializer,
    OpportunityAmountSerializer,
    OpportunityCreateSerializer,
    OpportunitySerializer,
    PayFinalResponseSerializer,
    SettlementHandleSerializer,
    TransitionRequestSerializer,
)
from jobs.services import ApplicationRepository, JobHiringService

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: OpenApiResponse(description="Invalid input or a Stripe account is not ready"),
    403: OpenApiResponse(description="Caller is not the party allowed to do this"),
    404: OpenApiResponse(description="Application not found"),
    409: OpenApiResponse(description="Application is in the wrong state or was modified"),
}


def error_response(exc: BaseApplicationError) -> Response:
    if exc.http_status >= 500:
        logger.error(
            "Request failed",
            extra={"error_code": exc.error_code, "details": exc.details},
        )
    return Response(exc.to_dict(), status=exc.http_status)


# =============================================================================
# Opportunities
# =============================================================================


@extend_schema_view(
    get=extend_schema(
        operation_id="list_opportunities",
        summary="List open opportunities",
        tags=["Jobs - Opportunities"],
    ),
    post=extend_schema(
        operation_id="create_opportunity",
        summary="Post an opportunity",
        request=OpportunityCreateSerializer,
        responses={201: OpportunitySerializer},
        tags=["Jobs - Opportunities"],
    ),
)
class OpportunityListCreateView(generics.ListCreateAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = OpportunitySerializer

    def get_queryset(self):
        return ApplicationRepository.list_open_opportunities()

    def create(self, request, *args, **kwargs):
        serializer = OpportunityCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        opportunity = serializer.save(poster=request.user)
        logger.info(
            "Opportunity posted",
            extra={"opportunity_id": str(opportunity.pk), "poster_id": request.user.pk, "amount": opportunity.amount},
        )
        return Response(OpportunitySerializer(opportunity).data, status=status.HTTP_201_CREATED)


@extend_schema_view(
    get=extend_schema(
        operation_id="get_opportunity",
        summary="Get opportunity",
        tags=["Jobs - Opportunities"],
    ),
)
class OpportunityDetailView(generics.RetrieveAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = OpportunitySerializer

    def get_queryset(self):
        return ApplicationRepository.list_open_opportunities()

    @extend_schema(
        operation_id="reprice_opportunity",
        summary="Change the opportunity amount",
        description="Poster only. Rejected with 409 once anyone has applied.",
        request=OpportunityAmountSerializer,
        responses={200: OpportunitySerializer, **ERROR_RESPONSES},
        tags=["Jobs - Opportunities"],
    )
    def patch(self, request, pk):
        serializer = OpportunityAmountSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            opportunity = JobHiringService.update_opportunity_amount(
                request.user, pk, serializer.validated_data["amount"]
            )
        except BaseApplicationError as e:
            return error_response(e)

        return Response(OpportunitySerializer(opportunity).data)


class ApplyView(APIView):
    """Submit an application to an opportunity."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="apply_to_opportunity",
        summary="Apply to an opportunity",
        request=ApplicationSubmitSerializer,
        responses={201: JobApplicationSerializer, **ERROR_RESPONSES},
        tags=["Jobs - Applications"],
    )
    def post(self, request, pk):
        serializer = ApplicationSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            outcome = JobHiringService.apply(request.user, pk, serializer.validated_data)
        except BaseApplicationError as e:
            return error_response(e)

        return Response(JobApplicationSerializer(outcome.application).data, status=status.HTTP_201_CREATED)


# =============================================================================
# Applications
# =============================================================================


@extend_schema_view(
    get=extend_schema(
        operation_id="list_job_applications",
        summary="List my applications",
        description="Applications where the caller is the applicant or the poster.",
        tags=["Jobs - Applications"],
    ),
)
class ApplicationListView(generics.ListAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = JobApplicationListSerializer

    def get_queryset(self):
        queryset = ApplicationRepository.applications_for_user(self.request.user)
        status_filter = self.request.query_params.get("status")
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        return queryset


@extend_schema_view(
    get=extend_schema(
        operation_id="get_job_application",
        summary="Get application",
        tags=["Jobs - Applications"],
    ),
)
class ApplicationDetailView(generics.RetrieveAPIView):
    """Only the applicant and the poster can see an application; others get 404."""

    permission_classes = [IsAuthenticated]
    serializer_class = JobApplicationSerializer

    def get_queryset(self):
        return ApplicationRepository.applications_for_user(self.request.user)


class ApplicationTransitionView(APIView):
    """
    Base for the POST endpoints that move an application through the escrow.

    Subclasses implement perform(user, application_id, expected_version)
    and return the response body.
    """

    permission_classes = [IsAuthenticated]
    request_serializer_class = TransitionRequestSerializer
    success_status = status.HTTP_200_OK

    def post(self, request, pk):
        serializer = self.request_serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        expected_version = serializer.validated_data.get("expected_version")

        try:
            data = self.perform(request.user, pk, expected_version)
        except BaseApplicationError as e:
            return error_response(e)

        return Response(data, status=self.success_status)

    def perform(self, user, application_id, expected_version) -> dict:
        raise NotImplementedError


class HireView(ApplicationTransitionView):
    @extend_schema(
        operation_id="hire_applicant",
        summary="Hire the applicant",
        description=(
            "Checks both Stripe accounts live, then records the total, the 25% deposit and "
            "the platform fee. No money moves until the deposit checkout is paid."
        ),
        request=TransitionRequestSerializer,
        responses={200: JobApplicationSerializer, **ERROR_RESPONSES},
        tags=["Jobs - Escrow"],
    )
    def post(self, request, pk):
        return super().post(request, pk)

    def perform(self, user, application_id, expected_version) -> dict:
        outcome = JobHiringService.hire(user, application_id, expected_version)
        return JobApplicationSerializer(outcome.application).data


class RejectView(ApplicationTransitionView):
    @extend_schema(
        operation_id="reject_applicant",
        summary="Reject the applicant",
        request=TransitionRequestSerializer,
        responses={200: JobApplicationSerializer, **ERROR_RESPONSES},
        tags=["Jobs - Escrow"],
    )
    def post(self, request, pk):
        return super().post(request, pk)

    def perform(self, user, application_id, expected_version) -> dict:
        outcome = JobHiringService.reject(user, application_id, expected_version)
        return JobApplicationSerializer(outcome.application).data


class CheckoutDepositView(ApplicationTransitionView):
    request_serializer_class = CheckoutRequestSerializer

    @extend_schema(
        operation_id="checkout_job_deposit",
        summary="Pay the deposit",
        description="Returns a Stripe Checkout URL. Repeated calls reuse the open session.",
        request=None,
        responses={
            200: SettlementHandleSerializer,
            502: OpenApiResponse(description="Stripe failed; details.retryable says whether to retry"),
            **ERROR_RESPONSES,
        },
        tags=["Jobs - Escrow"],
    )
    def post(self, request, pk):
        return super().post(request, pk)

    def perform(self, user, application_id, expected_version) -> dict:
        handle = JobHiringService.checkout_deposit(user, application_id)
        return SettlementHandleSerializer(handle).data


class CompleteView(ApplicationTransitionView):
    @extend_schema(
        operation_id="complete_job",
        summary="Mark the job complete",
        description="Applicant only. Requires the deposit to have been paid.",
        request=TransitionRequestSerializer,
        responses={200: JobApplicationSerializer, **ERROR_RESPONSES},
        tags=["Jobs - Escrow"],
    )
    def post(self, request, pk):
        return super().post(request, pk)

    def perform(self, user, application_id, expected_version) -> dict:
        outcome = JobHiringService.complete(user, application_id, expected_version)
        return JobApplicationSerializer(outcome.application).data


class PayFinalView(ApplicationTransitionView):
    @extend_schema(
        operation_id="pay_job_final",
        summary="Pay the remaining amount",
        description=(
            "Computes the final split once, then returns a Stripe Checkout URL for the "
            "remaining 75%. No platform fee is charged on the final payment."
        ),
        request=TransitionRequestSerializer,
        responses={
            200: PayFinalResponseSerializer,
            502: OpenApiResponse(description="Stripe failed; details.retryable says whether to retry"),
            **ERROR_RESPONSES,
        },
        tags=["Jobs - Escrow"],
    )
    def post(self, request, pk):
        return super().post(request, pk)

    def perform(self, user, application_id, expected_version) -> dict:
        outcome, handle = JobHiringService.pay_final(user, application_id, expected_version)
        return {
            "application": JobApplicationSerializer(outcome.application).data,
            "checkout": SettlementHandleSerializer(handle).data,
        }
