"""
Status and stage enums for the jobs app.

JobApplication lifecycle (django-fsm):
    pending → hired → completed → paid
    pending → rejected

Settlement stages:
    deposit: 25% up front, carries the platform fee
    final: the remaining 75%, never carries a fee
"""

from django.db import models


class ApplicationStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    HIRED = "hired", "Hired"
    COMPLETED = "completed", "Completed"
    PAID = "paid", "Paid"
    REJECTED = "rejected", "Rejected"


class SettlementStage(models.TextChoices):
    DEPOSIT = "deposit", "Deposit"
    FINAL = "final", "Final Payment"


class PaymentType(models.TextChoices):
    """Value of the "type" metadata key on job checkouts and payment intents."""

    JOB_DEPOSIT = "job_deposit", "Job Deposit"
    JOB_FINAL_PAYMENT = "job_final_payment", "Job Final Payment"


STAGE_PAYMENT_TYPES = {
    SettlementStage.DEPOSIT: PaymentType.JOB_DEPOSIT,
    SettlementStage.FINAL: PaymentType.JOB_FINAL_PAYMENT,
}


__all__ = [
    "ApplicationStatus",
    "PaymentType",
    "STAGE_PAYMENT_TYPES",
    "SettlementStage",
]
