"""
Model mixins providing reusable fields for Django models.

Available Mixins:
    UUIDPrimaryKeyMixin: Use a random UUID as primary key

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class Settlement(UUIDPrimaryKeyMixin, BaseModel):
        stage = models.CharField(max_length=20)
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use a UUID primary key instead of an auto-increment integer.

    Ids are non-guessable and are safe to expose in URLs and in Stripe
    metadata, where they are used to correlate webhook events back to rows.

    Fields:
        id: UUIDField primary key, generated on instantiation
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True
