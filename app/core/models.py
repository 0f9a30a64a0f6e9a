"""
Core abstract models shared by every domain app.

Base Classes:
    BaseModel: Abstract model with timestamps (created_at, updated_at)
    VersionedModel: BaseModel plus an optimistic locking version counter

For the UUID primary key mixin see core.model_mixins.

Usage:
    from core.models import BaseModel, VersionedModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class Opportunity(UUIDPrimaryKeyMixin, BaseModel):
        title = models.CharField(max_length=200)

    class JobApplication(UUIDPrimaryKeyMixin, VersionedModel):
        ...

Note:
    Always list mixins before the base model in inheritance.
"""

from __future__ import annotations

from django.db import models
from django.db.models import F


class BaseModel(models.Model):
    """
    Abstract base model providing creation and modification timestamps.

    Fields:
        created_at: Set once when the row is inserted
        updated_at: Refreshed on every save
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this record was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when this record was last modified",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self.pk})"


class VersionedModel(BaseModel):
    """
    BaseModel with a version counter for optimistic locking.

    Every update increments ``version`` atomically in the database using an
    F() expression, so two writers that read the same version cannot both
    believe they wrote on top of it. Pair with payments.locks.check_version
    to turn a stale read into a StaleRecordError.

    Fields:
        version: Incremented on every save after the initial insert
    """

    version = models.PositiveIntegerField(
        default=1,
        help_text="Version for optimistic locking - incremented on each save",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def save(self, *args, **kwargs):
        is_update = not self._state.adding and not kwargs.get("force_insert", False)
        update_fields = kwargs.get("update_fields")
        if is_update:
            self.version = F("version") + 1
            if update_fields is not None:
                kwargs["update_fields"] = {*update_fields, "version", "updated_at"}
        super().save(*args, **kwargs)
        if is_update:
            # Replace the F() expression with the stored value
            self.refresh_from_db(fields=["version"])
