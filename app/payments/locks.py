"""
Row-level concurrency control for payment and escrow records.

Two helpers, both meant to be called inside transaction.atomic():

1. **lock_row** - Pessimistic lock
   - SELECT ... FOR UPDATE on a single row
   - Concurrent writers queue on the row and see each other's result

2. **check_version** - Optimistic lock
   - Same row lock, plus a check that the caller's version is current
   - Used when a client read the record earlier and acts on that read

Usage:
    from payments.locks import check_version, lock_row

    with transaction.atomic():
        application = lock_row(JobApplication, application_id)
        ...

    with transaction.atomic():
        application = check_version(JobApplication, application_id, expected_version=3)
        application.save()  # Version auto-increments

Note:
    The model must inherit core.models.VersionedModel for check_version.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from django.db import models, transaction

from core.exceptions import NotFoundError
from payments.exceptions import StaleRecordError

if TYPE_CHECKING:
    from typing import Any

T = TypeVar("T", bound=models.Model)


def _not_found(model_class: type[models.Model], pk: Any) -> NotFoundError:
    model_name = model_class.__name__
    return NotFoundError(
        f"{model_name} {pk} not found",
        error_code=f"{model_name.upper()}_NOT_FOUND",
        details={"pk": str(pk)},
    )


def lock_row(model_class: type[T], pk: Any) -> T:
    """
    Fetch a record with a row lock held until the transaction ends.

    Raises:
        NotFoundError: If the record doesn't exist
    """
    instance = model_class.objects.select_for_update().filter(pk=pk).first()
    if instance is None:
        raise _not_found(model_class, pk)
    return instance


def check_version(
    model_class: type[T],
    pk: Any,
    expected_version: int,
) -> T:
    """
    Atomically check version and lock a record for update.

    Args:
        model_class: Django model class (must have 'version' field)
        pk: Primary key of the record
        expected_version: Version the caller expects

    Returns:
        The locked model instance

    Raises:
        StaleRecordError: If version doesn't match (concurrent modification)
        NotFoundError: If record doesn't exist

    Example:
        with transaction.atomic():
            application = check_version(JobApplication, app_id, expected_version=3)
            application.hire()
            application.save()  # Version auto-increments to 4
    """
    with transaction.atomic():
        instance = (
            model_class.objects.select_for_update()
            .filter(pk=pk, version=expected_version)
            .first()
        )

        if instance is None:
            current = model_class.objects.filter(pk=pk).values_list("version", flat=True).first()
            if current is None:
                raise _not_found(model_class, pk)

            model_name = model_class.__name__
            raise StaleRecordError(
                f"{model_name} {pk} has been modified "
                f"(expected version {expected_version}, current {current})",
                details={
                    "pk": str(pk),
                    "expected_version": expected_version,
                    "current_version": current,
                },
            )

        return instance


__all__ = [
    "check_version",
    "lock_row",
]
