"""
Base service layer patterns for business logic encapsulation.

This module provides:
- ServiceResult: Result wrapper for operations whose failure is expected
- BaseService: Base class with a per-service logger and transaction helper

Pattern Comparison:
    - ServiceResult: Expected outcomes a caller branches on (webhook
      handlers report "handled" / "not handled" this way)
    - Exceptions (core.exceptions): Precondition failures that abort the
      operation and map to an HTTP status

Usage:
    from core.services import BaseService, ServiceResult

    class JobHiringService(BaseService):
        @classmethod
        def hire(cls, user, application_id):
            with cls.atomic():
                ...
            cls.get_logger().info("Application hired")

    def handle_checkout_completed(webhook_event) -> ServiceResult:
        if not application_id:
            return ServiceResult.failure("Missing application_id", "INVALID_WEBHOOK_PAYLOAD")
        return ServiceResult.success(application)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

    from core.exceptions import BaseApplicationError

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful
        error: Error message if failed
        error_code: Machine-readable error code
        errors: Field-level errors for validation failures
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """Create a successful result."""
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """Create a failed result."""
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        error_code: str | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result from a caught exception.

        Application errors keep their own error_code; anything else falls
        back to the exception class name.
        """
        code = error_code or getattr(exc, "error_code", None)
        message = getattr(exc, "message", None) or str(exc)
        return cls(
            success=False,
            error=message,
            error_code=code or exc.__class__.__name__.upper(),
        )

    def to_response(self) -> dict[str, Any]:
        """Convert to an API response body."""
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "success": False,
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for stateless service classes.

    Services expose classmethods, keep no instance state, raise
    core.exceptions for precondition failures and use ServiceResult where
    the caller is expected to branch on the outcome.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Return a logger named after the service class."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Run the enclosed block in a database transaction.

        Thin wrapper around transaction.atomic() that makes transaction
        boundaries explicit in service code.
        """
        with transaction.atomic():
            yield

    @classmethod
    def handle_exception(
        cls,
        exc: BaseApplicationError | Exception,
        context: str = "",
        log_level: int = logging.ERROR,
    ) -> ServiceResult:
        """
        Log an exception and convert it to a failed ServiceResult.

        Example:
            try:
                machine.confirm_deposit_paid(application_id)
            except BaseApplicationError as e:
                return cls.handle_exception(e, "deposit confirmation", logging.WARNING)
        """
        message = f"{context}: {exc}" if context else str(exc)
        cls.get_logger().log(
            log_level,
            message,
            exc_info=log_level >= logging.ERROR,
        )
        return ServiceResult.from_exception(exc)
