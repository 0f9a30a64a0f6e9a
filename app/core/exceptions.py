"""
Base exception classes for application-wide error handling.

Every domain error raised by a service derives from BaseApplicationError,
which carries a human-readable message, a machine-readable error code, a
details dict and the HTTP status the API layer should answer with.

Exception Hierarchy:
    BaseApplicationError (500)
    ├── ValidationError (400) - Malformed input or business rule violation
    ├── NotFoundError (404) - Resource lookup failed
    ├── PermissionDeniedError (403) - Caller is not allowed to act
    └── ConflictError (409) - Resource is in an incompatible state

Usage:
    from core.exceptions import ConflictError, NotFoundError

    raise NotFoundError(
        f"Opportunity {opportunity_id} not found",
        error_code="OPPORTUNITY_NOT_FOUND",
        details={"opportunity_id": str(opportunity_id)},
    )

    # In a DRF view
    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=e.http_status)

Note:
    DRF still owns request-level errors (authentication, serializer
    validation). These classes are for the service layer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (ids, amounts, current state)
        http_status: Status code used when rendered by an API view
    """

    default_error_code: str = "APPLICATION_ERROR"
    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to a response payload.

        Example:
            {
                "error": "Application already hired",
                "error_code": "ALREADY_HIRED",
                "details": {"status": "hired", "total_amount": 10000}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input fails service-level validation.

    Example:
        if amount < 0:
            raise ValidationError(
                "Amount must not be negative",
                error_code="INVALID_AMOUNT",
                details={"amount": amount},
            )
    """

    default_error_code: str = "VALIDATION_ERROR"
    http_status: int = 400


class NotFoundError(BaseApplicationError):
    """Raised when a single-resource lookup finds nothing."""

    default_error_code: str = "NOT_FOUND"
    http_status: int = 404


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the caller is authenticated but not authorized.

    Authentication failures (missing or invalid token) stay with DRF's
    NotAuthenticated / AuthenticationFailed.
    """

    default_error_code: str = "PERMISSION_DENIED"
    http_status: int = 403


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with the current resource state.

    Covers duplicates, concurrent modification and transitions attempted
    from a state that no longer allows them.
    """

    default_error_code: str = "CONFLICT"
    http_status: int = 409

