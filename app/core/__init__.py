"""
Core Application - Infrastructure & Base Classes

Generic building blocks used by the domain apps. Nothing here knows about
jobs, payments or notifications.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)
    - VersionedModel: BaseModel with an optimistic locking version field

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes and HTTP status
    - ValidationError, NotFoundError, PermissionDeniedError, ConflictError

Views (import from core.views):
    - health_check: Liveness endpoint for load balancers
"""
