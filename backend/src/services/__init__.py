"""
Service layer for business logic.

Record services are imported from their own modules by the API layer;
this package only re-exports the shared exception types and GUID helpers.
"""

from backend.src.services.exceptions import (
    ServiceError,
    NotFoundError,
    ConflictError,
    ValidationError,
    InvalidTransitionError,
    PermissionDeniedError,
    AuthenticationError,
)
from backend.src.services.guid import GuidService

__all__ = [
    "ServiceError",
    "NotFoundError",
    "ConflictError",
    "ValidationError",
    "InvalidTransitionError",
    "PermissionDeniedError",
    "AuthenticationError",
    "GuidService",
]
