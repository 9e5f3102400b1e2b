"""
Custom exceptions for service layer.

Provides specific exception types for business logic errors
that can be translated to appropriate HTTP responses.
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base exception for service layer errors."""
    pass


class NotFoundError(ServiceError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier} not found")


class ConflictError(ServiceError):
    """Raised when an operation conflicts with existing state (e.g. duplicate email)."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class ValidationError(ServiceError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class InvalidTransitionError(ValidationError):
    """Raised when a status change is not allowed from the current status."""

    def __init__(self, resource: str, current: str, requested: str):
        self.resource = resource
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot change {resource} status from {current} to {requested}",
            field="status",
        )


class PermissionDeniedError(ServiceError):
    """Raised when the acting user may not touch the requested record."""

    def __init__(self, message: str = "Not authorized to access this resource"):
        self.message = message
        super().__init__(message)


class AuthenticationError(ServiceError):
    """Raised when credentials or tokens are rejected."""

    def __init__(self, message: str = "Invalid credentials"):
        self.message = message
        super().__init__(message)
