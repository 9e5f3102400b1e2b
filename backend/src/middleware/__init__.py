"""
Middleware components for the Event Planner CRM backend.

This module provides:
- AuthContext: Dataclass describing the authenticated caller
- get_auth_context / require_auth: Dependencies requiring a valid token
- require_roles: Role-gating dependency factory
"""

from backend.src.middleware.auth import (
    AuthContext,
    get_auth_context,
    get_optional_auth_context,
    require_auth,
    require_roles,
)

__all__ = [
    "AuthContext",
    "get_auth_context",
    "get_optional_auth_context",
    "require_auth",
    "require_roles",
]
