"""
Authentication middleware and dependencies for API routes.

Provides:
- AuthContext: Dataclass describing the authenticated caller
- get_auth_context: FastAPI dependency that requires a valid bearer token
- get_optional_auth_context: Same, but returns None for anonymous callers
- require_auth: Semantic alias for get_auth_context
- require_roles: Dependency factory that restricts a route to a role set
- authenticate_token: Token → AuthContext resolution
- verify_caller: authenticate_token plus per-IP failure tracking, shared
  with the WebSocket endpoint

Tokens are read from the Authorization header ("Bearer <token>") first,
then from the "token" cookie set at login.
"""

import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from backend.src.config.settings import get_settings
from backend.src.db.database import get_db
from backend.src.models import User, UserRole
from backend.src.services.guid import GuidService
from backend.src.services.token_service import TokenService
from backend.src.utils.client_ip import get_client_ip
from backend.src.utils.logging_config import get_logger


logger = get_logger("auth")

TOKEN_COOKIE_NAME = "token"


# ---------------------------------------------------------------------------
# Per-IP failed token validation tracking
# ---------------------------------------------------------------------------
# In-memory tracker for failed token validations. Limits brute force
# attempts against bearer authentication without requiring Redis.
# ---------------------------------------------------------------------------
_TOKEN_FAILURE_WINDOW = 300  # 5 minutes
_TOKEN_FAILURE_WARN = 5  # log warning after this many failures
_TOKEN_FAILURE_BLOCK = 20  # block IP after this many failures
_TOKEN_FAILURE_BLOCK_DURATION = 300  # block for 5 minutes

_token_failures: Dict[str, List[float]] = defaultdict(list)
_token_blocked: Dict[str, float] = {}


def _record_token_failure(ip: str) -> None:
    now = time.monotonic()
    cutoff = now - _TOKEN_FAILURE_WINDOW
    _token_failures[ip] = [t for t in _token_failures[ip] if t > cutoff] + [now]

    count = len(_token_failures[ip])
    if count >= _TOKEN_FAILURE_BLOCK:
        _token_blocked[ip] = now
        logger.warning(
            "IP %s has %d failed token validations in the last %d minutes, blocking for %ds",
            ip, count, _TOKEN_FAILURE_WINDOW // 60, _TOKEN_FAILURE_BLOCK_DURATION,
        )
    elif count >= _TOKEN_FAILURE_WARN:
        logger.warning(
            "IP %s has %d failed token validations in the last %d minutes",
            ip, count, _TOKEN_FAILURE_WINDOW // 60,
        )


def _is_token_blocked(ip: str) -> bool:
    blocked_at = _token_blocked.get(ip)
    if blocked_at is None:
        return False
    if time.monotonic() - blocked_at > _TOKEN_FAILURE_BLOCK_DURATION:
        del _token_blocked[ip]
        _token_failures.pop(ip, None)
        return False
    return True


def _clear_token_failures(ip: str) -> None:
    _token_failures.pop(ip, None)
    _token_blocked.pop(ip, None)


def reset_token_failures() -> None:
    """Forget all failure tracking (used by tests)."""
    _token_failures.clear()
    _token_blocked.clear()


@dataclass
class AuthContext:
    """
    The authenticated caller of a request or WebSocket connection.

    Values are copied out of the User row so the context stays valid after
    the database session that produced it is closed.

    Attributes:
        user_id: Internal user ID for database queries
        user_guid: External GUID (usr_xxx)
        email: Login email
        full_name: Display name
        role: PLANNER, CLIENT or ADMIN
        company: Company name (drives the company channel), if any
    """

    user_id: int
    user_guid: str
    email: str
    full_name: str
    role: UserRole
    company: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_planner(self) -> bool:
        return self.role == UserRole.PLANNER

    @property
    def is_client(self) -> bool:
        return self.role == UserRole.CLIENT

    @property
    def is_staff(self) -> bool:
        """Planners and administrators."""
        return self.role in (UserRole.ADMIN, UserRole.PLANNER)

    @property
    def client_scope(self) -> Optional[int]:
        """User id to restrict record queries to; None for staff."""
        return self.user_id if self.is_client else None

    @classmethod
    def from_user(cls, user: User) -> "AuthContext":
        return cls(
            user_id=user.id,
            user_guid=user.guid,
            email=user.email,
            full_name=user.full_name,
            role=user.role,
            company=user.company,
        )


class TokenRejected(Exception):
    """Raised by authenticate_token with the reason a token was refused."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class TokenBlocked(TokenRejected):
    """Raised by verify_caller while the caller's IP is blocked."""

    def __init__(self):
        super().__init__("Too many failed authentication attempts. Try again later.")


def extract_token(request: Request) -> Optional[str]:
    """Bearer header first, then the login cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get(TOKEN_COOKIE_NAME) or None


def authenticate_token(token: Optional[str], db: Session) -> AuthContext:
    """
    Resolve a bearer token to the caller's context.

    Raises:
        TokenRejected: Missing, malformed, expired or wrong-key token,
            unknown user or deactivated user
    """
    if not token:
        raise TokenRejected("Not authorized to access this route")

    settings = get_settings()
    if not settings.jwt_configured:
        logger.error("JWT_SECRET_KEY is not configured; rejecting token")
        raise TokenRejected("Not authorized to access this route")

    claims = TokenService.from_settings(settings).verify_token(token)
    if not claims:
        raise TokenRejected("Not authorized to access this route")

    try:
        user_uuid = GuidService.parse_identifier(claims.user_guid, "usr")
    except ValueError:
        raise TokenRejected("Not authorized to access this route")

    user = db.query(User).filter(User.uuid == user_uuid).first()
    if not user:
        raise TokenRejected("User not found")
    if not user.is_active:
        raise TokenRejected("User account is deactivated")

    return AuthContext.from_user(user)


def verify_caller(token: str, db: Session, client_ip: str) -> AuthContext:
    """
    authenticate_token with per-IP failure tracking.

    Shared by the HTTP dependencies and the WebSocket endpoint.

    Raises:
        TokenBlocked: The IP has too many recent failures
        TokenRejected: The token was refused (the failure is recorded)
    """
    if _is_token_blocked(client_ip):
        logger.warning("Rejecting token validation from blocked IP %s", client_ip)
        raise TokenBlocked()

    try:
        ctx = authenticate_token(token, db)
    except TokenRejected as e:
        _record_token_failure(client_ip)
        logger.info(f"Authentication failed from {client_ip}: {e.reason}")
        raise

    _clear_token_failures(client_ip)
    return ctx


async def get_auth_context(
    request: Request,
    db: Session = Depends(get_db),
) -> AuthContext:
    """
    FastAPI dependency that authenticates the request.

    Raises:
        HTTPException 401: No token, invalid/expired token, unknown or
            deactivated user
        HTTPException 429: Caller IP blocked after repeated failures
    """
    client_ip = get_client_ip(request)
    token = extract_token(request)

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized to access this route",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return verify_caller(token, db, client_ip)
    except TokenBlocked as e:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=e.reason,
        )
    except TokenRejected as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.reason,
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_optional_auth_context(
    request: Request,
    db: Session = Depends(get_db),
) -> Optional[AuthContext]:
    """Return the caller's context, or None when the request is anonymous or the token is bad."""
    token = extract_token(request)
    if not token:
        return None
    try:
        return authenticate_token(token, db)
    except TokenRejected:
        return None


async def require_auth(
    ctx: AuthContext = Depends(get_auth_context),
) -> AuthContext:
    """
    FastAPI dependency that requires authentication.

    Example:
        @router.get("/tasks")
        async def list_tasks(ctx: AuthContext = Depends(require_auth)):
            ...
    """
    return ctx


def require_roles(*roles: UserRole) -> Callable:
    """
    Build a dependency that only admits callers holding one of ``roles``.

    The check runs during dependency resolution, so the route body never
    executes for a rejected caller.

    Example:
        @router.post("/vendors")
        async def create_vendor(
            ctx: AuthContext = Depends(require_roles(UserRole.ADMIN, UserRole.PLANNER)),
        ):
            ...

    Raises:
        HTTPException 401: Not authenticated
        HTTPException 403: Role not in the allowed set
    """
    allowed = frozenset(roles)

    async def _check_role(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if ctx.role not in allowed:
            logger.warning(
                f"User {ctx.user_guid} with role {ctx.role.value} denied; "
                f"requires one of {sorted(r.value for r in allowed)}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User role {ctx.role.value} is not authorized to access this route",
            )
        return ctx

    return _check_role


require_admin = require_roles(UserRole.ADMIN)
require_staff = require_roles(UserRole.ADMIN, UserRole.PLANNER)


__all__ = [
    "AuthContext",
    "TokenBlocked",
    "TokenRejected",
    "TOKEN_COOKIE_NAME",
    "authenticate_token",
    "extract_token",
    "verify_caller",
    "get_auth_context",
    "get_optional_auth_context",
    "require_auth",
    "require_roles",
    "require_admin",
    "require_staff",
    "reset_token_failures",
]
