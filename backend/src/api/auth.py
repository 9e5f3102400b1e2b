"""
Authentication API endpoints.

Provides password authentication endpoints:
- POST /auth/register - Self-service sign-up (PLANNER or CLIENT)
- POST /auth/login - Email/password login; sets the httpOnly "token" cookie
- POST /auth/logout - Clear the cookie
- POST /auth/refresh - Exchange a refresh token for a new pair
- GET /auth/me - Current user
- PUT /auth/password - Change password

Rate Limiting:
- /auth/register, /auth/login, /auth/refresh: 10 requests per minute per IP
  on top of the global limit
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from backend.src.config.settings import get_settings
from backend.src.db.database import get_db
from backend.src.middleware.auth import TOKEN_COOKIE_NAME, AuthContext, require_auth
from backend.src.middleware.rate_limit import AUTH_RATE_LIMIT, limiter
from backend.src.schemas.auth import (
    LoginRequest,
    PasswordChangeRequest,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
)
from backend.src.schemas.common import MessageResponse
from backend.src.schemas.user import UserResponse
from backend.src.services.auth_service import AuthResult, AuthService
from backend.src.services.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from backend.src.services.token_service import TokenService
from backend.src.services.user_service import UserService
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(prefix="/auth", tags=["Authentication"])


# ============================================================================
# Dependencies
# ============================================================================


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Create AuthService with the configured token service."""
    settings = get_settings()
    if not settings.jwt_configured:
        logger.error("JWT_SECRET_KEY is not configured; authentication is unavailable")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication is not configured",
        )
    return AuthService(db=db, token_service=TokenService.from_settings(settings))


def _token_response(result: AuthResult, response: Response) -> TokenResponse:
    settings = get_settings()
    response.set_cookie(
        key=TOKEN_COOKIE_NAME,
        value=result.access_token,
        max_age=result.expires_in,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return TokenResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        expires_in=result.expires_in,
        user=UserResponse.model_validate(result.user),
    )


# ============================================================================
# API Endpoints
# ============================================================================


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
)
@limiter.limit(AUTH_RATE_LIMIT)
async def register(
    request: Request,
    response: Response,
    body: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """
    Create a PLANNER or CLIENT account and sign it in.

    Raises:
        400: Invalid data
        409: Email already registered
    """
    try:
        result = auth_service.register(
            email=body.email,
            password=body.password,
            first_name=body.first_name,
            last_name=body.last_name,
            role=body.role,
            company=body.company,
            phone=body.phone,
        )
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    return _token_response(result, response)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Log in with email and password",
)
@limiter.limit(AUTH_RATE_LIMIT)
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """
    Authenticate and set the httpOnly session cookie.

    Raises:
        401: Invalid credentials or deactivated account
    """
    try:
        result = auth_service.login(body.email, body.password)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    return _token_response(result, response)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Log out",
)
async def logout(response: Response) -> MessageResponse:
    """Clear the session cookie. Bearer tokens remain valid until they expire."""
    response.delete_cookie(TOKEN_COOKIE_NAME)
    return MessageResponse(message="Logged out successfully")


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh tokens",
)
@limiter.limit(AUTH_RATE_LIMIT)
async def refresh(
    request: Request,
    response: Response,
    body: RefreshRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    try:
        result = auth_service.refresh(body.refresh_token)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    return _token_response(result, response)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
)
async def get_me(
    ctx: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
) -> UserResponse:
    try:
        user = UserService(db).get_by_id(ctx.user_id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.model_validate(user)


@router.put(
    "/password",
    response_model=MessageResponse,
    summary="Change password",
)
async def change_password(
    body: PasswordChangeRequest,
    ctx: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """
    Raises:
        400: Current password is wrong or new password is too short
    """
    user = UserService(db).get_by_id(ctx.user_id)
    try:
        auth_service.change_password(user, body.current_password, body.new_password)
    except (AuthenticationError, ValidationError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    return MessageResponse(message="Password updated successfully")
