"""
Authentication service for password login and token exchange.

Handles the business logic for:
- Self-service registration
- Email/password login
- Refresh-token exchange
- Password changes

Security:
- Unknown email and wrong password produce the same error
- Deactivated users cannot log in or refresh
- Refresh tokens are only accepted where a refresh token is expected
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from backend.src.models import User, UserRole
from backend.src.services.exceptions import AuthenticationError, NotFoundError, ValidationError
from backend.src.services.token_service import REFRESH_TOKEN_TYPE, TokenService
from backend.src.services.user_service import UserService
from backend.src.utils.logging_config import get_logger
from backend.src.utils.passwords import verify_password


logger = get_logger("auth")


@dataclass
class AuthResult:
    """
    Result of a successful authentication.

    Attributes:
        user: Authenticated user
        access_token: Short-lived bearer token
        refresh_token: Long-lived token for /auth/refresh
        expires_in: Access token lifetime in seconds
    """

    user: User
    access_token: str
    refresh_token: str
    expires_in: int


class AuthService:
    """
    Service for password authentication.

    Usage:
        >>> service = AuthService(db_session, TokenService.from_settings(settings))
        >>> result = service.login("jane@example.com", "correct-horse")
        >>> result.access_token
    """

    def __init__(self, db: Session, token_service: TokenService):
        self.db = db
        self.tokens = token_service
        self.users = UserService(db)

    def _issue(self, user: User) -> AuthResult:
        return AuthResult(
            user=user,
            access_token=self.tokens.create_access_token(user),
            refresh_token=self.tokens.create_refresh_token(user),
            expires_in=int(self.tokens.access_expires.total_seconds()),
        )

    def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: UserRole = UserRole.CLIENT,
        company: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> AuthResult:
        """
        Create an account and sign it in.

        Raises:
            ValidationError: If ADMIN is requested
            ConflictError: If the email is taken
        """
        if role == UserRole.ADMIN:
            raise ValidationError("Cannot self-register as ADMIN", field="role")

        user = self.users.create(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=role,
            company=company,
            phone=phone,
        )
        user = self.users.record_login(user)
        logger.info(f"Registered user {user.email} ({user.guid})")
        return self._issue(user)

    def login(self, email: str, password: str) -> AuthResult:
        """
        Authenticate with email and password.

        Raises:
            AuthenticationError: Bad credentials or deactivated account
        """
        user = self.users.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for {email}")
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            logger.warning(f"Login refused for deactivated user {user.guid}")
            raise AuthenticationError("User account is deactivated")

        user = self.users.record_login(user)
        logger.info(f"User logged in: {user.email} ({user.guid})")
        return self._issue(user)

    def refresh(self, refresh_token: str) -> AuthResult:
        """
        Exchange a refresh token for a fresh token pair.

        Raises:
            AuthenticationError: Invalid/expired token, unknown or inactive user
        """
        claims = self.tokens.verify_token(refresh_token, expected_type=REFRESH_TOKEN_TYPE)
        if not claims:
            raise AuthenticationError("Invalid or expired refresh token")

        try:
            user = self.users.get_by_guid(claims.user_guid)
        except NotFoundError:
            raise AuthenticationError("Invalid or expired refresh token")

        if not user.is_active:
            raise AuthenticationError("User account is deactivated")

        return self._issue(user)

    def change_password(self, user: User, current_password: str, new_password: str) -> User:
        """
        Change a user's password after re-checking the current one.

        Raises:
            AuthenticationError: Current password is wrong
            ValidationError: New password too short
        """
        if not verify_password(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")
        return self.users.set_password(user, new_password)
