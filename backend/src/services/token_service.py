"""
Token service for signing and verifying session tokens.

Handles:
- Access token generation (short-lived, sent as Bearer header or cookie)
- Refresh token generation (long-lived, exchanged for a new access token)
- Token verification with type checking

Design:
- Tokens are HS256 JWTs signed with JWT_SECRET_KEY
- Subject is the user GUID; role is embedded for logging only and is
  re-read from the database on every request
- Verification never raises; callers get None for any bad token
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import jwt, JWTError

from backend.src.models import User
from backend.src.utils.logging_config import get_logger


logger = get_logger("auth")


TOKEN_ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass
class TokenClaims:
    """
    Verified claims of a session token.

    Attributes:
        user_guid: Subject (usr_xxx)
        role: Role at signing time
        token_type: "access" or "refresh"
        expires_at: Expiry timestamp (UTC)
    """

    user_guid: str
    role: Optional[str]
    token_type: str
    expires_at: datetime


class TokenService:
    """
    Service for issuing and verifying session tokens.

    Usage:
        >>> service = TokenService(settings.jwt_secret_key)
        >>> token = service.create_access_token(user)
        >>> claims = service.verify_token(token)
        >>> if claims:
        ...     print(claims.user_guid)
    """

    def __init__(
        self,
        jwt_secret: str,
        access_expires: timedelta = timedelta(hours=168),
        refresh_expires: timedelta = timedelta(days=30),
    ):
        if not jwt_secret:
            raise ValueError("JWT secret is not configured")
        self.jwt_secret = jwt_secret
        self.access_expires = access_expires
        self.refresh_expires = refresh_expires

    @classmethod
    def from_settings(cls, settings) -> "TokenService":
        return cls(
            settings.jwt_secret_key,
            access_expires=timedelta(hours=settings.jwt_expires_in_hours),
            refresh_expires=timedelta(days=settings.jwt_refresh_expires_in_days),
        )

    def _encode(self, user: User, token_type: str, lifetime: timedelta) -> str:
        now = datetime.utcnow()
        payload: Dict[str, Any] = {
            "sub": user.guid,
            "role": user.role.value if user.role else None,
            "type": token_type,
            "iat": now,
            "exp": now + lifetime,
        }
        return jwt.encode(payload, self.jwt_secret, algorithm=TOKEN_ALGORITHM)

    def create_access_token(self, user: User) -> str:
        return self._encode(user, ACCESS_TOKEN_TYPE, self.access_expires)

    def create_refresh_token(self, user: User) -> str:
        return self._encode(user, REFRESH_TOKEN_TYPE, self.refresh_expires)

    def verify_token(
        self,
        token: str,
        expected_type: str = ACCESS_TOKEN_TYPE,
    ) -> Optional[TokenClaims]:
        """
        Verify a token's signature, expiry and type.

        Args:
            token: Encoded JWT
            expected_type: Token type the caller accepts

        Returns:
            TokenClaims if valid, None if malformed/expired/wrong key/wrong type
        """
        if not token:
            return None
        try:
            payload = jwt.decode(token, self.jwt_secret, algorithms=[TOKEN_ALGORITHM])
        except JWTError as e:
            logger.warning(f"Token verification failed: {e}")
            return None

        if payload.get("type") != expected_type:
            logger.warning(
                f"Token verification failed: expected {expected_type} token, "
                f"got {payload.get('type')}"
            )
            return None

        subject = payload.get("sub")
        if not subject:
            logger.warning("Token verification failed: missing subject")
            return None

        return TokenClaims(
            user_guid=subject,
            role=payload.get("role"),
            token_type=payload["type"],
            expires_at=datetime.utcfromtimestamp(payload["exp"]),
        )
