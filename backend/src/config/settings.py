"""
Application settings configuration for the Event Planner CRM.

Centralized settings loaded from environment variables (and an optional
.env file).
"""

from functools import lru_cache
from typing import List

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment Variables:
        CRM_ENV: Environment name (development, production, test)
        JWT_SECRET_KEY: Secret key for signing access/refresh tokens
        JWT_EXPIRES_IN_HOURS: Access token lifetime in hours (default: 168)
        JWT_REFRESH_EXPIRES_IN_DAYS: Refresh token lifetime in days (default: 30)
        CORS_ORIGIN / FRONTEND_URL: Allowed browser origin(s), comma-separated
        RATE_LIMIT_WINDOW_MS: Global rate limit window (default: 900000 = 15 min)
        RATE_LIMIT_MAX_REQUESTS: Requests allowed per window per IP (default: 100)
        RATE_LIMIT_STORAGE_URI: Storage backend URI for rate limiting (default: "memory://")
        MAX_FILE_SIZE: Maximum size in bytes of a single uploaded file (default: 10 MB)
        UPLOAD_DIR: Root directory for uploaded files (default: "uploads")
        WS_HEARTBEAT_SECONDS: Idle interval before a heartbeat frame is sent (default: 30)
    """

    environment: str = Field(
        default="development",
        validation_alias="CRM_ENV",
    )

    # JWT settings
    jwt_secret_key: str = Field(
        default="",
        validation_alias="JWT_SECRET_KEY",
        description="Secret key for signing JWT tokens. Must be at least 32 bytes."
    )

    jwt_expires_in_hours: int = Field(
        default=168,
        validation_alias="JWT_EXPIRES_IN_HOURS",
        ge=1,
        le=24 * 90,
    )

    jwt_refresh_expires_in_days: int = Field(
        default=30,
        validation_alias="JWT_REFRESH_EXPIRES_IN_DAYS",
        ge=1,
        le=365,
    )

    cors_origin: str = Field(
        default="http://localhost:5173",
        validation_alias=AliasChoices("CORS_ORIGIN", "FRONTEND_URL"),
        description="Comma-separated list of allowed browser origins"
    )

    # Global request limiter, applied per client IP
    rate_limit_window_ms: int = Field(
        default=15 * 60 * 1000,
        validation_alias="RATE_LIMIT_WINDOW_MS",
        ge=1000,
    )

    rate_limit_max_requests: int = Field(
        default=100,
        validation_alias="RATE_LIMIT_MAX_REQUESTS",
        ge=1,
    )

    rate_limit_storage_uri: str = Field(
        default="memory://",
        validation_alias="RATE_LIMIT_STORAGE_URI",
        description="Storage backend URI for rate limiting counters"
    )

    # Uploads
    max_file_size: int = Field(
        default=10 * 1024 * 1024,
        validation_alias="MAX_FILE_SIZE",
        ge=1,
    )

    upload_dir: str = Field(
        default="uploads",
        validation_alias="UPLOAD_DIR",
    )

    ws_heartbeat_seconds: float = Field(
        default=30.0,
        validation_alias="WS_HEARTBEAT_SECONDS",
        gt=0,
    )

    class Config:
        env_file = ".env"
        extra = "ignore"

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret_key(cls, v: str) -> str:
        """Validate that JWT secret key is sufficiently long."""
        if v and len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters")
        return v

    @property
    def jwt_configured(self) -> bool:
        """Check if JWT is properly configured."""
        return bool(self.jwt_secret_key)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def cors_origins(self) -> List[str]:
        """Allowed origins as a list."""
        return [o.strip() for o in self.cors_origin.split(",") if o.strip()]

    @property
    def default_rate_limit(self) -> str:
        """
        Global limit expressed in slowapi/limits notation.

        Returns:
            e.g. "100 per 900 second"
        """
        seconds = max(1, self.rate_limit_window_ms // 1000)
        return f"{self.rate_limit_max_requests} per {seconds} second"


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get cached application settings instance.

    Returns:
        AppSettings: Configured application settings from environment
    """
    return AppSettings()
