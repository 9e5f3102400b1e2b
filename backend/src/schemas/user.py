"""
User Pydantic schemas for API request/response validation.

Covers user administration (create/update by admins and planners),
self-service profile updates and preference documents.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator

from backend.src.models import UserRole
from backend.src.schemas.common import serialize_utc
from backend.src.utils.passwords import MIN_PASSWORD_LENGTH


def normalize_email(v: str) -> str:
    v = v.strip().lower()
    if "@" not in v or v.startswith("@") or v.endswith("@"):
        raise ValueError("Invalid email format")
    return v


# ============================================================================
# Request Schemas
# ============================================================================


class UserCreate(BaseModel):
    """Schema for creating a user on someone's behalf (admin or planner)."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: UserRole = Field(default=UserRole.CLIENT)
    phone: Optional[str] = Field(default=None, max_length=50)
    company: Optional[str] = Field(default=None, max_length=255)
    job_title: Optional[str] = Field(default=None, max_length=255)
    bio: Optional[str] = None
    manager_guid: Optional[str] = Field(default=None, description="Manager GUID (usr_xxx)")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "jane@example.com",
                "password": "correct-horse-battery",
                "first_name": "Jane",
                "last_name": "Doe",
                "role": "CLIENT",
                "company": "Acme",
            }
        }
    }


class UserUpdate(BaseModel):
    """
    Schema for updating a user.

    role and is_active may only be changed by administrators; the route
    rejects them for self-service updates.
    """

    email: Optional[str] = Field(default=None, min_length=3, max_length=255)
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=50)
    bio: Optional[str] = None
    company: Optional[str] = Field(default=None, max_length=255)
    job_title: Optional[str] = Field(default=None, max_length=255)
    avatar_url: Optional[str] = None
    manager_guid: Optional[str] = None
    preferences: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Partial preference document, merged into the stored one"
    )
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return normalize_email(v) if v is not None else v


# ============================================================================
# Response Schemas
# ============================================================================


class UserResponse(BaseModel):
    """Response schema for a single user. Never exposes the password hash."""

    guid: str = Field(..., description="User GUID (usr_xxx)")
    email: str
    first_name: str
    last_name: str
    full_name: str
    role: UserRole
    is_active: bool
    email_verified: bool
    avatar_url: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    company: Optional[str] = None
    job_title: Optional[str] = None
    manager_guid: Optional[str] = None
    preferences: Dict[str, Any] = Field(default_factory=dict)
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_serializer("last_login_at", "created_at", "updated_at")
    @classmethod
    def serialize_datetime_utc(cls, v: Optional[datetime]) -> Optional[str]:
        return serialize_utc(v)

    model_config = {
        "from_attributes": True,
        "json_schema_extra": {
            "example": {
                "guid": "usr_01hgw2bbg0000000000000001",
                "email": "jane@example.com",
                "first_name": "Jane",
                "last_name": "Doe",
                "full_name": "Jane Doe",
                "role": "PLANNER",
                "is_active": True,
                "email_verified": False,
            }
        },
    }


class UserListResponse(BaseModel):
    users: List[UserResponse]
    total: int
