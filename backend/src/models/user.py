"""
User model for people who can sign in to the CRM.

A user is a planner, a client or an administrator. Clients own events
and payments; planners run events; administrators manage everyone.

Design Rationale:
- Email is globally unique and stored lower-cased
- is_active is the functional toggle for login and live connections
- company (optional) groups users into a shared real-time channel
- preferences is a JSON document merged shallowly on update
"""

import copy
import enum
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, Enum
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin
from backend.src.models.types import JSONBType


class UserRole(enum.Enum):
    """Role of a user; gates the HTTP routes."""
    PLANNER = "PLANNER"
    CLIENT = "CLIENT"
    ADMIN = "ADMIN"


DEFAULT_PREFERENCES: Dict[str, Any] = {
    "notifications": {"email": True, "push": True, "sms": False},
    "dashboard": {"default_view": "overview", "widgets": []},
    "theme": "light",
    "timezone": "UTC",
    "language": "en",
}


def default_preferences() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULT_PREFERENCES)


class User(Base, GuidMixin):
    """
    User model representing a person with CRM access.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid / guid: External identifier (usr_xxx, inherited from GuidMixin)
        email: Login email (unique, lower-cased)
        password_hash: PBKDF2 password hash
        first_name, last_name: Person name
        role: PLANNER, CLIENT or ADMIN
        is_active: Account active status (controls login)
        email_verified / email_verified_at: Verification state
        avatar_url, phone, bio, company, job_title: Profile
        manager_id: Optional FK to another user
        last_login_at: Last successful login timestamp
        preferences: JSON document (notifications, dashboard, theme, ...)
    """

    __tablename__ = "users"

    GUID_PREFIX = "usr"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Identity
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)

    role = Column(
        Enum(UserRole, name="user_role", create_constraint=True),
        default=UserRole.CLIENT,
        nullable=False,
        index=True
    )

    # State
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    email_verified = Column(Boolean, default=False, nullable=False)
    email_verified_at = Column(DateTime, nullable=True)
    last_login_at = Column(DateTime, nullable=True)

    # Profile
    avatar_url = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    bio = Column(Text, nullable=True)
    company = Column(String(255), nullable=True, index=True)
    job_title = Column(String(255), nullable=True)
    manager_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    preferences = Column(JSONBType, default=default_preferences, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    manager = relationship("User", remote_side=[id])

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def manager_guid(self) -> Optional[str]:
        return self.manager.guid if self.manager else None

    @property
    def can_login(self) -> bool:
        return bool(self.is_active)

    def has_role(self, *roles: UserRole) -> bool:
        return self.role in roles

    def __repr__(self) -> str:
        return (
            f"<User("
            f"id={self.id}, "
            f"email='{self.email}', "
            f"role={self.role.value if self.role else None}, "
            f"active={self.is_active}"
            f")>"
        )

    def __str__(self) -> str:
        return self.full_name or self.email
