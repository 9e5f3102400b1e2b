"""
User service for managing CRM users.

Provides business logic for creating, retrieving, updating and removing
users, plus the lookups the authentication layer relies on.

Design:
- Email is globally unique and stored lower-cased
- Passwords are only ever stored as PBKDF2 hashes
- Preference updates merge shallowly into the stored document
- Clients are users with role CLIENT; there is no separate client table
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.src.models import User, UserRole
from backend.src.models.user import default_preferences
from backend.src.services.exceptions import ConflictError, NotFoundError, ValidationError
from backend.src.services.guid import GuidService
from backend.src.utils.logging_config import get_logger
from backend.src.utils.passwords import MIN_PASSWORD_LENGTH, hash_password


logger = get_logger("services")


# Fields a user may change on their own record
SELF_EDITABLE_FIELDS = frozenset({
    "email", "first_name", "last_name", "phone", "bio", "company",
    "job_title", "avatar_url", "preferences",
})


class UserService:
    """
    Service for managing users.

    Usage:
        >>> service = UserService(db_session)
        >>> user = service.create(
        ...     email="jane@example.com",
        ...     password="correct-horse",
        ...     first_name="Jane",
        ...     last_name="Doe",
        ...     role=UserRole.PLANNER,
        ... )
        >>> print(user.guid)  # usr_01hgw2bbg...
    """

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: UserRole = UserRole.CLIENT,
        phone: Optional[str] = None,
        company: Optional[str] = None,
        job_title: Optional[str] = None,
        bio: Optional[str] = None,
        manager_guid: Optional[str] = None,
    ) -> User:
        """
        Create a new user.

        Raises:
            ConflictError: If email already exists
            ValidationError: If password is too short
            NotFoundError: If manager_guid does not resolve
        """
        email = email.strip().lower()
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                field="password",
            )

        if self.get_by_email(email):
            raise ConflictError(f"User with email '{email}' already exists", field="email")

        manager = self.get_by_guid(manager_guid) if manager_guid else None

        try:
            user = User(
                email=email,
                password_hash=hash_password(password),
                first_name=first_name.strip(),
                last_name=last_name.strip(),
                role=role,
                phone=phone,
                company=company,
                job_title=job_title,
                bio=bio,
                manager_id=manager.id if manager else None,
                preferences=default_preferences(),
            )
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Failed to create user '{email}': {e}")
            raise ConflictError(f"User with email '{email}' already exists", field="email")

        logger.info(f"Created user: {user.email} ({user.guid}) role={user.role.value}")
        return user

    def get_by_guid(self, guid: str) -> User:
        """
        Get a user by GUID.

        Raises:
            NotFoundError: If the GUID is malformed or no such user exists
        """
        try:
            uuid_value = GuidService.parse_identifier(guid, "usr")
        except ValueError:
            raise NotFoundError("User", guid)

        user = self.db.query(User).filter(User.uuid == uuid_value).first()
        if not user:
            raise NotFoundError("User", guid)
        return user

    def get_by_id(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User", user_id)
        return user

    def get_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        return (
            self.db.query(User)
            .filter(User.email == email.strip().lower())
            .first()
        )

    def list(
        self,
        role: Optional[UserRole] = None,
        active_only: bool = False,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[User]:
        """List users, optionally filtered by role, active flag and a name/email search term."""
        query = self._filtered(role, active_only, search)
        return (
            query.order_by(User.last_name.asc(), User.first_name.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count(
        self,
        role: Optional[UserRole] = None,
        active_only: bool = False,
        search: Optional[str] = None,
    ) -> int:
        return self._filtered(role, active_only, search).count()

    def _filtered(self, role, active_only, search):
        query = self.db.query(User)
        if role:
            query = query.filter(User.role == role)
        if active_only:
            query = query.filter(User.is_active.is_(True))
        if search:
            pattern = f"%{search.strip().lower()}%"
            query = query.filter(or_(
                func.lower(User.email).like(pattern),
                func.lower(User.first_name).like(pattern),
                func.lower(User.last_name).like(pattern),
                func.lower(User.company).like(pattern),
            ))
        return query

    def update(self, guid: str, **updates: Any) -> User:
        """
        Update an existing user.

        ``preferences`` is merged into the stored document; ``manager_guid``
        is resolved to the manager's id; any other key is set as-is.

        Raises:
            NotFoundError: If user (or manager) not found
            ConflictError: If the new email is taken
            ValidationError: If a user is made their own manager
        """
        user = self.get_by_guid(guid)

        if "email" in updates and updates["email"]:
            email = updates.pop("email").strip().lower()
            if email != user.email:
                existing = self.get_by_email(email)
                if existing:
                    raise ConflictError(f"User with email '{email}' already exists", field="email")
                user.email = email

        if "preferences" in updates:
            patch = updates.pop("preferences")
            if patch is not None:
                user.preferences = self.merge_preferences(user.preferences, patch)

        if "manager_guid" in updates:
            manager_guid = updates.pop("manager_guid")
            if manager_guid:
                manager = self.get_by_guid(manager_guid)
                if manager.id == user.id:
                    raise ValidationError("A user cannot manage themselves", field="manager_guid")
                user.manager_id = manager.id
            else:
                user.manager_id = None

        for field, value in updates.items():
            setattr(user, field, value)

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Failed to update user {guid}: {e}")
            raise ConflictError("User update conflicts with an existing record")
        self.db.refresh(user)
        logger.info(f"Updated user: {user.email} ({user.guid})")
        return user

    @staticmethod
    def merge_preferences(current: Optional[Dict[str, Any]], patch: Dict[str, Any]) -> Dict[str, Any]:
        """
        Shallow-merge a preference patch into the stored document.

        Nested dictionaries one level deep (e.g. ``notifications``) are
        merged key by key; everything else is replaced.
        """
        merged = dict(current or default_preferences())
        for key, value in patch.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = {**merged[key], **value}
            else:
                merged[key] = value
        return merged

    def set_password(self, user: User, new_password: str) -> User:
        if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                field="new_password",
            )
        user.password_hash = hash_password(new_password)
        self.db.commit()
        logger.info(f"Password changed for user {user.guid}")
        return user

    def record_login(self, user: User) -> User:
        user.last_login_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(user)
        return user

    def verify_email(self, guid: str) -> User:
        user = self.get_by_guid(guid)
        user.email_verified = True
        user.email_verified_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Verified email for user {user.guid}")
        return user

    def delete(self, guid: str) -> None:
        """
        Delete a user.

        Raises:
            NotFoundError: If user not found
            ConflictError: If the user still owns events or payments as client
        """
        user = self.get_by_guid(guid)
        try:
            self.db.delete(user)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Refused to delete user {guid}: {e}")
            raise ConflictError(
                f"User {guid} is referenced by events or payments and cannot be deleted"
            )
        logger.info(f"Deleted user {guid}")
