"""
Users API endpoints.

Provides endpoints for:
- Listing users (administrators)
- Getting a user (administrators, or the user themselves)
- Creating users on someone's behalf (administrators)
- Updating users (administrators; users may edit their own profile but not
  their role or active flag)
- Deleting users (administrators, never themselves)
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.middleware.auth import AuthContext, require_admin, require_auth
from backend.src.models import UserRole
from backend.src.schemas.common import DeleteResponse
from backend.src.schemas.user import UserCreate, UserListResponse, UserResponse, UserUpdate
from backend.src.services.exceptions import ConflictError, NotFoundError, ValidationError
from backend.src.services.user_service import SELF_EDITABLE_FIELDS, UserService
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Create UserService instance with database session."""
    return UserService(db=db)


@router.get(
    "",
    response_model=UserListResponse,
    summary="List users",
)
async def list_users(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    active_only: bool = Query(False, description="Only active users"),
    search: Optional[str] = Query(None, description="Match email, name or company"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: AuthContext = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> UserListResponse:
    users = user_service.list(role=role, active_only=active_only, search=search, limit=limit, offset=offset)
    total = user_service.count(role=role, active_only=active_only, search=search)
    return UserListResponse(users=[UserResponse.model_validate(u) for u in users], total=total)


@router.get(
    "/{guid}",
    response_model=UserResponse,
    summary="Get user",
)
async def get_user(
    guid: str,
    ctx: AuthContext = Depends(require_auth),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    if not ctx.is_admin and guid != ctx.user_guid:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to view this user",
        )
    try:
        return UserResponse.model_validate(user_service.get_by_guid(guid))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User {guid} not found")


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
)
async def create_user(
    body: UserCreate,
    ctx: AuthContext = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    try:
        user = user_service.create(**body.model_dump())
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.info(f"User {user.guid} created by {ctx.user_guid}")
    return UserResponse.model_validate(user)


@router.put(
    "/{guid}",
    response_model=UserResponse,
    summary="Update user",
)
async def update_user(
    guid: str,
    body: UserUpdate,
    ctx: AuthContext = Depends(require_auth),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    """
    Administrators may change any field. Other users may only edit their
    own record, and only profile fields.
    """
    updates = body.model_dump(exclude_unset=True)

    if not ctx.is_admin:
        if guid != ctx.user_guid:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to update this user",
            )
        forbidden = sorted(set(updates) - SELF_EDITABLE_FIELDS)
        if forbidden:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Not authorized to change: {', '.join(forbidden)}",
            )

    try:
        user = user_service.update(guid, **updates)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    return UserResponse.model_validate(user)


@router.delete(
    "/{guid}",
    response_model=DeleteResponse,
    summary="Delete user",
)
async def delete_user(
    guid: str,
    ctx: AuthContext = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> DeleteResponse:
    if guid == ctx.user_guid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account",
        )
    try:
        user_service.delete(guid)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User {guid} not found")
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)

    logger.info(f"User {guid} deleted by {ctx.user_guid}")
    return DeleteResponse(guid=guid)
