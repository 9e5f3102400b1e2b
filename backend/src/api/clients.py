"""
Clients API endpoints.

Clients are users with role CLIENT. Planners and administrators manage
them here; the generic /users endpoints stay admin-only.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.middleware.auth import AuthContext, require_staff
from backend.src.models import User, UserRole
from backend.src.schemas.common import DeleteResponse
from backend.src.schemas.event import EventListResponse, EventResponse
from backend.src.schemas.user import UserCreate, UserListResponse, UserResponse, UserUpdate
from backend.src.services.event_service import EventService
from backend.src.services.exceptions import ConflictError, NotFoundError, ValidationError
from backend.src.services.user_service import UserService
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(prefix="/clients", tags=["Clients"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db=db)


def _get_client(user_service: UserService, guid: str) -> User:
    """Resolve a GUID to a CLIENT user or raise 404."""
    try:
        user = user_service.get_by_guid(guid)
    except NotFoundError:
        user = None
    if user is None or user.role != UserRole.CLIENT:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Client {guid} not found")
    return user


@router.get("", response_model=UserListResponse, summary="List clients")
async def list_clients(
    search: Optional[str] = Query(None, description="Match email, name or company"),
    active_only: bool = Query(False),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: AuthContext = Depends(require_staff),
    user_service: UserService = Depends(get_user_service),
) -> UserListResponse:
    clients = user_service.list(
        role=UserRole.CLIENT, active_only=active_only, search=search, limit=limit, offset=offset
    )
    total = user_service.count(role=UserRole.CLIENT, active_only=active_only, search=search)
    return UserListResponse(users=[UserResponse.model_validate(c) for c in clients], total=total)


@router.get("/{guid}", response_model=UserResponse, summary="Get client")
async def get_client(
    guid: str,
    ctx: AuthContext = Depends(require_staff),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    return UserResponse.model_validate(_get_client(user_service, guid))


@router.get("/{guid}/events", response_model=EventListResponse, summary="List a client's events")
async def list_client_events(
    guid: str,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: AuthContext = Depends(require_staff),
    db: Session = Depends(get_db),
) -> EventListResponse:
    client = _get_client(UserService(db), guid)
    events, total = EventService(db).list(client_id=client.id, limit=limit, offset=offset)
    return EventListResponse(events=[EventResponse.model_validate(e) for e in events], total=total)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create client",
)
async def create_client(
    body: UserCreate,
    ctx: AuthContext = Depends(require_staff),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Create a CLIENT user; any role in the body is ignored."""
    payload = body.model_dump()
    payload["role"] = UserRole.CLIENT
    try:
        client = user_service.create(**payload)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except (ValidationError, NotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.info(f"Client {client.guid} created by {ctx.user_guid}")
    return UserResponse.model_validate(client)


@router.put("/{guid}", response_model=UserResponse, summary="Update client")
async def update_client(
    guid: str,
    body: UserUpdate,
    ctx: AuthContext = Depends(require_staff),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    _get_client(user_service, guid)
    updates = body.model_dump(exclude_unset=True)
    if "role" in updates and updates["role"] != UserRole.CLIENT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Client role cannot be changed here",
        )
    updates.pop("role", None)

    try:
        client = user_service.update(guid, **updates)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    return UserResponse.model_validate(client)


@router.delete("/{guid}", response_model=DeleteResponse, summary="Delete client")
async def delete_client(
    guid: str,
    ctx: AuthContext = Depends(require_staff),
    user_service: UserService = Depends(get_user_service),
) -> DeleteResponse:
    """
    Raises:
        404: Not a client
        409: Client still has events or payments
    """
    _get_client(user_service, guid)
    try:
        user_service.delete(guid)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)

    logger.info(f"Client {guid} deleted by {ctx.user_guid}")
    return DeleteResponse(guid=guid)
