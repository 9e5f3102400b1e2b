"""
Activities API endpoints.

Logging an activity broadcasts ``activity:new`` to every connected client.
Clients only see the activities they logged themselves.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.middleware.auth import AuthContext, require_auth
from backend.src.models import RelatedEntityType
from backend.src.schemas.activity import (
    ActivityCreate,
    ActivityListResponse,
    ActivityResponse,
    ActivityUpdate,
)
from backend.src.schemas.common import DeleteResponse
from backend.src.services.activity_service import ActivityService
from backend.src.services.exceptions import NotFoundError, PermissionDeniedError
from backend.src.services.realtime_service import RealtimeService, get_realtime_service
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(prefix="/activities", tags=["Activities"])


def get_activity_service(db: Session = Depends(get_db)) -> ActivityService:
    return ActivityService(db=db)


@router.get("", response_model=ActivityListResponse, summary="List activities")
async def list_activities(
    owner_guid: Optional[str] = Query(None),
    related_type: Optional[RelatedEntityType] = Query(None),
    related_id: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: AuthContext = Depends(require_auth),
    activity_service: ActivityService = Depends(get_activity_service),
) -> ActivityListResponse:
    try:
        activities, total = activity_service.list(
            owner_id=ctx.client_scope,
            owner_guid=owner_guid,
            related_type=related_type,
            related_id=related_id,
            limit=limit,
            offset=offset,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return ActivityListResponse(
        activities=[ActivityResponse.model_validate(a) for a in activities],
        total=total,
    )


@router.get("/{guid}", response_model=ActivityResponse, summary="Get activity")
async def get_activity(
    guid: str,
    ctx: AuthContext = Depends(require_auth),
    activity_service: ActivityService = Depends(get_activity_service),
) -> ActivityResponse:
    try:
        return ActivityResponse.model_validate(activity_service.get_by_guid(guid, owner_id=ctx.client_scope))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Activity {guid} not found")


@router.post(
    "",
    response_model=ActivityResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log activity",
)
async def create_activity(
    body: ActivityCreate,
    ctx: AuthContext = Depends(require_auth),
    activity_service: ActivityService = Depends(get_activity_service),
    realtime: RealtimeService = Depends(get_realtime_service),
) -> ActivityResponse:
    activity = activity_service.create(body, owner_id=ctx.user_id)
    response = ActivityResponse.model_validate(activity)

    payload = response.model_dump(mode="json")
    payload["created_by"] = {"id": ctx.user_guid, "name": ctx.full_name}
    payload["timestamp"] = datetime.utcnow().isoformat() + "Z"
    await realtime.broadcast("activity:new", payload)

    return response


@router.put("/{guid}", response_model=ActivityResponse, summary="Update activity")
async def update_activity(
    guid: str,
    body: ActivityUpdate,
    ctx: AuthContext = Depends(require_auth),
    activity_service: ActivityService = Depends(get_activity_service),
) -> ActivityResponse:
    try:
        activity = activity_service.update(guid, body, actor_id=ctx.user_id, is_admin=ctx.is_admin)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Activity {guid} not found")
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)

    return ActivityResponse.model_validate(activity)


@router.delete("/{guid}", response_model=DeleteResponse, summary="Delete activity")
async def delete_activity(
    guid: str,
    ctx: AuthContext = Depends(require_auth),
    activity_service: ActivityService = Depends(get_activity_service),
) -> DeleteResponse:
    try:
        activity_service.delete(guid, actor_id=ctx.user_id, is_admin=ctx.is_admin)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Activity {guid} not found")
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)

    return DeleteResponse(guid=guid)
