"""
Events API endpoints.

Provides endpoints for:
- Listing events with status, planner, client and upcoming filters
- Event statistics and the upcoming-events shortlist
- Getting event details
- Creating, updating (including status transitions) and deleting events

Design:
- All endpoints use GUID format (evt_xxx) for identifiers
- CLIENT callers only ever see their own events; other clients' events
  are reported as not found
- Mutations are limited to planners and administrators
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.middleware.auth import AuthContext, require_auth, require_staff
from backend.src.models import EventStatus
from backend.src.schemas.common import DeleteResponse
from backend.src.schemas.event import (
    EventCreate,
    EventListResponse,
    EventResponse,
    EventStatsResponse,
    EventUpdate,
)
from backend.src.services.event_service import EventService
from backend.src.services.exceptions import NotFoundError, ValidationError
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(
    prefix="/events",
    tags=["Events"],
)


# ============================================================================
# Dependencies
# ============================================================================


def get_event_service(db: Session = Depends(get_db)) -> EventService:
    """Create EventService instance with database session."""
    return EventService(db=db)


# ============================================================================
# API Endpoints
# ============================================================================


@router.get(
    "/stats",
    response_model=EventStatsResponse,
    summary="Get event statistics",
)
async def get_event_stats(
    ctx: AuthContext = Depends(require_auth),
    event_service: EventService = Depends(get_event_service),
) -> EventStatsResponse:
    """
    Counts per status plus the number of upcoming events.

    Example:
        GET /api/events/stats

        Response:
        {
          "total": 12,
          "by_status": {"PLANNING": 4, "CONFIRMED": 5, ...},
          "upcoming": 7
        }
    """
    stats = event_service.get_stats(client_id=ctx.client_scope)
    return EventStatsResponse(**stats)


@router.get(
    "/upcoming",
    response_model=EventListResponse,
    summary="Upcoming events",
)
async def get_upcoming_events(
    limit: int = Query(10, ge=1, le=100),
    ctx: AuthContext = Depends(require_auth),
    event_service: EventService = Depends(get_event_service),
) -> EventListResponse:
    events = event_service.get_upcoming(client_id=ctx.client_scope, limit=limit)
    return EventListResponse(
        events=[EventResponse.model_validate(e) for e in events],
        total=len(events),
    )


@router.get(
    "",
    response_model=EventListResponse,
    summary="List events",
)
async def list_events(
    status_filter: Optional[EventStatus] = Query(None, alias="status"),
    planner_guid: Optional[str] = Query(None, description="Planner GUID"),
    client_guid: Optional[str] = Query(None, description="Client GUID"),
    upcoming: bool = Query(False, description="Only non-terminal events starting today or later"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: AuthContext = Depends(require_auth),
    event_service: EventService = Depends(get_event_service),
) -> EventListResponse:
    try:
        events, total = event_service.list(
            client_id=ctx.client_scope,
            status=status_filter,
            planner_guid=planner_guid,
            client_guid=client_guid,
            upcoming=upcoming,
            limit=limit,
            offset=offset,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return EventListResponse(events=[EventResponse.model_validate(e) for e in events], total=total)


@router.get(
    "/{guid}",
    response_model=EventResponse,
    summary="Get event",
)
async def get_event(
    guid: str,
    ctx: AuthContext = Depends(require_auth),
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    try:
        return EventResponse.model_validate(event_service.get_by_guid(guid, client_id=ctx.client_scope))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Event {guid} not found")


@router.post(
    "",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create event",
)
async def create_event(
    body: EventCreate,
    ctx: AuthContext = Depends(require_staff),
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    """
    Create an event in PLANNING status.

    When planner_guid is omitted and the caller is a planner, the caller
    becomes the planner.
    """
    try:
        event = event_service.create(body, planner_id=ctx.user_id if ctx.is_planner else None)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    return EventResponse.model_validate(event)


@router.put(
    "/{guid}",
    response_model=EventResponse,
    summary="Update event",
)
async def update_event(
    guid: str,
    body: EventUpdate,
    ctx: AuthContext = Depends(require_staff),
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    """
    Raises:
        404: Event not found
        400: Disallowed status transition, bad dates or unknown participant
    """
    try:
        event_service.get_by_guid(guid)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Event {guid} not found")

    try:
        event = event_service.update(guid, body)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    return EventResponse.model_validate(event)


@router.delete(
    "/{guid}",
    response_model=DeleteResponse,
    summary="Delete event",
)
async def delete_event(
    guid: str,
    ctx: AuthContext = Depends(require_staff),
    event_service: EventService = Depends(get_event_service),
) -> DeleteResponse:
    try:
        event_service.delete(guid)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Event {guid} not found")

    logger.info(f"Event {guid} deleted by {ctx.user_guid}")
    return DeleteResponse(guid=guid)
