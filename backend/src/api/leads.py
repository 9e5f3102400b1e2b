"""
Leads API endpoints.

Leads are staff records. The score in every response is derived by the
server. Updating a lead broadcasts ``lead:updated`` to every connected
client.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.middleware.auth import AuthContext, require_staff
from backend.src.models import LeadPriority, LeadStatus
from backend.src.schemas.common import DeleteResponse
from backend.src.schemas.lead import LeadCreate, LeadListResponse, LeadResponse, LeadUpdate
from backend.src.services.exceptions import NotFoundError, PermissionDeniedError
from backend.src.services.lead_service import LeadService
from backend.src.services.realtime_service import RealtimeService, get_realtime_service
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(prefix="/leads", tags=["Leads"])


def get_lead_service(db: Session = Depends(get_db)) -> LeadService:
    return LeadService(db=db)


@router.get("", response_model=LeadListResponse, summary="List leads")
async def list_leads(
    status_filter: Optional[LeadStatus] = Query(None, alias="status"),
    priority: Optional[LeadPriority] = Query(None),
    owner_guid: Optional[str] = Query(None),
    assigned_to_me: bool = Query(False),
    min_score: Optional[int] = Query(None, ge=0, le=100),
    search: Optional[str] = Query(None, description="Match name, email or company"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: AuthContext = Depends(require_staff),
    lead_service: LeadService = Depends(get_lead_service),
) -> LeadListResponse:
    try:
        leads, total = lead_service.list(
            status=status_filter,
            priority=priority,
            owner_guid=owner_guid,
            assigned_to=ctx.user_id if assigned_to_me else None,
            search=search,
            min_score=min_score,
            limit=limit,
            offset=offset,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return LeadListResponse(leads=[LeadResponse.model_validate(lead) for lead in leads], total=total)


@router.get("/{guid}", response_model=LeadResponse, summary="Get lead")
async def get_lead(
    guid: str,
    ctx: AuthContext = Depends(require_staff),
    lead_service: LeadService = Depends(get_lead_service),
) -> LeadResponse:
    try:
        return LeadResponse.model_validate(lead_service.get_by_guid(guid))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Lead {guid} not found")


@router.post(
    "",
    response_model=LeadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create lead",
)
async def create_lead(
    body: LeadCreate,
    ctx: AuthContext = Depends(require_staff),
    lead_service: LeadService = Depends(get_lead_service),
) -> LeadResponse:
    try:
        lead = lead_service.create(body, owner_id=ctx.user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return LeadResponse.model_validate(lead)


@router.put("/{guid}", response_model=LeadResponse, summary="Update lead")
async def update_lead(
    guid: str,
    body: LeadUpdate,
    ctx: AuthContext = Depends(require_staff),
    lead_service: LeadService = Depends(get_lead_service),
    realtime: RealtimeService = Depends(get_realtime_service),
) -> LeadResponse:
    try:
        lead_service.get_by_guid(guid)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Lead {guid} not found")

    try:
        lead = lead_service.update(guid, body)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    response = LeadResponse.model_validate(lead)
    payload = response.model_dump(mode="json")
    payload["updated_by"] = {"id": ctx.user_guid, "name": ctx.full_name}
    payload["timestamp"] = datetime.utcnow().isoformat() + "Z"
    await realtime.broadcast("lead:updated", payload)

    return response


@router.delete("/{guid}", response_model=DeleteResponse, summary="Delete lead")
async def delete_lead(
    guid: str,
    ctx: AuthContext = Depends(require_staff),
    lead_service: LeadService = Depends(get_lead_service),
) -> DeleteResponse:
    try:
        lead_service.delete(guid, actor_id=ctx.user_id, is_admin=ctx.is_admin)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Lead {guid} not found")
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)

    logger.info(f"Lead {guid} deleted by {ctx.user_guid}")
    return DeleteResponse(guid=guid)
