"""
Deals API endpoints.

Deals are staff records. Updating a deal broadcasts ``deal:updated`` to
every connected client. ``GET /deals/pipeline`` summarizes value per stage.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.middleware.auth import AuthContext, require_staff
from backend.src.models import DealStage
from backend.src.schemas.common import DeleteResponse
from backend.src.schemas.deal import (
    DealCreate,
    DealListResponse,
    DealPipelineResponse,
    DealResponse,
    DealUpdate,
)
from backend.src.services.deal_service import DealService
from backend.src.services.exceptions import NotFoundError, PermissionDeniedError
from backend.src.services.realtime_service import RealtimeService, get_realtime_service
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(prefix="/deals", tags=["Deals"])


def get_deal_service(db: Session = Depends(get_db)) -> DealService:
    return DealService(db=db)


@router.get("/pipeline", response_model=DealPipelineResponse, summary="Deal pipeline summary")
async def get_deal_pipeline(
    owner_guid: Optional[str] = Query(None),
    ctx: AuthContext = Depends(require_staff),
    deal_service: DealService = Depends(get_deal_service),
) -> DealPipelineResponse:
    try:
        return DealPipelineResponse(**deal_service.get_pipeline(owner_guid=owner_guid))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("", response_model=DealListResponse, summary="List deals")
async def list_deals(
    stage: Optional[DealStage] = Query(None),
    owner_guid: Optional[str] = Query(None),
    contact_guid: Optional[str] = Query(None),
    overdue: bool = Query(False, description="Only open deals past their expected close date"),
    search: Optional[str] = Query(None, description="Match name or company"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: AuthContext = Depends(require_staff),
    deal_service: DealService = Depends(get_deal_service),
) -> DealListResponse:
    try:
        deals, total = deal_service.list(
            stage=stage,
            owner_guid=owner_guid,
            contact_guid=contact_guid,
            overdue=overdue,
            search=search,
            limit=limit,
            offset=offset,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return DealListResponse(deals=[DealResponse.model_validate(d) for d in deals], total=total)


@router.get("/{guid}", response_model=DealResponse, summary="Get deal")
async def get_deal(
    guid: str,
    ctx: AuthContext = Depends(require_staff),
    deal_service: DealService = Depends(get_deal_service),
) -> DealResponse:
    try:
        return DealResponse.model_validate(deal_service.get_by_guid(guid))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Deal {guid} not found")


@router.post(
    "",
    response_model=DealResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create deal",
)
async def create_deal(
    body: DealCreate,
    ctx: AuthContext = Depends(require_staff),
    deal_service: DealService = Depends(get_deal_service),
) -> DealResponse:
    try:
        deal = deal_service.create(body, owner_id=ctx.user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return DealResponse.model_validate(deal)


@router.put("/{guid}", response_model=DealResponse, summary="Update deal")
async def update_deal(
    guid: str,
    body: DealUpdate,
    ctx: AuthContext = Depends(require_staff),
    deal_service: DealService = Depends(get_deal_service),
    realtime: RealtimeService = Depends(get_realtime_service),
) -> DealResponse:
    try:
        deal_service.get_by_guid(guid)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Deal {guid} not found")

    try:
        deal = deal_service.update(guid, body)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    response = DealResponse.model_validate(deal)
    payload = response.model_dump(mode="json")
    payload["updated_by"] = {"id": ctx.user_guid, "name": ctx.full_name}
    payload["timestamp"] = datetime.utcnow().isoformat() + "Z"
    await realtime.broadcast("deal:updated", payload)

    return response


@router.delete("/{guid}", response_model=DeleteResponse, summary="Delete deal")
async def delete_deal(
    guid: str,
    ctx: AuthContext = Depends(require_staff),
    deal_service: DealService = Depends(get_deal_service),
) -> DeleteResponse:
    try:
        deal_service.delete(guid, actor_id=ctx.user_id, is_admin=ctx.is_admin)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Deal {guid} not found")
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)

    logger.info(f"Deal {guid} deleted by {ctx.user_guid}")
    return DeleteResponse(guid=guid)
