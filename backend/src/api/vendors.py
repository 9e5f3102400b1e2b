"""
Vendors API endpoints.

Any authenticated user may browse vendors; planners and administrators
maintain them.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.middleware.auth import AuthContext, require_auth, require_staff
from backend.src.schemas.common import DeleteResponse
from backend.src.schemas.vendor import (
    VendorCreate,
    VendorListResponse,
    VendorResponse,
    VendorStatsResponse,
    VendorUpdate,
)
from backend.src.services.exceptions import NotFoundError
from backend.src.services.vendor_service import VendorService
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(prefix="/vendors", tags=["Vendors"])


def get_vendor_service(db: Session = Depends(get_db)) -> VendorService:
    return VendorService(db=db)


@router.get("/stats", response_model=VendorStatsResponse, summary="Vendor statistics")
async def get_vendor_stats(
    ctx: AuthContext = Depends(require_staff),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> VendorStatsResponse:
    return VendorStatsResponse(**vendor_service.get_stats())


@router.get("", response_model=VendorListResponse, summary="List vendors")
async def list_vendors(
    category: Optional[str] = Query(None),
    city: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Match name, business name, description or services"),
    include_inactive: bool = Query(False),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: AuthContext = Depends(require_auth),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> VendorListResponse:
    vendors, total = vendor_service.list(
        category=category,
        city=city,
        state=state,
        search=search,
        include_inactive=include_inactive and ctx.is_staff,
        limit=limit,
        offset=offset,
    )
    return VendorListResponse(vendors=[VendorResponse.model_validate(v) for v in vendors], total=total)


@router.get("/{guid}", response_model=VendorResponse, summary="Get vendor")
async def get_vendor(
    guid: str,
    ctx: AuthContext = Depends(require_auth),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> VendorResponse:
    try:
        return VendorResponse.model_validate(vendor_service.get_by_guid(guid))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Vendor {guid} not found")


@router.post(
    "",
    response_model=VendorResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create vendor",
)
async def create_vendor(
    body: VendorCreate,
    ctx: AuthContext = Depends(require_staff),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> VendorResponse:
    vendor = vendor_service.create(body)
    return VendorResponse.model_validate(vendor)


@router.put("/{guid}", response_model=VendorResponse, summary="Update vendor")
async def update_vendor(
    guid: str,
    body: VendorUpdate,
    ctx: AuthContext = Depends(require_staff),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> VendorResponse:
    try:
        return VendorResponse.model_validate(vendor_service.update(guid, body))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Vendor {guid} not found")


@router.delete("/{guid}", response_model=DeleteResponse, summary="Delete vendor")
async def delete_vendor(
    guid: str,
    ctx: AuthContext = Depends(require_staff),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> DeleteResponse:
    try:
        vendor_service.delete(guid)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Vendor {guid} not found")

    logger.info(f"Vendor {guid} deleted by {ctx.user_guid}")
    return DeleteResponse(guid=guid)
