"""
Payments API endpoints.

Provides endpoints for:
- Listing payments with event, client, vendor and status filters
- Overdue and upcoming payments
- Aggregate statistics
- Recording, updating (status lifecycle) and deleting payments

CLIENT callers only see their own payments and cannot change them.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.middleware.auth import AuthContext, require_auth, require_staff
from backend.src.models import PaymentStatus
from backend.src.schemas.common import DeleteResponse
from backend.src.schemas.payment import (
    PaymentCreate,
    PaymentListResponse,
    PaymentResponse,
    PaymentStatsResponse,
    PaymentUpdate,
)
from backend.src.services.exceptions import ConflictError, NotFoundError, ValidationError
from backend.src.services.payment_service import PaymentService
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    return PaymentService(db=db)


def _page(payments) -> PaymentListResponse:
    return PaymentListResponse(
        payments=[PaymentResponse.model_validate(p) for p in payments],
        total=len(payments),
    )


@router.get("/stats", response_model=PaymentStatsResponse, summary="Payment statistics")
async def get_payment_stats(
    event_guid: Optional[str] = Query(None),
    client_guid: Optional[str] = Query(None),
    ctx: AuthContext = Depends(require_auth),
    payment_service: PaymentService = Depends(get_payment_service),
) -> PaymentStatsResponse:
    try:
        stats = payment_service.get_stats(
            client_id=ctx.client_scope, event_guid=event_guid, client_guid=client_guid
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return PaymentStatsResponse(**stats)


@router.get("/overdue", response_model=PaymentListResponse, summary="Overdue payments")
async def get_overdue_payments(
    ctx: AuthContext = Depends(require_auth),
    payment_service: PaymentService = Depends(get_payment_service),
) -> PaymentListResponse:
    return _page(payment_service.get_overdue(client_id=ctx.client_scope))


@router.get("/upcoming", response_model=PaymentListResponse, summary="Payments due soon")
async def get_upcoming_payments(
    days: int = Query(7, ge=0, le=365),
    ctx: AuthContext = Depends(require_auth),
    payment_service: PaymentService = Depends(get_payment_service),
) -> PaymentListResponse:
    return _page(payment_service.get_upcoming(days=days, client_id=ctx.client_scope))


@router.get("", response_model=PaymentListResponse, summary="List payments")
async def list_payments(
    event_guid: Optional[str] = Query(None),
    client_guid: Optional[str] = Query(None),
    vendor_guid: Optional[str] = Query(None),
    status_filter: Optional[PaymentStatus] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: AuthContext = Depends(require_auth),
    payment_service: PaymentService = Depends(get_payment_service),
) -> PaymentListResponse:
    try:
        payments, total = payment_service.list(
            client_id=ctx.client_scope,
            event_guid=event_guid,
            client_guid=client_guid,
            vendor_guid=vendor_guid,
            status=status_filter,
            limit=limit,
            offset=offset,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return PaymentListResponse(payments=[PaymentResponse.model_validate(p) for p in payments], total=total)


@router.get("/{guid}", response_model=PaymentResponse, summary="Get payment")
async def get_payment(
    guid: str,
    ctx: AuthContext = Depends(require_auth),
    payment_service: PaymentService = Depends(get_payment_service),
) -> PaymentResponse:
    try:
        return PaymentResponse.model_validate(payment_service.get_by_guid(guid, client_id=ctx.client_scope))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Payment {guid} not found")


@router.post(
    "",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record payment",
)
async def create_payment(
    body: PaymentCreate,
    ctx: AuthContext = Depends(require_staff),
    payment_service: PaymentService = Depends(get_payment_service),
) -> PaymentResponse:
    try:
        payment = payment_service.create(body)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)

    return PaymentResponse.model_validate(payment)


@router.put("/{guid}", response_model=PaymentResponse, summary="Update payment")
async def update_payment(
    guid: str,
    body: PaymentUpdate,
    ctx: AuthContext = Depends(require_staff),
    payment_service: PaymentService = Depends(get_payment_service),
) -> PaymentResponse:
    """
    Raises:
        404: Payment not found
        400: Disallowed status transition or unknown vendor
        409: Invoice number taken
    """
    try:
        payment_service.get_by_guid(guid)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Payment {guid} not found")

    try:
        payment = payment_service.update(guid, body)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)

    return PaymentResponse.model_validate(payment)


@router.delete("/{guid}", response_model=DeleteResponse, summary="Delete payment")
async def delete_payment(
    guid: str,
    ctx: AuthContext = Depends(require_staff),
    payment_service: PaymentService = Depends(get_payment_service),
) -> DeleteResponse:
    try:
        payment_service.delete(guid)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Payment {guid} not found")

    logger.info(f"Payment {guid} deleted by {ctx.user_guid}")
    return DeleteResponse(guid=guid)
