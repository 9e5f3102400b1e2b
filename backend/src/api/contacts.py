"""
Contacts API endpoints.

Contacts are staff records: planners and administrators read and maintain
them. Updating a contact broadcasts ``contact:updated`` to every connected
client.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.middleware.auth import AuthContext, require_staff
from backend.src.models import ContactStatus
from backend.src.schemas.common import DeleteResponse
from backend.src.schemas.contact import (
    ContactCreate,
    ContactListResponse,
    ContactResponse,
    ContactUpdate,
)
from backend.src.services.contact_service import ContactService
from backend.src.services.exceptions import NotFoundError, PermissionDeniedError
from backend.src.services.realtime_service import RealtimeService, get_realtime_service
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(prefix="/contacts", tags=["Contacts"])


def get_contact_service(db: Session = Depends(get_db)) -> ContactService:
    return ContactService(db=db)


@router.get("", response_model=ContactListResponse, summary="List contacts")
async def list_contacts(
    status_filter: Optional[ContactStatus] = Query(None, alias="status"),
    owner_guid: Optional[str] = Query(None),
    assigned_to_me: bool = Query(False),
    company: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Match name, email or company"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: AuthContext = Depends(require_staff),
    contact_service: ContactService = Depends(get_contact_service),
) -> ContactListResponse:
    try:
        contacts, total = contact_service.list(
            status=status_filter,
            owner_guid=owner_guid,
            assigned_to=ctx.user_id if assigned_to_me else None,
            company=company,
            tag=tag,
            search=search,
            limit=limit,
            offset=offset,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return ContactListResponse(contacts=[ContactResponse.model_validate(c) for c in contacts], total=total)


@router.get("/{guid}", response_model=ContactResponse, summary="Get contact")
async def get_contact(
    guid: str,
    ctx: AuthContext = Depends(require_staff),
    contact_service: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    try:
        return ContactResponse.model_validate(contact_service.get_by_guid(guid))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Contact {guid} not found")


@router.post(
    "",
    response_model=ContactResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create contact",
)
async def create_contact(
    body: ContactCreate,
    ctx: AuthContext = Depends(require_staff),
    contact_service: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    try:
        contact = contact_service.create(body, owner_id=ctx.user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return ContactResponse.model_validate(contact)


@router.put("/{guid}", response_model=ContactResponse, summary="Update contact")
async def update_contact(
    guid: str,
    body: ContactUpdate,
    ctx: AuthContext = Depends(require_staff),
    contact_service: ContactService = Depends(get_contact_service),
    realtime: RealtimeService = Depends(get_realtime_service),
) -> ContactResponse:
    try:
        contact_service.get_by_guid(guid)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Contact {guid} not found")

    try:
        contact = contact_service.update(guid, body)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    response = ContactResponse.model_validate(contact)
    payload = response.model_dump(mode="json")
    payload["updated_by"] = {"id": ctx.user_guid, "name": ctx.full_name}
    payload["timestamp"] = datetime.utcnow().isoformat() + "Z"
    await realtime.broadcast("contact:updated", payload)

    return response


@router.delete("/{guid}", response_model=DeleteResponse, summary="Delete contact")
async def delete_contact(
    guid: str,
    ctx: AuthContext = Depends(require_staff),
    contact_service: ContactService = Depends(get_contact_service),
) -> DeleteResponse:
    try:
        contact_service.delete(guid, actor_id=ctx.user_id, is_admin=ctx.is_admin)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Contact {guid} not found")
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)

    logger.info(f"Contact {guid} deleted by {ctx.user_guid}")
    return DeleteResponse(guid=guid)
