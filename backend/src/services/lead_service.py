"""
Lead service for the sales pipeline.

Every write recalculates the lead's score. Moving a lead to CLOSED_WON or
CLOSED_LOST stamps actual_close_date unless the caller supplied one;
reopening a closed lead clears it.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from backend.src.models import CLOSED_LEAD_STATUSES, Lead, LeadPriority, LeadStatus
from backend.src.schemas.lead import LeadCreate, LeadUpdate
from backend.src.services.contact_service import ContactService
from backend.src.services.exceptions import NotFoundError, PermissionDeniedError
from backend.src.services.guid import GuidService
from backend.src.services.user_service import UserService
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")

_REQUIRED_FIELDS = frozenset({
    "first_name", "last_name", "source", "priority", "currency", "tags",
})


class LeadService:
    """
    Service for managing leads.

    Usage:
        >>> service = LeadService(db_session)
        >>> lead = service.create(LeadCreate(first_name="Li", last_name="Wei", source="Web"), owner_id=1)
        >>> lead.score
        0
    """

    def __init__(self, db: Session):
        self.db = db
        self.users = UserService(db)
        self.contacts = ContactService(db)

    def get_by_guid(self, guid: str) -> Lead:
        """
        Get a lead by GUID.

        Raises:
            NotFoundError: If malformed or missing
        """
        try:
            uuid_value = GuidService.parse_identifier(guid, "led")
        except ValueError:
            raise NotFoundError("Lead", guid)

        lead = self.db.query(Lead).filter(Lead.uuid == uuid_value).first()
        if not lead:
            raise NotFoundError("Lead", guid)
        return lead

    def list(
        self,
        status: Optional[LeadStatus] = None,
        priority: Optional[LeadPriority] = None,
        owner_guid: Optional[str] = None,
        assigned_to: Optional[int] = None,
        search: Optional[str] = None,
        min_score: Optional[int] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Lead], int]:
        """
        List leads, highest score first, newest first within a score.

        Raises:
            NotFoundError: If owner_guid does not resolve
        """
        query = self.db.query(Lead)
        if status:
            query = query.filter(Lead.status == status)
        if priority:
            query = query.filter(Lead.priority == priority)
        if owner_guid:
            query = query.filter(Lead.owner_id == self.users.get_by_guid(owner_guid).id)
        if assigned_to is not None:
            query = query.filter(Lead.assigned_to_id == assigned_to)
        if min_score is not None:
            query = query.filter(Lead.score >= min_score)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Lead.first_name.ilike(pattern),
                Lead.last_name.ilike(pattern),
                Lead.email.ilike(pattern),
                Lead.company.ilike(pattern),
            ))

        total = query.count()
        leads = (
            query.order_by(Lead.score.desc(), Lead.created_at.desc(), Lead.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return leads, total

    def create(self, data: LeadCreate, owner_id: int) -> Lead:
        """
        Create a scored lead.

        Raises:
            NotFoundError: If the assignee or contact does not resolve
        """
        assignee = self.users.get_by_guid(data.assigned_to_guid) if data.assigned_to_guid else None
        contact = self.contacts.get_by_guid(data.contact_guid) if data.contact_guid else None

        lead = Lead(
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            phone=data.phone,
            company=data.company,
            job_title=data.job_title,
            source=data.source,
            status=data.status,
            priority=data.priority,
            estimated_value=data.estimated_value,
            currency=data.currency,
            expected_close_date=data.expected_close_date,
            actual_close_date=datetime.utcnow() if data.status in CLOSED_LEAD_STATUSES else None,
            owner_id=owner_id,
            assigned_to_id=assignee.id if assignee else None,
            contact_id=contact.id if contact else None,
            lead_source=data.lead_source.model_dump(mode="json") if data.lead_source else None,
            qualification_criteria=data.qualification_criteria.model_dump(),
            tags=list(data.tags),
            notes=data.notes,
            last_activity_date=data.last_activity_date,
            next_follow_up=data.next_follow_up,
        )
        lead.score = lead.calculate_score()
        self.db.add(lead)
        self.db.commit()
        self.db.refresh(lead)
        logger.info(f"Created lead {lead.guid} '{lead.full_name}' score={lead.score}")
        return lead

    def update(self, guid: str, data: LeadUpdate) -> Lead:
        """
        Update a lead and recalculate its score.

        Raises:
            NotFoundError: If the lead, assignee or contact is not found
        """
        lead = self.get_by_guid(guid)
        updates = data.model_dump(exclude_unset=True)

        if "status" in updates:
            new_status = updates.pop("status")
            if new_status is not None and new_status != lead.status:
                was_closed = lead.is_closed
                lead.status = new_status
                if new_status in CLOSED_LEAD_STATUSES and not was_closed:
                    lead.actual_close_date = datetime.utcnow()
                elif new_status not in CLOSED_LEAD_STATUSES:
                    lead.actual_close_date = None

        if "assigned_to_guid" in updates:
            assignee_guid = updates.pop("assigned_to_guid")
            lead.assigned_to_id = self.users.get_by_guid(assignee_guid).id if assignee_guid else None

        if "contact_guid" in updates:
            contact_guid = updates.pop("contact_guid")
            lead.contact_id = self.contacts.get_by_guid(contact_guid).id if contact_guid else None

        if "lead_source" in updates:
            updates.pop("lead_source")
            lead.lead_source = data.lead_source.model_dump(mode="json") if data.lead_source else None

        if "qualification_criteria" in updates:
            updates.pop("qualification_criteria")
            if data.qualification_criteria is not None:
                lead.qualification_criteria = data.qualification_criteria.model_dump()

        for field, value in updates.items():
            if value is None and field in _REQUIRED_FIELDS:
                continue
            setattr(lead, field, value)

        lead.score = lead.calculate_score()
        self.db.commit()
        self.db.refresh(lead)
        logger.info(f"Updated lead {lead.guid} status={lead.status.value} score={lead.score}")
        return lead

    def delete(self, guid: str, actor_id: int, is_admin: bool = False) -> None:
        """
        Delete a lead (owner or admin only).

        Raises:
            NotFoundError: If the lead is not found
            PermissionDeniedError: If the actor is neither owner nor admin
        """
        lead = self.get_by_guid(guid)
        if not is_admin and lead.owner_id != actor_id:
            raise PermissionDeniedError("Not authorized to delete this lead")
        self.db.delete(lead)
        self.db.commit()
        logger.info(f"Deleted lead {guid}")
