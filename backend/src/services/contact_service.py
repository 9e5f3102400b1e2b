"""
Contact service for the people behind leads and deals.

Contacts are shared by the planning staff; only the owner or an
administrator may delete one.
"""

from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from backend.src.models import Contact, ContactStatus
from backend.src.schemas.contact import ContactCreate, ContactUpdate
from backend.src.services.exceptions import NotFoundError, PermissionDeniedError
from backend.src.services.guid import GuidService
from backend.src.services.user_service import UserService
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")

# NOT NULL columns; an explicit null in an update leaves them unchanged
_REQUIRED_FIELDS = frozenset({
    "first_name", "last_name", "source", "status", "lead_score", "tags",
    "communication_preferences",
})


class ContactService:
    """
    Service for managing contacts.

    Usage:
        >>> service = ContactService(db_session)
        >>> contact = service.create(ContactCreate(first_name="Ana", last_name="Lima", source="Web"), owner_id=1)
        >>> contacts, total = service.list(search="lima")
    """

    def __init__(self, db: Session):
        self.db = db
        self.users = UserService(db)

    def get_by_guid(self, guid: str) -> Contact:
        """
        Get a contact by GUID.

        Raises:
            NotFoundError: If malformed or missing
        """
        try:
            uuid_value = GuidService.parse_identifier(guid, "con")
        except ValueError:
            raise NotFoundError("Contact", guid)

        contact = self.db.query(Contact).filter(Contact.uuid == uuid_value).first()
        if not contact:
            raise NotFoundError("Contact", guid)
        return contact

    def list(
        self,
        status: Optional[ContactStatus] = None,
        owner_guid: Optional[str] = None,
        assigned_to: Optional[int] = None,
        company: Optional[str] = None,
        tag: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Contact], int]:
        """
        List contacts ordered by last name, then first name.

        Args:
            status: Filter by status
            owner_guid: Filter by owning user
            assigned_to: Filter by assignee user id
            company: Case-insensitive exact company match
            tag: Case-insensitive tag match
            search: Substring over name, email and company

        Raises:
            NotFoundError: If owner_guid does not resolve
        """
        query = self.db.query(Contact)
        if status:
            query = query.filter(Contact.status == status)
        if owner_guid:
            query = query.filter(Contact.owner_id == self.users.get_by_guid(owner_guid).id)
        if assigned_to is not None:
            query = query.filter(Contact.assigned_to_id == assigned_to)
        if company:
            query = query.filter(Contact.company.ilike(company))
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Contact.first_name.ilike(pattern),
                Contact.last_name.ilike(pattern),
                Contact.email.ilike(pattern),
                Contact.company.ilike(pattern),
            ))

        contacts = query.order_by(
            Contact.last_name.asc(), Contact.first_name.asc(), Contact.id.asc()
        ).all()

        # tags are a JSON list, filtered in Python for SQLite/PostgreSQL parity
        if tag:
            wanted = tag.lower()
            contacts = [c for c in contacts if wanted in (t.lower() for t in (c.tags or []))]

        return contacts[offset:offset + limit], len(contacts)

    def create(self, data: ContactCreate, owner_id: int) -> Contact:
        """
        Create a contact owned by ``owner_id``.

        Raises:
            NotFoundError: If the assignee does not resolve
        """
        payload = data.model_dump(mode="json", exclude={"assigned_to_guid"})
        payload["status"] = data.status
        payload["last_contact_date"] = data.last_contact_date
        payload["next_follow_up"] = data.next_follow_up

        assignee = self.users.get_by_guid(data.assigned_to_guid) if data.assigned_to_guid else None

        contact = Contact(
            **payload,
            owner_id=owner_id,
            assigned_to_id=assignee.id if assignee else None,
        )
        self.db.add(contact)
        self.db.commit()
        self.db.refresh(contact)
        logger.info(f"Created contact {contact.guid} '{contact.full_name}' owner={owner_id}")
        return contact

    def update(self, guid: str, data: ContactUpdate) -> Contact:
        """
        Update a contact. Nested documents are replaced, not merged.

        Raises:
            NotFoundError: If the contact or assignee is not found
        """
        contact = self.get_by_guid(guid)
        updates = data.model_dump(mode="json", exclude_unset=True)

        if "assigned_to_guid" in updates:
            assignee_guid = updates.pop("assigned_to_guid")
            contact.assigned_to_id = self.users.get_by_guid(assignee_guid).id if assignee_guid else None

        # Keep enum and datetime values as Python objects, not their JSON form
        for field in ("status", "last_contact_date", "next_follow_up"):
            if field in updates:
                updates[field] = getattr(data, field)

        for field, value in updates.items():
            if value is None and field in _REQUIRED_FIELDS:
                continue
            setattr(contact, field, value)

        self.db.commit()
        self.db.refresh(contact)
        logger.info(f"Updated contact {contact.guid}")
        return contact

    def delete(self, guid: str, actor_id: int, is_admin: bool = False) -> None:
        """
        Delete a contact (owner or admin only). Leads and deals keep their
        history with the contact cleared.

        Raises:
            NotFoundError: If the contact is not found
            PermissionDeniedError: If the actor is neither owner nor admin
        """
        contact = self.get_by_guid(guid)
        if not is_admin and contact.owner_id != actor_id:
            raise PermissionDeniedError("Not authorized to delete this contact")
        self.db.delete(contact)
        self.db.commit()
        logger.info(f"Deleted contact {guid}")
