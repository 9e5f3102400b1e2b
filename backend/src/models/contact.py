"""
Contact model for people the planning team works with.

A contact's stored lead_score is set by hand; ``score`` adds points for
profile completeness and recent contact on top of it.
"""

import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Enum, CheckConstraint
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin
from backend.src.models.types import JSONBType


class ContactStatus(enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    LEAD = "LEAD"
    CUSTOMER = "CUSTOMER"
    PROSPECT = "PROSPECT"


def default_communication_preferences():
    return {
        "email": True,
        "phone": True,
        "sms": False,
        "preferred_time": "9:00 AM - 5:00 PM",
        "timezone": "UTC",
    }


def contact_score(contact, now=None) -> int:
    """Base lead score plus completeness and recency points, capped at 100."""
    now = now or datetime.utcnow()
    score = contact.lead_score or 0

    if contact.email:
        score += 10
    if contact.phone or contact.mobile:
        score += 10
    if contact.company:
        score += 10
    if contact.job_title:
        score += 5
    if contact.address:
        score += 5

    if contact.last_contact_date:
        days_since = (now - contact.last_contact_date).days
        if days_since < 7:
            score += 20
        elif days_since < 30:
            score += 10

    return min(score, 100)


class Contact(Base, GuidMixin):
    """
    Contact record.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid / guid: External identifier (con_xxx)
        first_name, last_name, email, phone, mobile: Identity
        company, job_title, department, website: Organization
        address: JSON {street, city, state, zip_code, country}
        source: Where the contact came from
        status: Relationship stage
        lead_score: Manually assigned 0-100
        tags, custom_fields: JSON
        owner_id, assigned_to_id: FKs to users
        last_contact_date, next_follow_up: Follow-up tracking
        communication_preferences, social_profiles: JSON
    """

    __tablename__ = "contacts"

    GUID_PREFIX = "con"

    id = Column(Integer, primary_key=True, autoincrement=True)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    mobile = Column(String(50), nullable=True)
    company = Column(String(255), nullable=True, index=True)
    job_title = Column(String(255), nullable=True)
    department = Column(String(255), nullable=True)
    address = Column(JSONBType, nullable=True)
    website = Column(String(500), nullable=True)
    source = Column(String(100), nullable=False)
    notes = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)

    status = Column(
        Enum(ContactStatus, name="contact_status", create_constraint=True),
        default=ContactStatus.PROSPECT,
        nullable=False,
        index=True
    )
    lead_score = Column(Integer, default=0, nullable=False)
    tags = Column(JSONBType, default=list, nullable=False)
    custom_fields = Column(JSONBType, nullable=True)

    owner_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    assigned_to_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    last_contact_date = Column(DateTime, nullable=True)
    next_follow_up = Column(DateTime, nullable=True)
    communication_preferences = Column(
        JSONBType, default=default_communication_preferences, nullable=False
    )
    social_profiles = Column(JSONBType, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    owner = relationship("User", foreign_keys=[owner_id], lazy="joined")
    assigned_to = relationship("User", foreign_keys=[assigned_to_id], lazy="joined")

    __table_args__ = (
        CheckConstraint(
            "lead_score >= 0 AND lead_score <= 100",
            name="ck_contacts_lead_score_range"
        ),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def owner_guid(self):
        return self.owner.guid if self.owner else None

    @property
    def assigned_to_guid(self):
        return self.assigned_to.guid if self.assigned_to else None

    @property
    def score(self) -> int:
        return contact_score(self)

    def __repr__(self) -> str:
        return f"<Contact(id={self.id}, name='{self.full_name}', status={self.status.value if self.status else None})>"
