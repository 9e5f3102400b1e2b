"""
Lead model for prospective business moving through the sales pipeline.

The stored score is derived, never set by callers: qualification criteria
(budget, authority, need, timeline), profile completeness, estimated value
and recent activity. LeadService recalculates it on every write.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, DateTime, Text, ForeignKey, Enum, Index, CheckConstraint
)
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin
from backend.src.models.types import JSONBType, Money


class LeadStatus(enum.Enum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    QUALIFIED = "QUALIFIED"
    PROPOSAL = "PROPOSAL"
    NEGOTIATION = "NEGOTIATION"
    CLOSED_WON = "CLOSED_WON"
    CLOSED_LOST = "CLOSED_LOST"


class LeadPriority(enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class LeadSourceType(enum.Enum):
    WEBSITE = "WEBSITE"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    SOCIAL_MEDIA = "SOCIAL_MEDIA"
    REFERRAL = "REFERRAL"
    ADVERTISING = "ADVERTISING"
    EVENT = "EVENT"
    OTHER = "OTHER"


CLOSED_LEAD_STATUSES = (LeadStatus.CLOSED_WON, LeadStatus.CLOSED_LOST)

QUALIFICATION_CRITERIA = ("budget", "authority", "need", "timeline")


def lead_score(lead, now=None) -> int:
    """
    Score a lead from 0 to 100.

    25 points per met qualification criterion, 5 each for email, phone,
    company and job title, 10 for a positive estimated value, and 10 (under
    a week) or 5 (under a month) for recent activity.
    """
    now = now or datetime.utcnow()
    score = 0

    qualification = lead.qualification_criteria or {}
    score += 25 * sum(1 for key in QUALIFICATION_CRITERIA if qualification.get(key))

    for value in (lead.email, lead.phone, lead.company, lead.job_title):
        if value:
            score += 5

    if lead.estimated_value and lead.estimated_value > 0:
        score += 10

    if lead.last_activity_date:
        days_since = (now - lead.last_activity_date).days
        if days_since < 7:
            score += 10
        elif days_since < 30:
            score += 5

    return min(score, 100)


def days_in_pipeline(created_at, closed_at, is_closed, now=None) -> int:
    """Whole days from creation to close (closed records) or to now."""
    end = closed_at if is_closed and closed_at else (now or datetime.utcnow())
    return (end - created_at).days


class Lead(Base, GuidMixin):
    """
    Lead record.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid / guid: External identifier (led_xxx)
        first_name, last_name, email, phone, company, job_title: Prospect
        source: Free-text origin
        status, priority: Pipeline position
        score: Derived 0-100
        estimated_value, currency: Expected deal size
        expected_close_date, actual_close_date: Schedule
        owner_id, assigned_to_id: FKs to users
        contact_id: FK to the matching contact (optional)
        lead_source: JSON {type, campaign, medium, referrer}
        qualification_criteria: JSON {budget, authority, need, timeline}
        tags: JSON list
        last_activity_date, next_follow_up: Follow-up tracking
    """

    __tablename__ = "leads"

    GUID_PREFIX = "led"

    id = Column(Integer, primary_key=True, autoincrement=True)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    company = Column(String(255), nullable=True, index=True)
    job_title = Column(String(255), nullable=True)
    source = Column(String(100), nullable=False)

    status = Column(
        Enum(LeadStatus, name="lead_status", create_constraint=True),
        default=LeadStatus.NEW,
        nullable=False,
        index=True
    )
    priority = Column(
        Enum(LeadPriority, name="lead_priority", create_constraint=True),
        default=LeadPriority.MEDIUM,
        nullable=False
    )
    score = Column(Integer, default=0, nullable=False)

    estimated_value = Column(Money(), nullable=True)
    currency = Column(String(3), default="USD", nullable=False)
    expected_close_date = Column(DateTime, nullable=True, index=True)
    actual_close_date = Column(DateTime, nullable=True)

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
    contact_id = Column(
        Integer,
        ForeignKey("contacts.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    lead_source = Column(JSONBType, nullable=True)
    qualification_criteria = Column(JSONBType, nullable=True)
    tags = Column(JSONBType, default=list, nullable=False)
    notes = Column(Text, nullable=True)
    last_activity_date = Column(DateTime, nullable=True)
    next_follow_up = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    owner = relationship("User", foreign_keys=[owner_id], lazy="joined")
    assigned_to = relationship("User", foreign_keys=[assigned_to_id], lazy="joined")
    contact = relationship("Contact", lazy="joined")

    __table_args__ = (
        Index("idx_leads_owner_status", "owner_id", "status"),
        CheckConstraint(
            "estimated_value IS NULL OR estimated_value >= 0",
            name="ck_leads_estimated_value_non_negative"
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
    def contact_guid(self):
        return self.contact.guid if self.contact else None

    @property
    def is_closed(self) -> bool:
        return self.status in CLOSED_LEAD_STATUSES

    @property
    def days_in_pipeline(self) -> int:
        return days_in_pipeline(self.created_at, self.actual_close_date, self.is_closed)

    def calculate_score(self) -> int:
        return lead_score(self)

    def __repr__(self) -> str:
        return f"<Lead(id={self.id}, name='{self.full_name}', status={self.status.value if self.status else None})>"
