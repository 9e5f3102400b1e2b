"""
Activity model for the CRM timeline (calls, emails, meetings, notes, ...).

An activity may point at a related record through a tagged reference
(related_type + related_id). The id is stored as text without a foreign
key, since one column points at contacts, leads, deals or tasks.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text, ForeignKey, Enum, Index
)
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin
from backend.src.models.types import JSONBType


class RelatedEntityType(enum.Enum):
    """Kinds of record an activity or task can be attached to."""
    CONTACT = "CONTACT"
    LEAD = "LEAD"
    DEAL = "DEAL"
    TASK = "TASK"


class ActivityType(enum.Enum):
    CALL = "CALL"
    EMAIL = "EMAIL"
    MEETING = "MEETING"
    NOTE = "NOTE"
    TASK = "TASK"
    DEAL_UPDATE = "DEAL_UPDATE"
    LEAD_UPDATE = "LEAD_UPDATE"
    CONTACT_UPDATE = "CONTACT_UPDATE"


class ActivityOutcome(enum.Enum):
    POSITIVE = "POSITIVE"
    NEUTRAL = "NEUTRAL"
    NEGATIVE = "NEGATIVE"
    FOLLOW_UP_REQUIRED = "FOLLOW_UP_REQUIRED"


class MeetingType(enum.Enum):
    IN_PERSON = "IN_PERSON"
    PHONE = "PHONE"
    VIDEO = "VIDEO"
    EMAIL = "EMAIL"


class Direction(enum.Enum):
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"


class Activity(Base, GuidMixin):
    """
    Timeline activity.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid / guid: External identifier (act_xxx)
        type: Activity kind
        subject, description: Content
        owner_id: FK to the user who logged it
        related_type, related_id: Optional tagged reference
        participants: JSON list of {name, email}
        duration: Minutes
        outcome, next_action, next_action_date: Follow-up tracking
        attachments, tags: JSON lists
        is_important: Flag
        location, meeting_type, direction: Meeting/call details
    """

    __tablename__ = "activities"

    GUID_PREFIX = "act"

    id = Column(Integer, primary_key=True, autoincrement=True)

    type = Column(
        Enum(ActivityType, name="activity_type", create_constraint=True),
        nullable=False,
        index=True
    )
    subject = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    owner_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    related_type = Column(
        Enum(RelatedEntityType, name="related_entity_type", create_constraint=True),
        nullable=True
    )
    related_id = Column(String(100), nullable=True)

    participants = Column(JSONBType, default=list, nullable=False)
    duration = Column(Integer, nullable=True)
    outcome = Column(
        Enum(ActivityOutcome, name="activity_outcome", create_constraint=True),
        nullable=True
    )
    next_action = Column(String(500), nullable=True)
    next_action_date = Column(DateTime, nullable=True)
    attachments = Column(JSONBType, default=list, nullable=False)
    tags = Column(JSONBType, default=list, nullable=False)
    is_important = Column(Boolean, default=False, nullable=False)
    location = Column(String(255), nullable=True)
    meeting_type = Column(
        Enum(MeetingType, name="meeting_type", create_constraint=True),
        nullable=True
    )
    direction = Column(
        Enum(Direction, name="activity_direction", create_constraint=True),
        nullable=True
    )

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    owner = relationship("User", lazy="joined")

    __table_args__ = (
        Index("idx_activities_related", "related_type", "related_id"),
    )

    @property
    def owner_guid(self):
        return self.owner.guid if self.owner else None

    @property
    def related_to(self):
        if self.related_type is None:
            return None
        return {"type": self.related_type.value, "id": self.related_id}

    def __repr__(self) -> str:
        return f"<Activity(id={self.id}, type={self.type.value if self.type else None}, subject='{self.subject}')>"
