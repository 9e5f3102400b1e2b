"""
Event model for planned occasions (weddings, conferences, parties, ...).

Each event belongs to a client and is run by a planner. Location and
budget are nested JSON documents.

Design Rationale:
- status follows a forward-only lifecycle (see EVENT_STATUS_TRANSITIONS)
- COMPLETED and CANCELLED are terminal
- Times are stored separately from dates, as entered by the planner
"""

import enum
from datetime import datetime, date
from typing import Dict, FrozenSet

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, Time, Text,
    ForeignKey, Enum, Index, CheckConstraint
)
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin
from backend.src.models.types import JSONBType


class EventType(enum.Enum):
    WEDDING = "WEDDING"
    CORPORATE = "CORPORATE"
    BIRTHDAY = "BIRTHDAY"
    ANNIVERSARY = "ANNIVERSARY"
    CONFERENCE = "CONFERENCE"
    PARTY = "PARTY"
    OTHER = "OTHER"


class EventStatus(enum.Enum):
    """
    Event lifecycle status.

    State transitions:
    - PLANNING → CONFIRMED → IN_PROGRESS → COMPLETED
    - any non-terminal state → CANCELLED
    """
    PLANNING = "PLANNING"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


EVENT_STATUS_TRANSITIONS: Dict[EventStatus, FrozenSet[EventStatus]] = {
    EventStatus.PLANNING: frozenset({EventStatus.CONFIRMED, EventStatus.CANCELLED}),
    EventStatus.CONFIRMED: frozenset({EventStatus.IN_PROGRESS, EventStatus.CANCELLED}),
    EventStatus.IN_PROGRESS: frozenset({EventStatus.COMPLETED, EventStatus.CANCELLED}),
    EventStatus.COMPLETED: frozenset(),
    EventStatus.CANCELLED: frozenset(),
}


class Event(Base, GuidMixin):
    """
    Planned event.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid / guid: External identifier (evt_xxx)
        title, description: Display fields
        event_type: Kind of occasion
        status: Lifecycle status
        start_date, end_date: Calendar dates (end >= start)
        start_time, end_time: Optional times of day
        location: JSON {name, address, city, state, zip_code, country, coordinates}
        client_id: FK to the client user
        planner_id: FK to the planner user
        budget: JSON {total, spent, currency}
        guest_count: Expected number of guests
        special_requirements, notes: Free text
        is_private: Hidden from non-participants
    """

    __tablename__ = "events"

    GUID_PREFIX = "evt"

    id = Column(Integer, primary_key=True, autoincrement=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    event_type = Column(
        Enum(EventType, name="event_type", create_constraint=True),
        default=EventType.OTHER,
        nullable=False
    )
    status = Column(
        Enum(EventStatus, name="event_status", create_constraint=True),
        default=EventStatus.PLANNING,
        nullable=False,
        index=True
    )

    # Schedule
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=True)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)

    location = Column(JSONBType, nullable=True)

    # Participants
    client_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    planner_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    budget = Column(JSONBType, nullable=True)
    guest_count = Column(Integer, nullable=True)
    special_requirements = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    is_private = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    client = relationship("User", foreign_keys=[client_id], lazy="joined")
    planner = relationship("User", foreign_keys=[planner_id], lazy="joined")
    payments = relationship(
        "Payment",
        back_populates="event",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_events_planner_status", "planner_id", "status"),
        CheckConstraint(
            "guest_count IS NULL OR guest_count >= 0",
            name="ck_events_guest_count_non_negative"
        ),
    )

    @property
    def client_guid(self):
        return self.client.guid if self.client else None

    @property
    def planner_guid(self):
        return self.planner.guid if self.planner else None

    @property
    def is_terminal(self) -> bool:
        return not EVENT_STATUS_TRANSITIONS[self.status]

    @property
    def is_upcoming(self) -> bool:
        return self.start_date >= date.today() and not self.is_terminal

    def can_transition_to(self, status: EventStatus) -> bool:
        return status == self.status or status in EVENT_STATUS_TRANSITIONS[self.status]

    def __repr__(self) -> str:
        return (
            f"<Event(id={self.id}, title='{self.title}', "
            f"start_date={self.start_date}, status={self.status.value if self.status else None})>"
        )
