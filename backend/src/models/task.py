"""
Task model for follow-ups owned by one user and optionally assigned to another.

Assigning a task notifies the assignee over the real-time channel.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text, ForeignKey, Enum, Index
)
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.activity import RelatedEntityType
from backend.src.models.mixins import GuidMixin
from backend.src.models.types import JSONBType


class TaskType(enum.Enum):
    CALL = "CALL"
    EMAIL = "EMAIL"
    MEETING = "MEETING"
    FOLLOW_UP = "FOLLOW_UP"
    PROPOSAL = "PROPOSAL"
    DEMO = "DEMO"
    OTHER = "OTHER"


class TaskStatus(enum.Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TaskPriority(enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


CLOSED_TASK_STATUSES = (TaskStatus.COMPLETED, TaskStatus.CANCELLED)


class Task(Base, GuidMixin):
    """
    Task record.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid / guid: External identifier (tsk_xxx)
        title, description: Content
        type, status, priority: Classification
        due_date, completed_date: Schedule (completed_date stamped on completion)
        owner_id: FK to the creating user
        assigned_to_id: FK to the assignee (optional)
        event_id: FK to an event (optional)
        related_type, related_id: Optional tagged reference
        tags: JSON list
        notes: Free text
        is_recurring, recurring_pattern: JSON schedule
        estimated_duration, actual_duration: Minutes
    """

    __tablename__ = "tasks"

    GUID_PREFIX = "tsk"

    id = Column(Integer, primary_key=True, autoincrement=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(
        Enum(TaskType, name="task_type", create_constraint=True),
        default=TaskType.OTHER,
        nullable=False
    )
    status = Column(
        Enum(TaskStatus, name="task_status", create_constraint=True),
        default=TaskStatus.PENDING,
        nullable=False,
        index=True
    )
    priority = Column(
        Enum(TaskPriority, name="task_priority", create_constraint=True),
        default=TaskPriority.MEDIUM,
        nullable=False
    )

    due_date = Column(DateTime, nullable=True, index=True)
    completed_date = Column(DateTime, nullable=True)

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
    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )

    related_type = Column(
        Enum(RelatedEntityType, name="related_entity_type", create_constraint=True),
        nullable=True
    )
    related_id = Column(String(100), nullable=True)

    tags = Column(JSONBType, default=list, nullable=False)
    notes = Column(Text, nullable=True)
    is_recurring = Column(Boolean, default=False, nullable=False)
    recurring_pattern = Column(JSONBType, nullable=True)
    estimated_duration = Column(Integer, nullable=True)
    actual_duration = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    owner = relationship("User", foreign_keys=[owner_id], lazy="joined")
    assigned_to = relationship("User", foreign_keys=[assigned_to_id], lazy="joined")
    event = relationship("Event", lazy="joined")

    __table_args__ = (
        Index("idx_tasks_assignee_status", "assigned_to_id", "status"),
    )

    @property
    def owner_guid(self):
        return self.owner.guid if self.owner else None

    @property
    def assigned_to_guid(self):
        return self.assigned_to.guid if self.assigned_to else None

    @property
    def event_guid(self):
        return self.event.guid if self.event else None

    @property
    def related_to(self):
        if self.related_type is None:
            return None
        return {"type": self.related_type.value, "id": self.related_id}

    @property
    def is_overdue(self) -> bool:
        return (
            self.due_date is not None
            and self.due_date < datetime.utcnow()
            and self.status not in CLOSED_TASK_STATUSES
        )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, title='{self.title}', status={self.status.value if self.status else None})>"
