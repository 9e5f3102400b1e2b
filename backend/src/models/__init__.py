"""
SQLAlchemy models for the Event Planner CRM.

This module provides the declarative base class and imports all models
to ensure they are registered with SQLAlchemy's metadata.
"""

from sqlalchemy.orm import declarative_base

# All models inherit from this Base class
Base = declarative_base()


# Import all models here so they are registered with Base.metadata
# (required for Alembic autogenerate)
from backend.src.models.user import User, UserRole, DEFAULT_PREFERENCES
from backend.src.models.event import Event, EventType, EventStatus, EVENT_STATUS_TRANSITIONS
from backend.src.models.vendor import Vendor, PricingModel
from backend.src.models.payment import (
    Payment,
    PaymentStatus,
    PaymentMethod,
    PaymentType,
    RecurringFrequency,
    PAYMENT_STATUS_TRANSITIONS,
    OPEN_PAYMENT_STATUSES,
)
from backend.src.models.activity import (
    Activity,
    ActivityType,
    ActivityOutcome,
    MeetingType,
    Direction,
    RelatedEntityType,
)
from backend.src.models.task import Task, TaskType, TaskStatus, TaskPriority, CLOSED_TASK_STATUSES
from backend.src.models.contact import Contact, ContactStatus
from backend.src.models.lead import (
    Lead,
    LeadStatus,
    LeadPriority,
    LeadSourceType,
    CLOSED_LEAD_STATUSES,
)
from backend.src.models.deal import Deal, DealStage, DealType, CLOSED_DEAL_STAGES

__all__ = [
    "Base",
    # Users
    "User",
    "UserRole",
    "DEFAULT_PREFERENCES",
    # Events
    "Event",
    "EventType",
    "EventStatus",
    "EVENT_STATUS_TRANSITIONS",
    # Vendors
    "Vendor",
    "PricingModel",
    # Payments
    "Payment",
    "PaymentStatus",
    "PaymentMethod",
    "PaymentType",
    "RecurringFrequency",
    "PAYMENT_STATUS_TRANSITIONS",
    "OPEN_PAYMENT_STATUSES",
    # Activities
    "Activity",
    "ActivityType",
    "ActivityOutcome",
    "MeetingType",
    "Direction",
    "RelatedEntityType",
    # Tasks
    "Task",
    "TaskType",
    "TaskStatus",
    "TaskPriority",
    "CLOSED_TASK_STATUSES",
    # Contacts
    "Contact",
    "ContactStatus",
    # Leads
    "Lead",
    "LeadStatus",
    "LeadPriority",
    "LeadSourceType",
    "CLOSED_LEAD_STATUSES",
    # Deals
    "Deal",
    "DealStage",
    "DealType",
    "CLOSED_DEAL_STAGES",
]
