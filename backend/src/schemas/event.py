"""
Pydantic schemas for event API request/response validation.

Provides data validation and serialization for:
- Event creation and update requests
- Event API responses
- Event statistics

Design:
- Participants are referenced by user GUID (client_guid, planner_guid)
- Location and budget are nested documents
- end_date may not precede start_date
"""

from datetime import datetime, date, time
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

from backend.src.models import EventStatus, EventType
from backend.src.schemas.common import Address, UserSummary, serialize_utc


class Budget(BaseModel):
    total: float = Field(default=0, ge=0)
    spent: float = Field(default=0, ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


# ============================================================================
# Request Schemas
# ============================================================================


class EventCreate(BaseModel):
    """
    Schema for creating an event.

    Required:
        title: Event title
        event_type: Kind of occasion
        start_date: First day of the event
        client_guid: Client user GUID (usr_xxx)

    Optional:
        planner_guid: Planner user GUID (defaults to the creating planner)
        end_date, start_time, end_time: Schedule details
        location, budget: Nested documents
        guest_count, special_requirements, notes, is_private
    """

    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    event_type: EventType = Field(default=EventType.OTHER)

    start_date: date
    end_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    location: Optional[Address] = None
    client_guid: str = Field(..., description="Client user GUID (usr_xxx)")
    planner_guid: Optional[str] = Field(default=None, description="Planner user GUID (usr_xxx)")

    budget: Optional[Budget] = None
    guest_count: Optional[int] = Field(default=None, ge=0)
    special_requirements: Optional[str] = None
    notes: Optional[str] = None
    is_private: bool = False

    @field_validator("title")
    @classmethod
    def validate_title_not_whitespace(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title cannot be empty or whitespace")
        return v.strip()

    @model_validator(mode="after")
    def validate_date_order(self) -> "EventCreate":
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "Smith & Jones Wedding",
                "event_type": "WEDDING",
                "start_date": "2026-06-20",
                "start_time": "15:00",
                "client_guid": "usr_01hgw2bbg0000000000000001",
                "location": {"name": "Rose Garden", "city": "Portland", "state": "OR"},
                "budget": {"total": 25000, "spent": 0, "currency": "USD"},
                "guest_count": 120,
            }
        }
    }


class EventUpdate(BaseModel):
    """Schema for updating an event. All fields optional."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    event_type: Optional[EventType] = None
    status: Optional[EventStatus] = None

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    location: Optional[Address] = None
    client_guid: Optional[str] = None
    planner_guid: Optional[str] = None

    budget: Optional[Budget] = None
    guest_count: Optional[int] = Field(default=None, ge=0)
    special_requirements: Optional[str] = None
    notes: Optional[str] = None
    is_private: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def validate_title_not_whitespace(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Title cannot be empty or whitespace")
        return v.strip() if v else v


# ============================================================================
# Response Schemas
# ============================================================================


class EventResponse(BaseModel):
    """Schema for event API responses."""

    guid: str = Field(..., description="Event GUID (evt_xxx)")
    title: str
    description: Optional[str] = None
    event_type: EventType
    status: EventStatus

    start_date: date
    end_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    location: Optional[Address] = None
    client: Optional[UserSummary] = None
    planner: Optional[UserSummary] = None

    budget: Optional[Budget] = None
    guest_count: Optional[int] = None
    special_requirements: Optional[str] = None
    notes: Optional[str] = None
    is_private: bool

    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    @classmethod
    def serialize_datetime_utc(cls, v: datetime) -> str:
        return serialize_utc(v)

    model_config = {"from_attributes": True}


class EventStatsResponse(BaseModel):
    """Counts of events per status (optionally scoped to one planner)."""

    total: int
    by_status: Dict[str, int]
    upcoming: int


class EventListResponse(BaseModel):
    events: List[EventResponse]
    total: int
