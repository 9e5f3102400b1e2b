"""
Pydantic schemas for activity API request/response validation.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer

from backend.src.models import ActivityOutcome, ActivityType, Direction, MeetingType
from backend.src.schemas.common import RelatedTo, serialize_utc


class Participant(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)


class ActivityCreate(BaseModel):
    type: ActivityType
    subject: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    related_to: Optional[RelatedTo] = None
    participants: List[Participant] = Field(default_factory=list)
    duration: Optional[int] = Field(default=None, ge=0, description="Minutes")
    outcome: Optional[ActivityOutcome] = None
    next_action: Optional[str] = Field(default=None, max_length=500)
    next_action_date: Optional[datetime] = None
    attachments: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    is_important: bool = False
    location: Optional[str] = Field(default=None, max_length=255)
    meeting_type: Optional[MeetingType] = None
    direction: Optional[Direction] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "type": "CALL",
                "subject": "Venue walkthrough follow-up",
                "related_to": {"type": "DEAL", "id": "deal-42"},
                "duration": 15,
                "outcome": "POSITIVE",
                "direction": "OUTBOUND",
            }
        }
    }


class ActivityUpdate(BaseModel):
    type: Optional[ActivityType] = None
    subject: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    related_to: Optional[RelatedTo] = None
    participants: Optional[List[Participant]] = None
    duration: Optional[int] = Field(default=None, ge=0)
    outcome: Optional[ActivityOutcome] = None
    next_action: Optional[str] = Field(default=None, max_length=500)
    next_action_date: Optional[datetime] = None
    attachments: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    is_important: Optional[bool] = None
    location: Optional[str] = Field(default=None, max_length=255)
    meeting_type: Optional[MeetingType] = None
    direction: Optional[Direction] = None


class ActivityResponse(BaseModel):
    guid: str = Field(..., description="Activity GUID (act_xxx)")
    type: ActivityType
    subject: str
    description: Optional[str] = None
    owner_guid: str
    related_to: Optional[RelatedTo] = None
    participants: List[Participant]
    duration: Optional[int] = None
    outcome: Optional[ActivityOutcome] = None
    next_action: Optional[str] = None
    next_action_date: Optional[datetime] = None
    attachments: List[str]
    tags: List[str]
    is_important: bool
    location: Optional[str] = None
    meeting_type: Optional[MeetingType] = None
    direction: Optional[Direction] = None
    created_at: datetime
    updated_at: datetime

    @field_serializer("next_action_date", "created_at", "updated_at")
    @classmethod
    def serialize_datetime_utc(cls, v: Optional[datetime]) -> Optional[str]:
        return serialize_utc(v)

    model_config = {"from_attributes": True}


class ActivityListResponse(BaseModel):
    activities: List[ActivityResponse]
    total: int
