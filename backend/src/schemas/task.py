"""
Pydantic schemas for task API request/response validation.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer

from backend.src.models import TaskPriority, TaskStatus, TaskType
from backend.src.schemas.common import RelatedTo, serialize_utc


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: TaskType = TaskType.OTHER
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    assigned_to_guid: Optional[str] = Field(default=None, description="Assignee GUID (usr_xxx)")
    event_guid: Optional[str] = Field(default=None, description="Event GUID (evt_xxx)")
    related_to: Optional[RelatedTo] = None
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    is_recurring: bool = False
    recurring_pattern: Optional[Dict[str, Any]] = None
    estimated_duration: Optional[int] = Field(default=None, ge=0, description="Minutes")

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "Confirm catering headcount",
                "type": "FOLLOW_UP",
                "priority": "HIGH",
                "due_date": "2026-05-01T17:00:00",
                "assigned_to_guid": "usr_01hgw2bbg0000000000000002",
            }
        }
    }


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[TaskType] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    assigned_to_guid: Optional[str] = None
    event_guid: Optional[str] = None
    related_to: Optional[RelatedTo] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    is_recurring: Optional[bool] = None
    recurring_pattern: Optional[Dict[str, Any]] = None
    estimated_duration: Optional[int] = Field(default=None, ge=0)
    actual_duration: Optional[int] = Field(default=None, ge=0)


class TaskResponse(BaseModel):
    guid: str = Field(..., description="Task GUID (tsk_xxx)")
    title: str
    description: Optional[str] = None
    type: TaskType
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    is_overdue: bool
    owner_guid: str
    assigned_to_guid: Optional[str] = None
    event_guid: Optional[str] = None
    related_to: Optional[RelatedTo] = None
    tags: List[str]
    notes: Optional[str] = None
    is_recurring: bool
    recurring_pattern: Optional[Dict[str, Any]] = None
    estimated_duration: Optional[int] = None
    actual_duration: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    @field_serializer("due_date", "completed_date", "created_at", "updated_at")
    @classmethod
    def serialize_datetime_utc(cls, v: Optional[datetime]) -> Optional[str]:
        return serialize_utc(v)

    model_config = {"from_attributes": True}


class TaskListResponse(BaseModel):
    tasks: List[TaskResponse]
    total: int
