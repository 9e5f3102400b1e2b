"""
Pydantic schemas for lead API request/response validation.

Leads never accept a score from callers; it is derived on every write.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator

from backend.src.models import LeadPriority, LeadSourceType, LeadStatus
from backend.src.schemas.common import PipelineCurrency, serialize_utc
from backend.src.schemas.user import normalize_email


class LeadSource(BaseModel):
    type: LeadSourceType = LeadSourceType.OTHER
    campaign: Optional[str] = Field(default=None, max_length=255)
    medium: Optional[str] = Field(default=None, max_length=100)
    referrer: Optional[str] = Field(default=None, max_length=255)


class QualificationCriteria(BaseModel):
    budget: bool = False
    authority: bool = False
    need: bool = False
    timeline: bool = False


class LeadCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    company: Optional[str] = Field(default=None, max_length=255)
    job_title: Optional[str] = Field(default=None, max_length=255)
    source: str = Field(..., min_length=1, max_length=100)
    status: LeadStatus = LeadStatus.NEW
    priority: LeadPriority = LeadPriority.MEDIUM
    estimated_value: Optional[float] = Field(default=None, ge=0)
    currency: PipelineCurrency = "USD"
    expected_close_date: Optional[datetime] = None
    assigned_to_guid: Optional[str] = Field(default=None, description="Assignee GUID (usr_xxx)")
    contact_guid: Optional[str] = Field(default=None, description="Contact GUID (con_xxx)")
    lead_source: Optional[LeadSource] = None
    qualification_criteria: QualificationCriteria = Field(default_factory=QualificationCriteria)
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    last_activity_date: Optional[datetime] = None
    next_follow_up: Optional[datetime] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return normalize_email(v) if v else None

    model_config = {
        "json_schema_extra": {
            "example": {
                "first_name": "Marco",
                "last_name": "Rossi",
                "company": "Rossi Wines",
                "source": "Trade show",
                "estimated_value": 12000,
                "lead_source": {"type": "EVENT", "campaign": "Spring expo"},
                "qualification_criteria": {"budget": True, "need": True},
            }
        }
    }


class LeadUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    company: Optional[str] = Field(default=None, max_length=255)
    job_title: Optional[str] = Field(default=None, max_length=255)
    source: Optional[str] = Field(default=None, min_length=1, max_length=100)
    status: Optional[LeadStatus] = None
    priority: Optional[LeadPriority] = None
    estimated_value: Optional[float] = Field(default=None, ge=0)
    currency: Optional[PipelineCurrency] = None
    expected_close_date: Optional[datetime] = None
    actual_close_date: Optional[datetime] = None
    assigned_to_guid: Optional[str] = None
    contact_guid: Optional[str] = None
    lead_source: Optional[LeadSource] = None
    qualification_criteria: Optional[QualificationCriteria] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    last_activity_date: Optional[datetime] = None
    next_follow_up: Optional[datetime] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return normalize_email(v) if v else None


class LeadResponse(BaseModel):
    guid: str = Field(..., description="Lead GUID (led_xxx)")
    first_name: str
    last_name: str
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    job_title: Optional[str] = None
    source: str
    status: LeadStatus
    priority: LeadPriority
    score: int
    estimated_value: Optional[float] = None
    currency: str
    expected_close_date: Optional[datetime] = None
    actual_close_date: Optional[datetime] = None
    days_in_pipeline: int
    owner_guid: str
    assigned_to_guid: Optional[str] = None
    contact_guid: Optional[str] = None
    lead_source: Optional[LeadSource] = None
    qualification_criteria: Optional[QualificationCriteria] = None
    tags: List[str]
    notes: Optional[str] = None
    last_activity_date: Optional[datetime] = None
    next_follow_up: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_serializer(
        "expected_close_date", "actual_close_date", "last_activity_date",
        "next_follow_up", "created_at", "updated_at",
    )
    @classmethod
    def serialize_datetime_utc(cls, v: Optional[datetime]) -> Optional[str]:
        return serialize_utc(v)

    model_config = {"from_attributes": True}


class LeadListResponse(BaseModel):
    leads: List[LeadResponse]
    total: int
