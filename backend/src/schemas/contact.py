"""
Pydantic schemas for contact API request/response validation.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator

from backend.src.models import ContactStatus
from backend.src.schemas.common import serialize_utc
from backend.src.schemas.user import normalize_email


class ContactAddress(BaseModel):
    street: Optional[str] = Field(default=None, max_length=500)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    country: Optional[str] = Field(default=None, max_length=100)


class CommunicationPreferences(BaseModel):
    email: bool = True
    phone: bool = True
    sms: bool = False
    preferred_time: str = "9:00 AM - 5:00 PM"
    timezone: str = "UTC"


class SocialProfiles(BaseModel):
    linkedin: Optional[str] = None
    twitter: Optional[str] = None
    facebook: Optional[str] = None
    instagram: Optional[str] = None


class ContactCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    mobile: Optional[str] = Field(default=None, max_length=50)
    company: Optional[str] = Field(default=None, max_length=255)
    job_title: Optional[str] = Field(default=None, max_length=255)
    department: Optional[str] = Field(default=None, max_length=255)
    address: Optional[ContactAddress] = None
    website: Optional[str] = Field(default=None, max_length=500)
    source: str = Field(..., min_length=1, max_length=100)
    notes: Optional[str] = None
    avatar_url: Optional[str] = None
    status: ContactStatus = ContactStatus.PROSPECT
    lead_score: int = Field(default=0, ge=0, le=100)
    tags: List[str] = Field(default_factory=list)
    custom_fields: Optional[Dict[str, Any]] = None
    assigned_to_guid: Optional[str] = Field(default=None, description="Assignee GUID (usr_xxx)")
    last_contact_date: Optional[datetime] = None
    next_follow_up: Optional[datetime] = None
    communication_preferences: CommunicationPreferences = Field(default_factory=CommunicationPreferences)
    social_profiles: Optional[SocialProfiles] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return normalize_email(v) if v else None

    model_config = {
        "json_schema_extra": {
            "example": {
                "first_name": "Priya",
                "last_name": "Shah",
                "email": "priya@harborbank.example",
                "company": "Harbor Bank",
                "job_title": "Events Lead",
                "source": "Referral",
                "tags": ["corporate"],
            }
        }
    }


class ContactUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    mobile: Optional[str] = Field(default=None, max_length=50)
    company: Optional[str] = Field(default=None, max_length=255)
    job_title: Optional[str] = Field(default=None, max_length=255)
    department: Optional[str] = Field(default=None, max_length=255)
    address: Optional[ContactAddress] = None
    website: Optional[str] = Field(default=None, max_length=500)
    source: Optional[str] = Field(default=None, min_length=1, max_length=100)
    notes: Optional[str] = None
    avatar_url: Optional[str] = None
    status: Optional[ContactStatus] = None
    lead_score: Optional[int] = Field(default=None, ge=0, le=100)
    tags: Optional[List[str]] = None
    custom_fields: Optional[Dict[str, Any]] = None
    assigned_to_guid: Optional[str] = None
    last_contact_date: Optional[datetime] = None
    next_follow_up: Optional[datetime] = None
    communication_preferences: Optional[CommunicationPreferences] = None
    social_profiles: Optional[SocialProfiles] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return normalize_email(v) if v else None


class ContactResponse(BaseModel):
    guid: str = Field(..., description="Contact GUID (con_xxx)")
    first_name: str
    last_name: str
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    company: Optional[str] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    address: Optional[ContactAddress] = None
    website: Optional[str] = None
    source: str
    notes: Optional[str] = None
    avatar_url: Optional[str] = None
    status: ContactStatus
    lead_score: int
    score: int = Field(..., description="lead_score plus completeness and recency points")
    tags: List[str]
    custom_fields: Optional[Dict[str, Any]] = None
    owner_guid: str
    assigned_to_guid: Optional[str] = None
    last_contact_date: Optional[datetime] = None
    next_follow_up: Optional[datetime] = None
    communication_preferences: CommunicationPreferences
    social_profiles: Optional[SocialProfiles] = None
    created_at: datetime
    updated_at: datetime

    @field_serializer("last_contact_date", "next_follow_up", "created_at", "updated_at")
    @classmethod
    def serialize_datetime_utc(cls, v: Optional[datetime]) -> Optional[str]:
        return serialize_utc(v)

    model_config = {"from_attributes": True}


class ContactListResponse(BaseModel):
    contacts: List[ContactResponse]
    total: int
