"""
Shared Pydantic schemas used by several record types.

- RelatedTo: tagged reference to a CRM record (contact, lead, deal, task)
- Address: postal location stored on events and vendors
- PipelineCurrency: currencies accepted on leads and deals
- DeleteResponse / MessageResponse: simple acknowledgements
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from backend.src.models import RelatedEntityType


class RelatedTo(BaseModel):
    """Reference to a related record: {"type": "DEAL", "id": "..."}."""

    type: RelatedEntityType
    id: str = Field(..., min_length=1, max_length=100)

    @field_validator("id")
    @classmethod
    def validate_id_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Related record id cannot be blank")
        return v.strip()


# Currencies accepted on pipeline records (leads and deals)
PipelineCurrency = Literal["USD", "EUR", "GBP", "CAD", "AUD"]


class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class Address(BaseModel):
    """Postal location document."""

    name: Optional[str] = Field(default=None, max_length=255)
    address: Optional[str] = Field(default=None, max_length=500)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    country: Optional[str] = Field(default=None, max_length=100)
    coordinates: Optional[Coordinates] = None


class UserSummary(BaseModel):
    """Minimal user reference embedded in other responses."""

    guid: str = Field(..., description="User GUID (usr_xxx)")
    email: str
    full_name: str

    model_config = {"from_attributes": True}


class DeleteResponse(BaseModel):
    guid: str
    deleted: bool = True


class MessageResponse(BaseModel):
    message: str


def serialize_utc(v: Optional[datetime]) -> Optional[str]:
    """Serialize naive UTC datetimes as ISO 8601 with an explicit Z."""
    return v.isoformat() + "Z" if v else None
