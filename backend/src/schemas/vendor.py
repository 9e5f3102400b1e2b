"""
Pydantic schemas for vendor API request/response validation.
"""

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer, model_validator

from backend.src.models import PricingModel
from backend.src.schemas.common import Address, serialize_utc


class ContactPerson(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    title: Optional[str] = Field(default=None, max_length=255)


class Rating(BaseModel):
    average: float = Field(default=0, ge=0, le=5)
    count: int = Field(default=0, ge=0)


class Pricing(BaseModel):
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    pricing_model: PricingModel = PricingModel.FIXED

    @model_validator(mode="after")
    def validate_range(self) -> "Pricing":
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price cannot exceed max_price")
        return self


class Availability(BaseModel):
    is_available: bool = True
    working_hours: Optional[Dict[str, str]] = None
    blackout_dates: List[date] = Field(default_factory=list)


class VendorDocument(BaseModel):
    name: str
    url: str
    type: Optional[str] = None


class VendorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    business_name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    website: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = None

    categories: List[str] = Field(default_factory=list)
    services: List[str] = Field(default_factory=list)
    location: Optional[Address] = None
    contact_person: Optional[ContactPerson] = None
    pricing: Optional[Pricing] = None
    availability: Availability = Field(default_factory=Availability)
    documents: List[VendorDocument] = Field(default_factory=list)
    social_media: Optional[Dict[str, str]] = None
    notes: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Bloom & Co",
                "categories": ["florist"],
                "services": ["bouquets", "centerpieces"],
                "location": {"city": "Portland", "state": "OR"},
                "pricing": {"min_price": 500, "max_price": 5000, "pricing_model": "FIXED"},
            }
        }
    }


class VendorUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    business_name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    website: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = None

    categories: Optional[List[str]] = None
    services: Optional[List[str]] = None
    location: Optional[Address] = None
    contact_person: Optional[ContactPerson] = None
    rating: Optional[Rating] = None
    pricing: Optional[Pricing] = None
    availability: Optional[Availability] = None
    documents: Optional[List[VendorDocument]] = None
    social_media: Optional[Dict[str, str]] = None
    is_active: Optional[bool] = None
    is_verified: Optional[bool] = None
    notes: Optional[str] = None


class VendorResponse(BaseModel):
    guid: str = Field(..., description="Vendor GUID (vnd_xxx)")
    name: str
    business_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None

    categories: List[str]
    services: List[str]
    location: Optional[Address] = None
    contact_person: Optional[ContactPerson] = None
    rating: Rating
    pricing: Optional[Pricing] = None
    availability: Availability
    documents: List[VendorDocument]
    social_media: Optional[Dict[str, str]] = None
    is_active: bool
    is_verified: bool
    notes: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    @classmethod
    def serialize_datetime_utc(cls, v: datetime) -> str:
        return serialize_utc(v)

    model_config = {"from_attributes": True}


class VendorStatsResponse(BaseModel):
    total: int
    active: int
    verified: int
    by_category: Dict[str, int]


class VendorListResponse(BaseModel):
    vendors: List[VendorResponse]
    total: int
