"""
Pydantic schemas for deal API request/response validation.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer

from backend.src.models import DealStage, DealType
from backend.src.schemas.common import PipelineCurrency, serialize_utc


class DealProduct(BaseModel):
    """Product line; total_price is computed by the server."""

    product: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(..., ge=1)
    unit_price: float = Field(..., ge=0)
    discount: float = Field(default=0, ge=0, le=100, description="Percent")


class DealProductResponse(DealProduct):
    total_price: float


class DealCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    value: float = Field(default=0, ge=0, description="Ignored when products are given")
    currency: PipelineCurrency = "USD"
    stage: DealStage = DealStage.PROSPECTING
    probability: int = Field(default=10, ge=0, le=100)
    deal_type: DealType = DealType.NEW_BUSINESS
    expected_close_date: datetime
    contact_guid: Optional[str] = Field(default=None, description="Contact GUID (con_xxx)")
    lead_guid: Optional[str] = Field(default=None, description="Lead GUID (led_xxx)")
    company: Optional[str] = Field(default=None, max_length=255)
    source: str = Field(..., min_length=1, max_length=100)
    campaign: Optional[str] = Field(default=None, max_length=255)
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    competitors: List[str] = Field(default_factory=list)
    decision_makers: List[str] = Field(default_factory=list, description="Contact GUIDs")
    products: List[DealProduct] = Field(default_factory=list)
    last_activity_date: Optional[datetime] = None
    next_follow_up: Optional[datetime] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Harbor Bank holiday gala",
                "expected_close_date": "2026-11-30T00:00:00",
                "source": "Referral",
                "probability": 40,
                "products": [
                    {"product": "Full planning package", "quantity": 1, "unit_price": 18000, "discount": 10},
                ],
            }
        }
    }


class DealUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    value: Optional[float] = Field(default=None, ge=0)
    currency: Optional[PipelineCurrency] = None
    stage: Optional[DealStage] = None
    probability: Optional[int] = Field(default=None, ge=0, le=100)
    deal_type: Optional[DealType] = None
    expected_close_date: Optional[datetime] = None
    actual_close_date: Optional[datetime] = None
    contact_guid: Optional[str] = None
    lead_guid: Optional[str] = None
    company: Optional[str] = Field(default=None, max_length=255)
    source: Optional[str] = Field(default=None, min_length=1, max_length=100)
    campaign: Optional[str] = Field(default=None, max_length=255)
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    competitors: Optional[List[str]] = None
    decision_makers: Optional[List[str]] = None
    products: Optional[List[DealProduct]] = None
    last_activity_date: Optional[datetime] = None
    next_follow_up: Optional[datetime] = None


class DealResponse(BaseModel):
    guid: str = Field(..., description="Deal GUID (dea_xxx)")
    name: str
    description: Optional[str] = None
    value: float
    weighted_value: float
    currency: str
    stage: DealStage
    probability: int
    deal_type: DealType
    expected_close_date: datetime
    actual_close_date: Optional[datetime] = None
    is_overdue: bool
    days_in_pipeline: int
    owner_guid: str
    contact_guid: Optional[str] = None
    lead_guid: Optional[str] = None
    company: Optional[str] = None
    source: str
    campaign: Optional[str] = None
    tags: List[str]
    notes: Optional[str] = None
    competitors: List[str]
    decision_makers: List[str]
    products: List[DealProductResponse]
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


class DealListResponse(BaseModel):
    deals: List[DealResponse]
    total: int


class PipelineStage(BaseModel):
    stage: DealStage
    count: int
    value: float
    weighted_value: float


class DealPipelineResponse(BaseModel):
    stages: List[PipelineStage]
    open_value: float
    weighted_open_value: float
