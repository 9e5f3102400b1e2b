"""
Pydantic schemas for payment API request/response validation.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator

from backend.src.models import (
    PaymentMethod,
    PaymentStatus,
    PaymentType,
    RecurringFrequency,
)
from backend.src.schemas.common import serialize_utc


class RecurringDetails(BaseModel):
    frequency: RecurringFrequency
    interval: int = Field(default=1, ge=1)
    end_date: Optional[date] = None
    next_payment_date: Optional[date] = None


# ============================================================================
# Request Schemas
# ============================================================================


class PaymentCreate(BaseModel):
    """
    Schema for recording a payment.

    Payments are always created PENDING; status changes go through update.
    When client_guid is omitted the event's client is used.
    """

    event_guid: str = Field(..., description="Event GUID (evt_xxx)")
    vendor_guid: Optional[str] = Field(default=None, description="Vendor GUID (vnd_xxx)")
    client_guid: Optional[str] = Field(default=None, description="Client user GUID (usr_xxx)")

    amount: float = Field(..., gt=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    payment_method: PaymentMethod = PaymentMethod.OTHER
    payment_type: PaymentType = PaymentType.FULL_PAYMENT

    description: Optional[str] = None
    notes: Optional[str] = None
    due_date: Optional[datetime] = None

    invoice_number: Optional[str] = Field(default=None, max_length=100)
    transaction_id: Optional[str] = Field(default=None, max_length=255)
    reference_number: Optional[str] = Field(default=None, max_length=255)

    is_recurring: bool = False
    recurring_details: Optional[RecurringDetails] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    model_config = {
        "json_schema_extra": {
            "example": {
                "event_guid": "evt_01hgw2bbg0000000000000001",
                "amount": 2500.0,
                "payment_method": "BANK_TRANSFER",
                "payment_type": "DEPOSIT",
                "due_date": "2026-03-01T00:00:00",
            }
        }
    }


class PaymentUpdate(BaseModel):
    """Schema for updating a payment. Status changes follow the payment lifecycle."""

    vendor_guid: Optional[str] = None
    amount: Optional[float] = Field(default=None, gt=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    status: Optional[PaymentStatus] = None
    payment_method: Optional[PaymentMethod] = None
    payment_type: Optional[PaymentType] = None

    description: Optional[str] = None
    notes: Optional[str] = None
    due_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None

    invoice_number: Optional[str] = Field(default=None, max_length=100)
    transaction_id: Optional[str] = Field(default=None, max_length=255)
    reference_number: Optional[str] = Field(default=None, max_length=255)

    is_recurring: Optional[bool] = None
    recurring_details: Optional[RecurringDetails] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


# ============================================================================
# Response Schemas
# ============================================================================


class PaymentResponse(BaseModel):
    guid: str = Field(..., description="Payment GUID (pay_xxx)")
    event_guid: str
    vendor_guid: Optional[str] = None
    client_guid: str

    amount: float
    currency: str
    status: PaymentStatus
    payment_method: PaymentMethod
    payment_type: PaymentType

    description: Optional[str] = None
    notes: Optional[str] = None
    due_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None
    is_overdue: bool

    invoice_number: Optional[str] = None
    transaction_id: Optional[str] = None
    reference_number: Optional[str] = None

    is_recurring: bool
    recurring_details: Optional[RecurringDetails] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="extra_metadata")

    created_at: datetime
    updated_at: datetime

    @field_serializer("due_date", "paid_date", "created_at", "updated_at")
    @classmethod
    def serialize_datetime_utc(cls, v: Optional[datetime]) -> Optional[str]:
        return serialize_utc(v)

    model_config = {"from_attributes": True, "populate_by_name": True}


class PaymentStatsResponse(BaseModel):
    """
    Aggregate payment figures.

    Amount fields are sums of ``amount`` over payments in that status.
    """

    total: int
    total_amount: float
    pending_amount: float
    completed_amount: float
    failed_amount: float
    refunded_amount: float
    overdue_count: int
    overdue_amount: float
    by_status: Dict[str, int]
    by_payment_method: Dict[str, int]


class PaymentListResponse(BaseModel):
    payments: List[PaymentResponse]
    total: int
