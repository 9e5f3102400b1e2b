"""
Payment model for money owed or received against an event.

Design Rationale:
- A payment always belongs to an event and a client; the vendor is optional
- Status transitions are explicit (see PAYMENT_STATUS_TRANSITIONS)
- Completing a payment stamps paid_date when none is given
- Recurring schedules are stored as a JSON document
"""

import enum
from datetime import datetime
from typing import Dict, FrozenSet

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text, ForeignKey, Enum,
    CheckConstraint, Index
)
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin
from backend.src.models.types import JSONBType, Money


class PaymentStatus(enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    CANCELLED = "CANCELLED"


class PaymentMethod(enum.Enum):
    CREDIT_CARD = "CREDIT_CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    CASH = "CASH"
    CHECK = "CHECK"
    OTHER = "OTHER"


class PaymentType(enum.Enum):
    DEPOSIT = "DEPOSIT"
    FINAL_PAYMENT = "FINAL_PAYMENT"
    INSTALLMENT = "INSTALLMENT"
    FULL_PAYMENT = "FULL_PAYMENT"
    REFUND = "REFUND"


class RecurringFrequency(enum.Enum):
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


PAYMENT_STATUS_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PROCESSING, PaymentStatus.CANCELLED}),
    PaymentStatus.PROCESSING: frozenset({
        PaymentStatus.COMPLETED, PaymentStatus.FAILED, PaymentStatus.CANCELLED,
    }),
    PaymentStatus.COMPLETED: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.FAILED: frozenset({PaymentStatus.PENDING}),
    PaymentStatus.REFUNDED: frozenset(),
    PaymentStatus.CANCELLED: frozenset(),
}

# Statuses that still count as money outstanding
OPEN_PAYMENT_STATUSES = (PaymentStatus.PENDING, PaymentStatus.PROCESSING)


class Payment(Base, GuidMixin):
    """
    Payment record.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid / guid: External identifier (pay_xxx)
        event_id, vendor_id, client_id: Related records
        amount, currency: Money (amount > 0)
        status, payment_method, payment_type: Classification
        description, notes: Free text
        due_date, paid_date: Schedule
        invoice_number, transaction_id, reference_number: External references
        is_recurring, recurring_details: JSON {frequency, interval, end_date, next_payment_date}
        extra_metadata: Arbitrary JSON (column name "metadata")
    """

    __tablename__ = "payments"

    GUID_PREFIX = "pay"

    id = Column(Integer, primary_key=True, autoincrement=True)

    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    vendor_id = Column(
        Integer,
        ForeignKey("vendors.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    client_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    amount = Column(Money(), nullable=False)
    currency = Column(String(3), default="USD", nullable=False)
    status = Column(
        Enum(PaymentStatus, name="payment_status", create_constraint=True),
        default=PaymentStatus.PENDING,
        nullable=False,
        index=True
    )
    payment_method = Column(
        Enum(PaymentMethod, name="payment_method", create_constraint=True),
        default=PaymentMethod.OTHER,
        nullable=False
    )
    payment_type = Column(
        Enum(PaymentType, name="payment_type", create_constraint=True),
        default=PaymentType.FULL_PAYMENT,
        nullable=False
    )

    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    due_date = Column(DateTime, nullable=True, index=True)
    paid_date = Column(DateTime, nullable=True)

    invoice_number = Column(String(100), nullable=True, unique=True)
    transaction_id = Column(String(255), nullable=True)
    reference_number = Column(String(255), nullable=True)

    is_recurring = Column(Boolean, default=False, nullable=False)
    recurring_details = Column(JSONBType, nullable=True)
    # "metadata" is reserved on declarative classes
    extra_metadata = Column("metadata", JSONBType, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    event = relationship("Event", back_populates="payments", lazy="joined")
    vendor = relationship("Vendor", lazy="joined")
    client = relationship("User", lazy="joined")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
        Index("idx_payments_status_due", "status", "due_date"),
    )

    @property
    def event_guid(self):
        return self.event.guid if self.event else None

    @property
    def vendor_guid(self):
        return self.vendor.guid if self.vendor else None

    @property
    def client_guid(self):
        return self.client.guid if self.client else None

    @property
    def is_overdue(self) -> bool:
        return (
            self.status in OPEN_PAYMENT_STATUSES
            and self.due_date is not None
            and self.due_date < datetime.utcnow()
        )

    def can_transition_to(self, status: PaymentStatus) -> bool:
        return status == self.status or status in PAYMENT_STATUS_TRANSITIONS[self.status]

    def __repr__(self) -> str:
        return (
            f"<Payment(id={self.id}, amount={self.amount} {self.currency}, "
            f"status={self.status.value if self.status else None})>"
        )
