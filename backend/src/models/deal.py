"""
Deal model for sales opportunities.

When a deal carries product lines its value is the sum of their totals;
otherwise the value is entered directly.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, DateTime, Text, ForeignKey, Enum, Index, CheckConstraint
)
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.lead import days_in_pipeline
from backend.src.models.mixins import GuidMixin
from backend.src.models.types import JSONBType, Money


class DealStage(enum.Enum):
    PROSPECTING = "PROSPECTING"
    QUALIFICATION = "QUALIFICATION"
    PROPOSAL = "PROPOSAL"
    NEGOTIATION = "NEGOTIATION"
    CLOSED_WON = "CLOSED_WON"
    CLOSED_LOST = "CLOSED_LOST"


class DealType(enum.Enum):
    NEW_BUSINESS = "NEW_BUSINESS"
    RENEWAL = "RENEWAL"
    UPSELL = "UPSELL"
    CROSS_SELL = "CROSS_SELL"


CLOSED_DEAL_STAGES = (DealStage.CLOSED_WON, DealStage.CLOSED_LOST)


def product_total(quantity: int, unit_price: float, discount: float = 0) -> float:
    """Line total after a percentage discount, rounded to cents."""
    return round(quantity * unit_price * (1 - (discount or 0) / 100), 2)


class Deal(Base, GuidMixin):
    """
    Deal record.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid / guid: External identifier (dea_xxx)
        name, description: Content
        value, currency: Deal size (Money, >= 0)
        stage, probability: Pipeline position and win chance (0-100)
        deal_type: New business, renewal, upsell or cross-sell
        expected_close_date, actual_close_date: Schedule
        owner_id: FK to the owning user
        contact_id, lead_id: Optional FKs to the originating records
        company, source, campaign: Attribution
        tags, competitors: JSON lists of strings
        decision_makers: JSON list of contact GUIDs
        products: JSON list of {product, quantity, unit_price, discount, total_price}
        last_activity_date, next_follow_up: Follow-up tracking
    """

    __tablename__ = "deals"

    GUID_PREFIX = "dea"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    value = Column(Money(), nullable=False)
    currency = Column(String(3), default="USD", nullable=False)
    stage = Column(
        Enum(DealStage, name="deal_stage", create_constraint=True),
        default=DealStage.PROSPECTING,
        nullable=False,
        index=True
    )
    probability = Column(Integer, default=10, nullable=False)
    deal_type = Column(
        Enum(DealType, name="deal_type", create_constraint=True),
        default=DealType.NEW_BUSINESS,
        nullable=False
    )

    expected_close_date = Column(DateTime, nullable=False, index=True)
    actual_close_date = Column(DateTime, nullable=True)

    owner_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    contact_id = Column(
        Integer,
        ForeignKey("contacts.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    lead_id = Column(
        Integer,
        ForeignKey("leads.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    company = Column(String(255), nullable=True)
    source = Column(String(100), nullable=False)
    campaign = Column(String(255), nullable=True)
    tags = Column(JSONBType, default=list, nullable=False)
    notes = Column(Text, nullable=True)
    competitors = Column(JSONBType, default=list, nullable=False)
    decision_makers = Column(JSONBType, default=list, nullable=False)
    products = Column(JSONBType, default=list, nullable=False)
    last_activity_date = Column(DateTime, nullable=True)
    next_follow_up = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    owner = relationship("User", lazy="joined")
    contact = relationship("Contact", lazy="joined")
    lead = relationship("Lead", lazy="joined")

    __table_args__ = (
        Index("idx_deals_owner_stage", "owner_id", "stage"),
        CheckConstraint("value >= 0", name="ck_deals_value_non_negative"),
        CheckConstraint(
            "probability >= 0 AND probability <= 100",
            name="ck_deals_probability_range"
        ),
    )

    @property
    def owner_guid(self):
        return self.owner.guid if self.owner else None

    @property
    def contact_guid(self):
        return self.contact.guid if self.contact else None

    @property
    def lead_guid(self):
        return self.lead.guid if self.lead else None

    @property
    def is_closed(self) -> bool:
        return self.stage in CLOSED_DEAL_STAGES

    @property
    def weighted_value(self) -> float:
        return round((self.value or 0) * (self.probability or 0) / 100, 2)

    @property
    def is_overdue(self) -> bool:
        return self.expected_close_date < datetime.utcnow() and not self.is_closed

    @property
    def days_in_pipeline(self) -> int:
        return days_in_pipeline(self.created_at, self.actual_close_date, self.is_closed)

    def __repr__(self) -> str:
        return f"<Deal(id={self.id}, name='{self.name}', stage={self.stage.value if self.stage else None})>"
