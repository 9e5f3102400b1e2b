"""
Vendor model for suppliers (caterers, venues, photographers, ...).

Most descriptive data is nested JSON: categories, services, location,
contact person, rating, pricing, availability, documents, social media.
"""

import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin
from backend.src.models.types import JSONBType


class PricingModel(enum.Enum):
    FIXED = "FIXED"
    HOURLY = "HOURLY"
    PER_PERSON = "PER_PERSON"
    CUSTOM = "CUSTOM"


def default_availability():
    return {"is_available": True}


def default_rating():
    return {"average": 0, "count": 0}


class Vendor(Base, GuidMixin):
    """
    Vendor record.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid / guid: External identifier (vnd_xxx)
        name, business_name: Display names
        email, phone, website, description: Contact and profile
        categories, services: JSON lists of strings
        location: JSON {address, city, state, zip_code, country}
        contact_person: JSON {name, email, phone, title}
        rating: JSON {average, count}
        pricing: JSON {min_price, max_price, currency, pricing_model}
        availability: JSON {is_available, working_hours, blackout_dates}
        documents: JSON list of {name, url, type}
        social_media: JSON map of network name to URL
        is_active, is_verified: Flags
    """

    __tablename__ = "vendors"

    GUID_PREFIX = "vnd"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(255), nullable=False, index=True)
    business_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    website = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)

    categories = Column(JSONBType, default=list, nullable=False)
    services = Column(JSONBType, default=list, nullable=False)
    location = Column(JSONBType, nullable=True)
    contact_person = Column(JSONBType, nullable=True)
    rating = Column(JSONBType, default=default_rating, nullable=False)
    pricing = Column(JSONBType, nullable=True)
    availability = Column(JSONBType, default=default_availability, nullable=False)
    documents = Column(JSONBType, default=list, nullable=False)
    social_media = Column(JSONBType, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    is_verified = Column(Boolean, default=False, nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    @property
    def city(self):
        return (self.location or {}).get("city")

    @property
    def state(self):
        return (self.location or {}).get("state")

    def in_category(self, category: str) -> bool:
        wanted = category.lower()
        return any(c.lower() == wanted for c in (self.categories or []))

    def matches(self, term: str) -> bool:
        """Case-insensitive substring match over name, business name, description and services."""
        needle = term.lower()
        haystacks = [self.name, self.business_name, self.description] + list(self.services or [])
        return any(needle in h.lower() for h in haystacks if h)

    def __repr__(self) -> str:
        return f"<Vendor(id={self.id}, name='{self.name}', active={self.is_active})>"
