"""
Vendor service for managing suppliers.

Category, location and free-text filters operate on JSON documents, so
they are applied in Python over active vendors rather than in SQL; this
keeps behavior identical on SQLite and PostgreSQL.
"""

from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from backend.src.models import Vendor
from backend.src.models.vendor import default_rating
from backend.src.schemas.vendor import VendorCreate, VendorUpdate
from backend.src.services.exceptions import NotFoundError
from backend.src.services.guid import GuidService
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")

# NOT NULL columns; an explicit null in an update leaves them unchanged
_REQUIRED_FIELDS = frozenset({
    "name", "categories", "services", "rating", "availability", "documents",
    "is_active", "is_verified",
})


class VendorService:
    """
    Service for managing vendors.

    Usage:
        >>> service = VendorService(db_session)
        >>> vendors, total = service.list(category="florist", city="Portland")
    """

    def __init__(self, db: Session):
        self.db = db

    def get_by_guid(self, guid: str) -> Vendor:
        """
        Get a vendor by GUID.

        Raises:
            NotFoundError: If malformed or missing
        """
        try:
            uuid_value = GuidService.parse_identifier(guid, "vnd")
        except ValueError:
            raise NotFoundError("Vendor", guid)

        vendor = self.db.query(Vendor).filter(Vendor.uuid == uuid_value).first()
        if not vendor:
            raise NotFoundError("Vendor", guid)
        return vendor

    def list(
        self,
        category: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
        search: Optional[str] = None,
        include_inactive: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Vendor], int]:
        """
        List vendors ordered by name.

        Args:
            category: Case-insensitive exact category match
            city, state: Case-insensitive match on the location document
            search: Substring over name, business name, description, services
            include_inactive: Include deactivated vendors

        Returns:
            (vendors on this page, total matching vendors)
        """
        query = self.db.query(Vendor)
        if not include_inactive:
            query = query.filter(Vendor.is_active.is_(True))
        vendors = query.order_by(Vendor.name.asc(), Vendor.id.asc()).all()

        if category:
            vendors = [v for v in vendors if v.in_category(category)]
        if city:
            vendors = [v for v in vendors if (v.city or "").lower() == city.lower()]
        if state:
            vendors = [v for v in vendors if (v.state or "").lower() == state.lower()]
        if search and search.strip():
            vendors = [v for v in vendors if v.matches(search.strip())]

        return vendors[offset:offset + limit], len(vendors)

    def get_stats(self) -> Dict[str, Any]:
        """Counts of all, active and verified vendors, plus active vendors per category."""
        vendors = self.db.query(Vendor).all()
        by_category: Counter = Counter()
        for vendor in vendors:
            if vendor.is_active:
                by_category.update(c.lower() for c in (vendor.categories or []))
        return {
            "total": len(vendors),
            "active": sum(1 for v in vendors if v.is_active),
            "verified": sum(1 for v in vendors if v.is_verified),
            "by_category": dict(by_category),
        }

    def create(self, data: VendorCreate) -> Vendor:
        payload = data.model_dump(mode="json")
        vendor = Vendor(**payload, rating=default_rating())
        self.db.add(vendor)
        self.db.commit()
        self.db.refresh(vendor)
        logger.info(f"Created vendor: {vendor.name} ({vendor.guid})")
        return vendor

    def update(self, guid: str, data: VendorUpdate) -> Vendor:
        """
        Update a vendor. Nested documents are replaced, not merged.

        Raises:
            NotFoundError: If the vendor is not found
        """
        vendor = self.get_by_guid(guid)
        updates = data.model_dump(mode="json", exclude_unset=True)
        for field, value in updates.items():
            if value is None and field in _REQUIRED_FIELDS:
                continue
            setattr(vendor, field, value)

        self.db.commit()
        self.db.refresh(vendor)
        logger.info(f"Updated vendor: {vendor.name} ({vendor.guid})")
        return vendor

    def delete(self, guid: str) -> None:
        """Delete a vendor; its payments keep their history with vendor cleared."""
        vendor = self.get_by_guid(guid)
        self.db.delete(vendor)
        self.db.commit()
        logger.info(f"Deleted vendor {guid}")
