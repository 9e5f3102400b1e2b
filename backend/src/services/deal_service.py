"""
Deal service for sales opportunities.

Product lines get their total_price computed on write, and a deal with at
least one product line takes the sum of those totals as its value. Closing
a deal stamps actual_close_date unless the caller supplied one; reopening
clears it.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from backend.src.models import CLOSED_DEAL_STAGES, Deal, DealStage
from backend.src.models.deal import product_total
from backend.src.schemas.deal import DealCreate, DealProduct, DealUpdate
from backend.src.services.contact_service import ContactService
from backend.src.services.exceptions import NotFoundError, PermissionDeniedError
from backend.src.services.guid import GuidService
from backend.src.services.lead_service import LeadService
from backend.src.services.user_service import UserService
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")

_REQUIRED_FIELDS = frozenset({
    "name", "value", "currency", "probability", "deal_type", "expected_close_date",
    "source", "tags", "competitors",
})


def price_products(products: List[DealProduct]) -> List[Dict[str, Any]]:
    """Product lines as stored, each with its computed total_price."""
    return [
        {**p.model_dump(), "total_price": product_total(p.quantity, p.unit_price, p.discount)}
        for p in products
    ]


class DealService:
    """
    Service for managing deals.

    Usage:
        >>> service = DealService(db_session)
        >>> deal = service.create(DealCreate(name="Gala", source="Web", expected_close_date=when), owner_id=1)
        >>> service.get_pipeline()["weighted_open_value"]
    """

    def __init__(self, db: Session):
        self.db = db
        self.users = UserService(db)
        self.contacts = ContactService(db)
        self.leads = LeadService(db)

    def get_by_guid(self, guid: str) -> Deal:
        """
        Get a deal by GUID.

        Raises:
            NotFoundError: If malformed or missing
        """
        try:
            uuid_value = GuidService.parse_identifier(guid, "dea")
        except ValueError:
            raise NotFoundError("Deal", guid)

        deal = self.db.query(Deal).filter(Deal.uuid == uuid_value).first()
        if not deal:
            raise NotFoundError("Deal", guid)
        return deal

    def list(
        self,
        stage: Optional[DealStage] = None,
        owner_guid: Optional[str] = None,
        contact_guid: Optional[str] = None,
        overdue: bool = False,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Deal], int]:
        """
        List deals by expected close date.

        Args:
            stage: Filter by stage
            owner_guid: Filter by owning user
            contact_guid: Filter by contact
            overdue: Only open deals past their expected close date
            search: Substring over name and company

        Raises:
            NotFoundError: If owner_guid or contact_guid does not resolve
        """
        query = self.db.query(Deal)
        if stage:
            query = query.filter(Deal.stage == stage)
        if owner_guid:
            query = query.filter(Deal.owner_id == self.users.get_by_guid(owner_guid).id)
        if contact_guid:
            query = query.filter(Deal.contact_id == self.contacts.get_by_guid(contact_guid).id)
        if overdue:
            query = query.filter(
                Deal.expected_close_date < datetime.utcnow(),
                Deal.stage.notin_(CLOSED_DEAL_STAGES),
            )
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(Deal.name.ilike(pattern), Deal.company.ilike(pattern)))

        total = query.count()
        deals = (
            query.order_by(Deal.expected_close_date.asc(), Deal.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return deals, total

    def get_pipeline(self, owner_guid: Optional[str] = None) -> Dict[str, Any]:
        """
        Count, value and weighted value per stage, plus open totals.

        Raises:
            NotFoundError: If owner_guid does not resolve
        """
        query = self.db.query(Deal)
        if owner_guid:
            query = query.filter(Deal.owner_id == self.users.get_by_guid(owner_guid).id)

        stages = {stage: {"stage": stage, "count": 0, "value": 0.0, "weighted_value": 0.0} for stage in DealStage}
        for deal in query.all():
            row = stages[deal.stage]
            row["count"] += 1
            row["value"] += deal.value or 0
            row["weighted_value"] += deal.weighted_value

        open_rows = [row for stage, row in stages.items() if stage not in CLOSED_DEAL_STAGES]
        return {
            "stages": [
                {**row, "value": round(row["value"], 2), "weighted_value": round(row["weighted_value"], 2)}
                for row in stages.values()
            ],
            "open_value": round(sum(row["value"] for row in open_rows), 2),
            "weighted_open_value": round(sum(row["weighted_value"] for row in open_rows), 2),
        }

    def _resolve_decision_makers(self, guids: List[str]) -> List[str]:
        return [self.contacts.get_by_guid(guid).guid for guid in guids]

    def create(self, data: DealCreate, owner_id: int) -> Deal:
        """
        Create a deal.

        Raises:
            NotFoundError: If the contact, lead or a decision maker does not resolve
        """
        contact = self.contacts.get_by_guid(data.contact_guid) if data.contact_guid else None
        lead = self.leads.get_by_guid(data.lead_guid) if data.lead_guid else None
        products = price_products(data.products)

        deal = Deal(
            name=data.name,
            description=data.description,
            value=round(sum(p["total_price"] for p in products), 2) if products else data.value,
            currency=data.currency,
            stage=data.stage,
            probability=data.probability,
            deal_type=data.deal_type,
            expected_close_date=data.expected_close_date,
            actual_close_date=datetime.utcnow() if data.stage in CLOSED_DEAL_STAGES else None,
            owner_id=owner_id,
            contact_id=contact.id if contact else None,
            lead_id=lead.id if lead else None,
            company=data.company,
            source=data.source,
            campaign=data.campaign,
            tags=list(data.tags),
            notes=data.notes,
            competitors=list(data.competitors),
            decision_makers=self._resolve_decision_makers(data.decision_makers),
            products=products,
            last_activity_date=data.last_activity_date,
            next_follow_up=data.next_follow_up,
        )
        self.db.add(deal)
        self.db.commit()
        self.db.refresh(deal)
        logger.info(f"Created deal {deal.guid} '{deal.name}' value={deal.value} {deal.currency}")
        return deal

    def update(self, guid: str, data: DealUpdate) -> Deal:
        """
        Update a deal. Products, when given, replace the existing lines.

        Raises:
            NotFoundError: If the deal, contact, lead or a decision maker is not found
        """
        deal = self.get_by_guid(guid)
        updates = data.model_dump(exclude_unset=True)

        if "stage" in updates:
            new_stage = updates.pop("stage")
            if new_stage is not None and new_stage != deal.stage:
                was_closed = deal.is_closed
                deal.stage = new_stage
                if new_stage in CLOSED_DEAL_STAGES and not was_closed:
                    deal.actual_close_date = datetime.utcnow()
                elif new_stage not in CLOSED_DEAL_STAGES:
                    deal.actual_close_date = None

        if "contact_guid" in updates:
            contact_guid = updates.pop("contact_guid")
            deal.contact_id = self.contacts.get_by_guid(contact_guid).id if contact_guid else None

        if "lead_guid" in updates:
            lead_guid = updates.pop("lead_guid")
            deal.lead_id = self.leads.get_by_guid(lead_guid).id if lead_guid else None

        if "decision_makers" in updates:
            updates.pop("decision_makers")
            deal.decision_makers = self._resolve_decision_makers(data.decision_makers or [])

        if "products" in updates:
            updates.pop("products")
            deal.products = price_products(data.products or [])

        for field, value in updates.items():
            if value is None and field in _REQUIRED_FIELDS:
                continue
            setattr(deal, field, value)

        if deal.products:
            deal.value = round(sum(p["total_price"] for p in deal.products), 2)

        self.db.commit()
        self.db.refresh(deal)
        logger.info(f"Updated deal {deal.guid} stage={deal.stage.value} value={deal.value}")
        return deal

    def delete(self, guid: str, actor_id: int, is_admin: bool = False) -> None:
        """
        Delete a deal (owner or admin only).

        Raises:
            NotFoundError: If the deal is not found
            PermissionDeniedError: If the actor is neither owner nor admin
        """
        deal = self.get_by_guid(guid)
        if not is_admin and deal.owner_id != actor_id:
            raise PermissionDeniedError("Not authorized to delete this deal")
        self.db.delete(deal)
        self.db.commit()
        logger.info(f"Deleted deal {guid}")
