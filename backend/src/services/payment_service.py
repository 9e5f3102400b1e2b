"""
Payment service for managing money owed and received against events.

Design:
- Payments are created PENDING; status changes follow
  PAYMENT_STATUS_TRANSITIONS and re-setting the current status is a no-op
- Moving to COMPLETED stamps paid_date (unless the caller supplied one)
- A payment is overdue while PENDING or PROCESSING past its due date
- ``client_id`` scoping restricts queries to one client's payments
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from backend.src.models import (
    OPEN_PAYMENT_STATUSES,
    Payment,
    PaymentMethod,
    PaymentStatus,
)
from backend.src.schemas.payment import PaymentCreate, PaymentUpdate
from backend.src.services.event_service import EventService
from backend.src.services.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from backend.src.services.guid import GuidService
from backend.src.services.user_service import UserService
from backend.src.services.vendor_service import VendorService
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


class PaymentService:
    """
    Service for managing payments.

    Usage:
        >>> service = PaymentService(db_session)
        >>> payment = service.create(PaymentCreate(event_guid=event.guid, amount=500))
        >>> service.update(payment.guid, PaymentUpdate(status=PaymentStatus.COMPLETED))
        >>> payment.paid_date  # stamped
    """

    def __init__(self, db: Session):
        self.db = db
        self.events = EventService(db)
        self.users = UserService(db)
        self.vendors = VendorService(db)

    def get_by_guid(self, guid: str, client_id: Optional[int] = None) -> Payment:
        """
        Get a payment by GUID.

        Raises:
            NotFoundError: If malformed, missing, or outside the client scope
        """
        try:
            uuid_value = GuidService.parse_identifier(guid, "pay")
        except ValueError:
            raise NotFoundError("Payment", guid)

        query = self.db.query(Payment).filter(Payment.uuid == uuid_value)
        if client_id is not None:
            query = query.filter(Payment.client_id == client_id)
        payment = query.first()
        if not payment:
            raise NotFoundError("Payment", guid)
        return payment

    def _filtered(
        self,
        client_id: Optional[int] = None,
        event_guid: Optional[str] = None,
        client_guid: Optional[str] = None,
        vendor_guid: Optional[str] = None,
        status: Optional[PaymentStatus] = None,
    ):
        query = self.db.query(Payment)
        if client_id is not None:
            query = query.filter(Payment.client_id == client_id)
        if event_guid:
            query = query.filter(Payment.event_id == self.events.get_by_guid(event_guid).id)
        if client_guid:
            query = query.filter(Payment.client_id == self.users.get_by_guid(client_guid).id)
        if vendor_guid:
            query = query.filter(Payment.vendor_id == self.vendors.get_by_guid(vendor_guid).id)
        if status:
            query = query.filter(Payment.status == status)
        return query

    def list(
        self,
        client_id: Optional[int] = None,
        event_guid: Optional[str] = None,
        client_guid: Optional[str] = None,
        vendor_guid: Optional[str] = None,
        status: Optional[PaymentStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Payment], int]:
        """List payments, newest first. Returns (page, total)."""
        query = self._filtered(client_id, event_guid, client_guid, vendor_guid, status)
        total = query.count()
        payments = (
            query.order_by(Payment.created_at.desc(), Payment.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return payments, total

    def get_overdue(self, client_id: Optional[int] = None) -> List[Payment]:
        """Open payments whose due date has passed, oldest due first."""
        query = self._filtered(client_id).filter(
            Payment.status.in_(OPEN_PAYMENT_STATUSES),
            Payment.due_date.isnot(None),
            Payment.due_date < datetime.utcnow(),
        )
        return query.order_by(Payment.due_date.asc()).all()

    def get_upcoming(self, days: int = 7, client_id: Optional[int] = None) -> List[Payment]:
        """Open payments due between now and ``days`` from now."""
        if days < 0:
            raise ValidationError("days must not be negative", field="days")
        now = datetime.utcnow()
        query = self._filtered(client_id).filter(
            Payment.status.in_(OPEN_PAYMENT_STATUSES),
            Payment.due_date >= now,
            Payment.due_date <= now + timedelta(days=days),
        )
        return query.order_by(Payment.due_date.asc()).all()

    def get_stats(
        self,
        client_id: Optional[int] = None,
        event_guid: Optional[str] = None,
        client_guid: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Aggregate counts and sums.

        Computed in Python over the scoped rows so the figures agree with
        Payment.is_overdue exactly.
        """
        payments = self._filtered(client_id, event_guid, client_guid).all()

        by_status = {s.value: 0 for s in PaymentStatus}
        by_method = {m.value: 0 for m in PaymentMethod}
        amounts = {s: 0.0 for s in PaymentStatus}
        overdue_count = 0
        overdue_amount = 0.0

        for payment in payments:
            amount = float(payment.amount)
            by_status[payment.status.value] += 1
            by_method[payment.payment_method.value] += 1
            amounts[payment.status] += amount
            if payment.is_overdue:
                overdue_count += 1
                overdue_amount += amount

        return {
            "total": len(payments),
            "total_amount": round(sum(amounts.values()), 2),
            "pending_amount": round(
                amounts[PaymentStatus.PENDING] + amounts[PaymentStatus.PROCESSING], 2
            ),
            "completed_amount": round(amounts[PaymentStatus.COMPLETED], 2),
            "failed_amount": round(amounts[PaymentStatus.FAILED], 2),
            "refunded_amount": round(amounts[PaymentStatus.REFUNDED], 2),
            "overdue_count": overdue_count,
            "overdue_amount": round(overdue_amount, 2),
            "by_status": by_status,
            "by_payment_method": by_method,
        }

    def _check_invoice_number(self, invoice_number: Optional[str], exclude_id: Optional[int] = None) -> None:
        if not invoice_number:
            return
        query = self.db.query(Payment).filter(Payment.invoice_number == invoice_number)
        if exclude_id is not None:
            query = query.filter(Payment.id != exclude_id)
        if query.first():
            raise ConflictError(
                f"Payment with invoice number '{invoice_number}' already exists",
                field="invoice_number",
            )

    def create(self, data: PaymentCreate) -> Payment:
        """
        Record a payment in PENDING status.

        The client defaults to the event's client.

        Raises:
            NotFoundError: If event, vendor or client does not resolve
            ConflictError: If the invoice number is taken
        """
        event = self.events.get_by_guid(data.event_guid)
        vendor = self.vendors.get_by_guid(data.vendor_guid) if data.vendor_guid else None
        client_id = self.users.get_by_guid(data.client_guid).id if data.client_guid else event.client_id
        self._check_invoice_number(data.invoice_number)

        payment = Payment(
            event_id=event.id,
            vendor_id=vendor.id if vendor else None,
            client_id=client_id,
            amount=data.amount,
            currency=data.currency,
            status=PaymentStatus.PENDING,
            payment_method=data.payment_method,
            payment_type=data.payment_type,
            description=data.description,
            notes=data.notes,
            due_date=data.due_date,
            invoice_number=data.invoice_number,
            transaction_id=data.transaction_id,
            reference_number=data.reference_number,
            is_recurring=data.is_recurring,
            recurring_details=(
                data.recurring_details.model_dump(mode="json") if data.recurring_details else None
            ),
            extra_metadata=data.metadata,
        )
        self.db.add(payment)
        self.db.commit()
        self.db.refresh(payment)

        logger.info(
            f"Created payment {payment.guid}: {payment.amount} {payment.currency} "
            f"for event {event.guid}"
        )
        return payment

    def update(self, guid: str, data: PaymentUpdate) -> Payment:
        """
        Update a payment.

        Raises:
            NotFoundError: If the payment or vendor is not found
            InvalidTransitionError: If the status change is not allowed
            ConflictError: If the invoice number is taken
        """
        payment = self.get_by_guid(guid)
        updates = data.model_dump(exclude_unset=True)

        if "status" in updates:
            new_status = updates.pop("status")
            if new_status is not None and new_status != payment.status:
                if not payment.can_transition_to(new_status):
                    raise InvalidTransitionError("payment", payment.status.value, new_status.value)
                logger.info(f"Payment {guid} status {payment.status.value} -> {new_status.value}")
                payment.status = new_status
                if new_status == PaymentStatus.COMPLETED and not updates.get("paid_date"):
                    payment.paid_date = datetime.utcnow()

        if "vendor_guid" in updates:
            vendor_guid = updates.pop("vendor_guid")
            payment.vendor_id = self.vendors.get_by_guid(vendor_guid).id if vendor_guid else None

        if "invoice_number" in updates:
            self._check_invoice_number(updates["invoice_number"], exclude_id=payment.id)

        if "recurring_details" in updates:
            updates.pop("recurring_details")
            payment.recurring_details = (
                data.recurring_details.model_dump(mode="json") if data.recurring_details else None
            )

        if "metadata" in updates:
            payment.extra_metadata = updates.pop("metadata")

        for field, value in updates.items():
            if field in ("amount", "currency", "payment_method", "payment_type", "is_recurring") and value is None:
                continue
            setattr(payment, field, value)

        self.db.commit()
        self.db.refresh(payment)
        logger.info(f"Updated payment {payment.guid}")
        return payment

    def delete(self, guid: str) -> None:
        payment = self.get_by_guid(guid)
        self.db.delete(payment)
        self.db.commit()
        logger.info(f"Deleted payment {guid}")
