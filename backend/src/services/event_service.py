"""
Event service for managing planned events.

Provides business logic for listing, retrieving, creating, updating, and
deleting events, plus per-status statistics.

Design:
- Every event has a client (a CLIENT user) and usually a planner
- Status changes follow EVENT_STATUS_TRANSITIONS; setting the current
  status again is a no-op
- end_date may not precede start_date, checked against the merged values
  on update
- ``client_id`` scoping restricts every query to one client's events,
  which is how CLIENT callers only ever see their own
"""

from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.src.models import Event, EventStatus, User, UserRole
from backend.src.schemas.event import EventCreate, EventUpdate
from backend.src.services.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from backend.src.services.guid import GuidService
from backend.src.services.user_service import UserService
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


class EventService:
    """
    Service for managing events.

    Usage:
        >>> service = EventService(db_session)
        >>> events, total = service.list(status=EventStatus.CONFIRMED)
        >>> service.update(events[0].guid, EventUpdate(status=EventStatus.IN_PROGRESS))
    """

    def __init__(self, db: Session):
        self.db = db
        self.users = UserService(db)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_client(self, guid: str) -> User:
        user = self.users.get_by_guid(guid)
        if user.role != UserRole.CLIENT:
            raise ValidationError(f"User {guid} is not a client", field="client_guid")
        return user

    def _resolve_planner(self, guid: str) -> User:
        user = self.users.get_by_guid(guid)
        if user.role not in (UserRole.PLANNER, UserRole.ADMIN):
            raise ValidationError(f"User {guid} cannot plan events", field="planner_guid")
        return user

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_guid(self, guid: str, client_id: Optional[int] = None) -> Event:
        """
        Get an event by GUID.

        Args:
            guid: Event GUID (evt_xxx)
            client_id: When set, events of other clients are reported as
                not found

        Raises:
            NotFoundError: If the GUID is malformed or the event is not visible
        """
        try:
            uuid_value = GuidService.parse_identifier(guid, "evt")
        except ValueError:
            raise NotFoundError("Event", guid)

        query = self.db.query(Event).filter(Event.uuid == uuid_value)
        if client_id is not None:
            query = query.filter(Event.client_id == client_id)
        event = query.first()
        if not event:
            raise NotFoundError("Event", guid)
        return event

    def _filtered(
        self,
        client_id: Optional[int] = None,
        status: Optional[EventStatus] = None,
        planner_guid: Optional[str] = None,
        client_guid: Optional[str] = None,
        upcoming: bool = False,
    ):
        query = self.db.query(Event)
        if client_id is not None:
            query = query.filter(Event.client_id == client_id)
        if status:
            query = query.filter(Event.status == status)
        if planner_guid:
            query = query.filter(Event.planner_id == self.users.get_by_guid(planner_guid).id)
        if client_guid:
            query = query.filter(Event.client_id == self.users.get_by_guid(client_guid).id)
        if upcoming:
            query = query.filter(
                Event.start_date >= date.today(),
                Event.status.notin_([EventStatus.COMPLETED, EventStatus.CANCELLED]),
            )
        return query

    def list(
        self,
        client_id: Optional[int] = None,
        status: Optional[EventStatus] = None,
        planner_guid: Optional[str] = None,
        client_guid: Optional[str] = None,
        upcoming: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Event], int]:
        """
        List events ordered by start date.

        Returns:
            (events on this page, total matching events)

        Raises:
            NotFoundError: If planner_guid or client_guid does not resolve
        """
        query = self._filtered(client_id, status, planner_guid, client_guid, upcoming)
        total = query.count()
        events = (
            query.order_by(Event.start_date.asc(), Event.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return events, total

    def get_upcoming(self, client_id: Optional[int] = None, limit: int = 10) -> List[Event]:
        events, _ = self.list(client_id=client_id, upcoming=True, limit=limit)
        return events

    def get_stats(self, client_id: Optional[int] = None, planner_id: Optional[int] = None) -> Dict[str, Any]:
        """
        Count events per status.

        Returns:
            {"total": int, "by_status": {STATUS: count}, "upcoming": int}
        """
        query = self.db.query(Event.status, func.count(Event.id))
        if client_id is not None:
            query = query.filter(Event.client_id == client_id)
        if planner_id is not None:
            query = query.filter(Event.planner_id == planner_id)

        by_status = {s.value: 0 for s in EventStatus}
        for status, count in query.group_by(Event.status).all():
            by_status[status.value] = count

        upcoming_query = self._filtered(client_id=client_id, upcoming=True)
        if planner_id is not None:
            upcoming_query = upcoming_query.filter(Event.planner_id == planner_id)

        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
            "upcoming": upcoming_query.count(),
        }

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, data: EventCreate, planner_id: Optional[int] = None) -> Event:
        """
        Create an event in PLANNING status.

        Args:
            data: Validated request body
            planner_id: Creating planner, used when data.planner_guid is absent

        Raises:
            NotFoundError: If client or planner GUID does not resolve
            ValidationError: If the client is not a CLIENT user
        """
        client = self._resolve_client(data.client_guid)
        if data.planner_guid:
            planner_id = self._resolve_planner(data.planner_guid).id

        event = Event(
            title=data.title,
            description=data.description,
            event_type=data.event_type,
            status=EventStatus.PLANNING,
            start_date=data.start_date,
            end_date=data.end_date,
            start_time=data.start_time,
            end_time=data.end_time,
            location=data.location.model_dump(mode="json") if data.location else None,
            client_id=client.id,
            planner_id=planner_id,
            budget=data.budget.model_dump(mode="json") if data.budget else None,
            guest_count=data.guest_count,
            special_requirements=data.special_requirements,
            notes=data.notes,
            is_private=data.is_private,
        )
        self.db.add(event)
        self.db.commit()
        self.db.refresh(event)

        logger.info(f"Created event: {event.title} ({event.guid}) for client {client.guid}")
        return event

    def update(self, guid: str, data: EventUpdate) -> Event:
        """
        Update an event.

        Raises:
            NotFoundError: If the event (or a referenced user) is not found
            InvalidTransitionError: If the status change is not allowed
            ValidationError: If the resulting dates are out of order
        """
        event = self.get_by_guid(guid)
        updates = data.model_dump(exclude_unset=True)

        if "status" in updates:
            new_status = updates.pop("status")
            if new_status is not None and new_status != event.status:
                if not event.can_transition_to(new_status):
                    raise InvalidTransitionError("event", event.status.value, new_status.value)
                logger.info(f"Event {guid} status {event.status.value} -> {new_status.value}")
                event.status = new_status

        if "client_guid" in updates:
            client_guid = updates.pop("client_guid")
            if client_guid:
                event.client_id = self._resolve_client(client_guid).id

        if "planner_guid" in updates:
            planner_guid = updates.pop("planner_guid")
            event.planner_id = self._resolve_planner(planner_guid).id if planner_guid else None

        for key in ("location", "budget"):
            if key in updates:
                value = getattr(data, key)
                setattr(event, key, value.model_dump(mode="json") if value else None)
                updates.pop(key)

        for field, value in updates.items():
            if field in ("title", "event_type", "start_date", "is_private") and value is None:
                continue
            setattr(event, field, value)

        if event.end_date and event.end_date < event.start_date:
            self.db.rollback()
            raise ValidationError("end_date must be on or after start_date", field="end_date")

        self.db.commit()
        self.db.refresh(event)
        logger.info(f"Updated event: {event.title} ({event.guid})")
        return event

    def delete(self, guid: str) -> None:
        """
        Delete an event and its payments.

        Raises:
            NotFoundError: If the event is not found
        """
        event = self.get_by_guid(guid)
        self.db.delete(event)
        self.db.commit()
        logger.info(f"Deleted event {guid}")
