"""
Activity service for the CRM timeline.

Activities are owned by the user who logged them. Only the owner or an
administrator may change or remove one.
"""

from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from backend.src.models import Activity, RelatedEntityType
from backend.src.schemas.activity import ActivityCreate, ActivityUpdate
from backend.src.services.exceptions import NotFoundError, PermissionDeniedError
from backend.src.services.guid import GuidService
from backend.src.services.user_service import UserService
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


class ActivityService:
    """
    Service for managing activities.

    Usage:
        >>> service = ActivityService(db_session)
        >>> activity = service.create(ActivityCreate(type=ActivityType.CALL, subject="Intro"), owner_id=1)
    """

    def __init__(self, db: Session):
        self.db = db

    def get_by_guid(self, guid: str, owner_id: Optional[int] = None) -> Activity:
        try:
            uuid_value = GuidService.parse_identifier(guid, "act")
        except ValueError:
            raise NotFoundError("Activity", guid)

        query = self.db.query(Activity).filter(Activity.uuid == uuid_value)
        if owner_id is not None:
            query = query.filter(Activity.owner_id == owner_id)
        activity = query.first()
        if not activity:
            raise NotFoundError("Activity", guid)
        return activity

    def list(
        self,
        owner_id: Optional[int] = None,
        owner_guid: Optional[str] = None,
        related_type: Optional[RelatedEntityType] = None,
        related_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Activity], int]:
        """
        List activities, newest first.

        Args:
            owner_id: Scope to one owner (used for CLIENT callers)
            owner_guid: Filter by owner GUID
            related_type, related_id: Filter by related record
        """
        query = self.db.query(Activity)
        if owner_id is not None:
            query = query.filter(Activity.owner_id == owner_id)
        if owner_guid:
            query = query.filter(Activity.owner_id == UserService(self.db).get_by_guid(owner_guid).id)
        if related_type:
            query = query.filter(Activity.related_type == related_type)
        if related_id:
            query = query.filter(Activity.related_id == related_id)

        total = query.count()
        activities = (
            query.order_by(Activity.created_at.desc(), Activity.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return activities, total

    def create(self, data: ActivityCreate, owner_id: int) -> Activity:
        activity = Activity(
            type=data.type,
            subject=data.subject,
            description=data.description,
            participants=[p.model_dump(mode="json") for p in data.participants],
            duration=data.duration,
            outcome=data.outcome,
            next_action=data.next_action,
            next_action_date=data.next_action_date,
            attachments=list(data.attachments),
            tags=list(data.tags),
            is_important=data.is_important,
            location=data.location,
            meeting_type=data.meeting_type,
            direction=data.direction,
            owner_id=owner_id,
            related_type=data.related_to.type if data.related_to else None,
            related_id=data.related_to.id if data.related_to else None,
        )
        self.db.add(activity)
        self.db.commit()
        self.db.refresh(activity)
        logger.info(f"Created activity {activity.guid} ({activity.type.value}) by user {owner_id}")
        return activity

    def _check_owner(self, activity: Activity, actor_id: int, is_admin: bool) -> None:
        if not is_admin and activity.owner_id != actor_id:
            raise PermissionDeniedError("Only the owner can modify this activity")

    def update(self, guid: str, data: ActivityUpdate, actor_id: int, is_admin: bool = False) -> Activity:
        """
        Raises:
            NotFoundError: If the activity is not found
            PermissionDeniedError: If the actor is neither owner nor admin
        """
        activity = self.get_by_guid(guid)
        self._check_owner(activity, actor_id, is_admin)

        updates = data.model_dump(exclude_unset=True)
        if "related_to" in updates:
            updates.pop("related_to")
            activity.related_type = data.related_to.type if data.related_to else None
            activity.related_id = data.related_to.id if data.related_to else None
        if "participants" in updates:
            updates.pop("participants")
            activity.participants = [p.model_dump(mode="json") for p in data.participants or []]

        for field, value in updates.items():
            if field in ("type", "subject", "attachments", "tags", "is_important") and value is None:
                continue
            setattr(activity, field, value)

        self.db.commit()
        self.db.refresh(activity)
        logger.info(f"Updated activity {activity.guid}")
        return activity

    def delete(self, guid: str, actor_id: int, is_admin: bool = False) -> None:
        activity = self.get_by_guid(guid)
        self._check_owner(activity, actor_id, is_admin)
        self.db.delete(activity)
        self.db.commit()
        logger.info(f"Deleted activity {guid}")
