"""
Task service for follow-ups.

A task is visible to its owner and its assignee; administrators see all
tasks. Completing a task stamps completed_date; reopening clears it.

Callers are told when an update changed the assignee so they can notify
the new assignee over the real-time channel.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from backend.src.models import Task, TaskStatus
from backend.src.schemas.task import TaskCreate, TaskUpdate
from backend.src.services.event_service import EventService
from backend.src.services.exceptions import NotFoundError, PermissionDeniedError
from backend.src.services.guid import GuidService
from backend.src.services.user_service import UserService
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


class TaskService:
    """
    Service for managing tasks.

    Usage:
        >>> service = TaskService(db_session)
        >>> task = service.create(TaskCreate(title="Call florist"), owner_id=ctx.user_id)
        >>> task, reassigned = service.update(task.guid, TaskUpdate(assigned_to_guid=guid), ctx.user_id)
    """

    def __init__(self, db: Session):
        self.db = db
        self.users = UserService(db)
        self.events = EventService(db)

    def get_by_guid(self, guid: str, visible_to: Optional[int] = None) -> Task:
        """
        Get a task by GUID.

        Args:
            visible_to: When set, only tasks owned by or assigned to this
                user id are found

        Raises:
            NotFoundError: If malformed, missing or not visible
        """
        try:
            uuid_value = GuidService.parse_identifier(guid, "tsk")
        except ValueError:
            raise NotFoundError("Task", guid)

        query = self.db.query(Task).filter(Task.uuid == uuid_value)
        if visible_to is not None:
            query = query.filter(or_(Task.owner_id == visible_to, Task.assigned_to_id == visible_to))
        task = query.first()
        if not task:
            raise NotFoundError("Task", guid)
        return task

    def list(
        self,
        visible_to: Optional[int] = None,
        assigned_to: Optional[int] = None,
        status: Optional[TaskStatus] = None,
        event_guid: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Task], int]:
        """
        List tasks by due date (undated last).

        Args:
            visible_to: Restrict to tasks owned by or assigned to this user id
            assigned_to: Restrict to tasks assigned to this user id
            status: Filter by status
            event_guid: Filter by event
        """
        query = self.db.query(Task)
        if visible_to is not None:
            query = query.filter(or_(Task.owner_id == visible_to, Task.assigned_to_id == visible_to))
        if assigned_to is not None:
            query = query.filter(Task.assigned_to_id == assigned_to)
        if status:
            query = query.filter(Task.status == status)
        if event_guid:
            query = query.filter(Task.event_id == self.events.get_by_guid(event_guid).id)

        total = query.count()
        tasks = (
            query.order_by(Task.due_date.is_(None), Task.due_date.asc(), Task.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return tasks, total

    def create(self, data: TaskCreate, owner_id: int) -> Task:
        """
        Create a PENDING task.

        Raises:
            NotFoundError: If the assignee or event does not resolve
        """
        assignee = self.users.get_by_guid(data.assigned_to_guid) if data.assigned_to_guid else None
        event = self.events.get_by_guid(data.event_guid) if data.event_guid else None

        task = Task(
            title=data.title,
            description=data.description,
            type=data.type,
            status=TaskStatus.PENDING,
            priority=data.priority,
            due_date=data.due_date,
            owner_id=owner_id,
            assigned_to_id=assignee.id if assignee else None,
            event_id=event.id if event else None,
            related_type=data.related_to.type if data.related_to else None,
            related_id=data.related_to.id if data.related_to else None,
            tags=list(data.tags),
            notes=data.notes,
            is_recurring=data.is_recurring,
            recurring_pattern=data.recurring_pattern,
            estimated_duration=data.estimated_duration,
        )
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        logger.info(f"Created task {task.guid} '{task.title}' owner={owner_id} assignee={task.assigned_to_id}")
        return task

    def _check_access(self, task: Task, actor_id: int, is_admin: bool, owner_only: bool = False) -> None:
        allowed = {task.owner_id} if owner_only else {task.owner_id, task.assigned_to_id}
        if not is_admin and actor_id not in allowed:
            raise PermissionDeniedError("Not authorized to modify this task")

    def update(
        self,
        guid: str,
        data: TaskUpdate,
        actor_id: int,
        is_admin: bool = False,
    ) -> Tuple[Task, bool]:
        """
        Update a task (owner, assignee or admin).

        Returns:
            (task, True if the assignee changed to a different user)

        Raises:
            NotFoundError: If the task, assignee or event is not found
            PermissionDeniedError: If the actor may not modify the task
        """
        task = self.get_by_guid(guid)
        self._check_access(task, actor_id, is_admin)
        previous_assignee = task.assigned_to_id
        updates = data.model_dump(exclude_unset=True)

        if "status" in updates:
            new_status = updates.pop("status")
            if new_status is not None and new_status != task.status:
                task.status = new_status
                task.completed_date = datetime.utcnow() if new_status == TaskStatus.COMPLETED else None

        if "assigned_to_guid" in updates:
            assignee_guid = updates.pop("assigned_to_guid")
            task.assigned_to_id = self.users.get_by_guid(assignee_guid).id if assignee_guid else None

        if "event_guid" in updates:
            event_guid = updates.pop("event_guid")
            task.event_id = self.events.get_by_guid(event_guid).id if event_guid else None

        if "related_to" in updates:
            updates.pop("related_to")
            task.related_type = data.related_to.type if data.related_to else None
            task.related_id = data.related_to.id if data.related_to else None

        for field, value in updates.items():
            if field in ("title", "type", "priority", "tags", "is_recurring") and value is None:
                continue
            setattr(task, field, value)

        self.db.commit()
        self.db.refresh(task)

        reassigned = task.assigned_to_id is not None and task.assigned_to_id != previous_assignee
        logger.info(f"Updated task {task.guid}{' (reassigned)' if reassigned else ''}")
        return task, reassigned

    def delete(self, guid: str, actor_id: int, is_admin: bool = False) -> None:
        """Delete a task (owner or admin only)."""
        task = self.get_by_guid(guid)
        self._check_access(task, actor_id, is_admin, owner_only=True)
        self.db.delete(task)
        self.db.commit()
        logger.info(f"Deleted task {guid}")
