"""
Tasks API endpoints.

Tasks are visible to their owner and assignee (administrators see all).
Creating or reassigning a task pushes ``task:assigned`` to the new
assignee's real-time connection, if they are online.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.middleware.auth import AuthContext, require_auth
from backend.src.models import Task, TaskStatus
from backend.src.schemas.common import DeleteResponse
from backend.src.schemas.task import TaskCreate, TaskListResponse, TaskResponse, TaskUpdate
from backend.src.services.exceptions import NotFoundError, PermissionDeniedError
from backend.src.services.realtime_service import RealtimeService, get_realtime_service
from backend.src.services.task_service import TaskService
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(prefix="/tasks", tags=["Tasks"])


def get_task_service(db: Session = Depends(get_db)) -> TaskService:
    return TaskService(db=db)


async def _notify_assignee(realtime: RealtimeService, task: Task, ctx: AuthContext) -> None:
    if not task.assigned_to_guid or task.assigned_to_guid == ctx.user_guid:
        return
    payload = TaskResponse.model_validate(task).model_dump(mode="json")
    payload["assigned_by"] = {"id": ctx.user_guid, "name": ctx.full_name}
    payload["timestamp"] = datetime.utcnow().isoformat() + "Z"
    await realtime.notify_user(task.assigned_to_guid, "task:assigned", payload)


@router.get("", response_model=TaskListResponse, summary="List tasks")
async def list_tasks(
    assigned_to_me: bool = Query(False, description="Only tasks assigned to the caller"),
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    event_guid: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: AuthContext = Depends(require_auth),
    task_service: TaskService = Depends(get_task_service),
) -> TaskListResponse:
    try:
        tasks, total = task_service.list(
            visible_to=None if ctx.is_admin else ctx.user_id,
            assigned_to=ctx.user_id if assigned_to_me else None,
            status=status_filter,
            event_guid=event_guid,
            limit=limit,
            offset=offset,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return TaskListResponse(tasks=[TaskResponse.model_validate(t) for t in tasks], total=total)


@router.get("/{guid}", response_model=TaskResponse, summary="Get task")
async def get_task(
    guid: str,
    ctx: AuthContext = Depends(require_auth),
    task_service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    try:
        task = task_service.get_by_guid(guid, visible_to=None if ctx.is_admin else ctx.user_id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Task {guid} not found")
    return TaskResponse.model_validate(task)


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create task",
)
async def create_task(
    body: TaskCreate,
    ctx: AuthContext = Depends(require_auth),
    task_service: TaskService = Depends(get_task_service),
    realtime: RealtimeService = Depends(get_realtime_service),
) -> TaskResponse:
    try:
        task = task_service.create(body, owner_id=ctx.user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await _notify_assignee(realtime, task, ctx)
    return TaskResponse.model_validate(task)


@router.put("/{guid}", response_model=TaskResponse, summary="Update task")
async def update_task(
    guid: str,
    body: TaskUpdate,
    ctx: AuthContext = Depends(require_auth),
    task_service: TaskService = Depends(get_task_service),
    realtime: RealtimeService = Depends(get_realtime_service),
) -> TaskResponse:
    try:
        task_service.get_by_guid(guid, visible_to=None if ctx.is_admin else ctx.user_id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Task {guid} not found")

    try:
        task, reassigned = task_service.update(guid, body, actor_id=ctx.user_id, is_admin=ctx.is_admin)
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if reassigned:
        await _notify_assignee(realtime, task, ctx)
    return TaskResponse.model_validate(task)


@router.delete("/{guid}", response_model=DeleteResponse, summary="Delete task")
async def delete_task(
    guid: str,
    ctx: AuthContext = Depends(require_auth),
    task_service: TaskService = Depends(get_task_service),
) -> DeleteResponse:
    try:
        task_service.get_by_guid(guid, visible_to=None if ctx.is_admin else ctx.user_id)
        task_service.delete(guid, actor_id=ctx.user_id, is_admin=ctx.is_admin)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Task {guid} not found")
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)

    return DeleteResponse(guid=guid)
