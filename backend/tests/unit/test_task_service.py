"""
Tests for TaskService visibility, access rules and completion stamping.
"""

from datetime import datetime, timedelta

import pytest

from backend.src.models import TaskPriority, TaskStatus, UserRole
from backend.src.schemas.task import TaskCreate, TaskUpdate
from backend.src.services.exceptions import NotFoundError, PermissionDeniedError
from backend.src.services.task_service import TaskService


@pytest.fixture
def task_service(test_db_session):
    return TaskService(test_db_session)


@pytest.fixture
def people(make_user):
    return {
        "owner": make_user(role=UserRole.PLANNER),
        "assignee": make_user(role=UserRole.PLANNER),
        "stranger": make_user(role=UserRole.PLANNER),
    }


def test_create_is_pending_and_assigned(task_service, people, sample_event):
    event = sample_event()
    task = task_service.create(
        TaskCreate(
            title="Book the band",
            priority=TaskPriority.HIGH,
            assigned_to_guid=people["assignee"].guid,
            event_guid=event.guid,
            related_to={"type": "DEAL", "id": "deal-7"},
            tags=["music"],
        ),
        owner_id=people["owner"].id,
    )

    assert task.guid.startswith("tsk_")
    assert task.status == TaskStatus.PENDING
    assert task.assigned_to_guid == people["assignee"].guid
    assert task.event_guid == event.guid
    assert task.related_to == {"type": "DEAL", "id": "deal-7"}


def test_unknown_assignee(task_service, people):
    with pytest.raises(NotFoundError):
        task_service.create(
            TaskCreate(title="x", assigned_to_guid="usr_missing"),
            owner_id=people["owner"].id,
        )


class TestVisibility:

    def test_owner_and_assignee_see_task(self, task_service, people):
        task = task_service.create(
            TaskCreate(title="Shared", assigned_to_guid=people["assignee"].guid),
            owner_id=people["owner"].id,
        )
        assert task_service.get_by_guid(task.guid, visible_to=people["owner"].id).id == task.id
        assert task_service.get_by_guid(task.guid, visible_to=people["assignee"].id).id == task.id
        with pytest.raises(NotFoundError):
            task_service.get_by_guid(task.guid, visible_to=people["stranger"].id)

    def test_list_orders_undated_last(self, task_service, people):
        owner_id = people["owner"].id
        task_service.create(TaskCreate(title="Undated"), owner_id=owner_id)
        task_service.create(TaskCreate(title="Later", due_date=datetime.utcnow() + timedelta(days=5)), owner_id=owner_id)
        task_service.create(TaskCreate(title="Sooner", due_date=datetime.utcnow() + timedelta(days=1)), owner_id=owner_id)
        task_service.create(TaskCreate(title="Someone else's"), owner_id=people["stranger"].id)

        tasks, total = task_service.list(visible_to=owner_id)
        assert total == 3
        assert [t.title for t in tasks] == ["Sooner", "Later", "Undated"]

    def test_list_by_assignee_and_status(self, task_service, people):
        task_service.create(
            TaskCreate(title="Assigned", assigned_to_guid=people["assignee"].guid),
            owner_id=people["owner"].id,
        )
        task_service.create(TaskCreate(title="Mine"), owner_id=people["owner"].id)

        tasks, total = task_service.list(assigned_to=people["assignee"].id, status=TaskStatus.PENDING)
        assert total == 1
        assert tasks[0].title == "Assigned"


class TestUpdate:

    def test_completion_stamps_and_reopen_clears(self, task_service, people):
        task = task_service.create(TaskCreate(title="Finish"), owner_id=people["owner"].id)

        task, _ = task_service.update(task.guid, TaskUpdate(status=TaskStatus.COMPLETED), people["owner"].id)
        assert task.completed_date is not None

        task, _ = task_service.update(task.guid, TaskUpdate(status=TaskStatus.IN_PROGRESS), people["owner"].id)
        assert task.completed_date is None

    def test_reassignment_is_reported(self, task_service, people):
        task = task_service.create(TaskCreate(title="Hand off"), owner_id=people["owner"].id)

        task, reassigned = task_service.update(
            task.guid, TaskUpdate(assigned_to_guid=people["assignee"].guid), people["owner"].id,
        )
        assert reassigned is True

        task, reassigned = task_service.update(
            task.guid, TaskUpdate(assigned_to_guid=people["assignee"].guid), people["owner"].id,
        )
        assert reassigned is False

    def test_assignee_may_update(self, task_service, people):
        task = task_service.create(
            TaskCreate(title="Delegate", assigned_to_guid=people["assignee"].guid),
            owner_id=people["owner"].id,
        )
        task, _ = task_service.update(task.guid, TaskUpdate(notes="on it"), people["assignee"].id)
        assert task.notes == "on it"

    def test_stranger_denied_admin_allowed(self, task_service, people):
        task = task_service.create(TaskCreate(title="Private"), owner_id=people["owner"].id)
        with pytest.raises(PermissionDeniedError):
            task_service.update(task.guid, TaskUpdate(title="Hijack"), people["stranger"].id)

        task, _ = task_service.update(task.guid, TaskUpdate(title="Renamed"), people["stranger"].id, is_admin=True)
        assert task.title == "Renamed"

    def test_null_title_ignored(self, task_service, people):
        task = task_service.create(TaskCreate(title="Keep me"), owner_id=people["owner"].id)
        task, _ = task_service.update(task.guid, TaskUpdate(title=None), people["owner"].id)
        assert task.title == "Keep me"


def test_delete_is_owner_only(task_service, people):
    task = task_service.create(
        TaskCreate(title="Temp", assigned_to_guid=people["assignee"].guid),
        owner_id=people["owner"].id,
    )
    with pytest.raises(PermissionDeniedError):
        task_service.delete(task.guid, people["assignee"].id)

    task_service.delete(task.guid, people["owner"].id)
    with pytest.raises(NotFoundError):
        task_service.get_by_guid(task.guid)


def test_overdue_flag(task_service, people):
    task = task_service.create(
        TaskCreate(title="Late", due_date=datetime.utcnow() - timedelta(hours=1)),
        owner_id=people["owner"].id,
    )
    assert task.is_overdue is True

    task, _ = task_service.update(task.guid, TaskUpdate(status=TaskStatus.CANCELLED), people["owner"].id)
    assert task.is_overdue is False
