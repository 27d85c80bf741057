"""Tests for task persistence."""
from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select

from taskflow.core.exceptions import DatabaseError, ValidationError
from taskflow.core.statuses import TaskPriority, TaskStatus
from taskflow.crud.task import task as task_store
from taskflow.models.task import Task, TaskAttachment, TaskComment
from taskflow.schemas.common import PaginationMeta


async def _count(db, model):
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.mark.asyncio
async def test_create_task_with_children(db_session, submitter_user, admin_user):
    created = await task_store.create_task(
        db_session,
        fields={"title": "Fix printer", "assigner_id": submitter_user.id},
        attachments=[{"file_name": "photo.jpg", "file_url": "https://files.local/photo.jpg"}],
        comments=[{"author_id": admin_user.id, "content": "Looks urgent"}],
    )

    assert created.status == TaskStatus.PENDING_APPROVAL
    assert created.priority == TaskPriority.MEDIUM
    assert created.assigner_name == "Sam Submitter"
    assert created.assignee_name is None
    assert [a.file_name for a in created.attachments] == ["photo.jpg"]
    # Uploader defaults to the task's assigner
    assert created.attachments[0].uploader_id == submitter_user.id
    assert created.comments[0].author_name == "Alice Admin"


@pytest.mark.asyncio
async def test_failed_child_insert_rolls_back_everything(db_session, submitter_user):
    with pytest.raises(DatabaseError) as exc_info:
        await task_store.create_task(
            db_session,
            fields={"title": "Broken", "assigner_id": submitter_user.id},
            attachments=[{"file_name": "a.txt", "file_url": "https://files.local/a.txt"}],
            comments=[{"author_id": submitter_user.id, "content": None}],
        )

    assert exc_info.value.status_code == 500
    assert exc_info.value.original_error is not None
    assert exc_info.value.__cause__ is exc_info.value.original_error
    assert await _count(db_session, Task) == 0
    assert await _count(db_session, TaskAttachment) == 0
    assert await _count(db_session, TaskComment) == 0


@pytest.mark.asyncio
async def test_pagination_counts_whole_filtered_set(db_session, submitter_user, assignee_user, make_task):
    for index in range(15):
        await make_task(
            submitter_user, title=f"Task {index:02d}", status=TaskStatus.TO_DO, assigned_user_id=assignee_user.id
        )
    for index in range(4):
        await make_task(submitter_user, title=f"Proposal {index}")
    await make_task(submitter_user, title="Shipped", status=TaskStatus.COMPLETED, assigned_user_id=assignee_user.id)

    first = await task_store.list_tasks(db_session, filters={"status": "To Do"}, page=1, limit=10)
    second = await task_store.list_tasks(db_session, filters={"status": TaskStatus.TO_DO}, page=2, limit=10)
    meta = PaginationMeta.build(page=1, limit=10, total=first.total)

    assert first.total == 15
    assert len(first.items) == 10
    assert len(second.items) == 5
    assert all(t.status == TaskStatus.TO_DO for t in first.items + second.items)
    assert {t.id for t in first.items}.isdisjoint({t.id for t in second.items})
    assert meta.total_pages == 2
    assert meta.has_next is True
    assert meta.has_prev is False


@pytest.mark.asyncio
async def test_unknown_status_filter_is_rejected(db_session, submitter_user, make_task):
    await make_task(submitter_user)

    with pytest.raises(ValidationError) as exc_info:
        await task_store.list_tasks(db_session, filters={"status": "Archived"})

    assert "Archived" in exc_info.value.detail


@pytest.mark.asyncio
async def test_filters_are_combined(db_session, submitter_user, admin_user, make_task):
    await make_task(submitter_user, priority=TaskPriority.HIGH)
    await make_task(submitter_user, priority=TaskPriority.LOW)
    await make_task(admin_user, priority=TaskPriority.HIGH, status=TaskStatus.TO_DO)

    page = await task_store.list_tasks(
        db_session,
        filters={"assigner_id": submitter_user.id, "priority": TaskPriority.HIGH},
    )

    assert page.total == 1
    assert page.items[0].assigner_id == submitter_user.id


@pytest.mark.asyncio
async def test_sorting_uses_allow_list(db_session, submitter_user, make_task):
    for title in ("Charlie", "Alpha", "Bravo"):
        await make_task(submitter_user, title=title)

    page = await task_store.list_tasks(db_session, sort_by="title", sort_order="asc")
    assert [t.title for t in page.items] == ["Alpha", "Bravo", "Charlie"]

    with pytest.raises(ValidationError) as exc_info:
        await task_store.list_tasks(db_session, sort_by="title; DROP TABLE tasks")
    assert "Allowed fields" in exc_info.value.detail

    with pytest.raises(ValidationError):
        await task_store.list_tasks(db_session, sort_order="sideways")


@pytest.mark.asyncio
async def test_update_replaces_children_and_stamps_updated_at(db_session, submitter_user, make_task):
    created = await task_store.create_task(
        db_session,
        fields={"title": "Order chairs", "assigner_id": submitter_user.id},
        attachments=[
            {"file_name": "old-1.pdf", "file_url": "https://files.local/old-1.pdf"},
            {"file_name": "old-2.pdf", "file_url": "https://files.local/old-2.pdf"},
        ],
    )
    before = datetime.utcnow() - timedelta(seconds=1)

    updated = await task_store.update_task(
        db_session,
        created.id,
        fields={"title": "Order ten chairs"},
        attachments=[{"file_name": "quote.pdf", "file_url": "https://files.local/quote.pdf"}],
    )

    assert updated.title == "Order ten chairs"
    assert [a.file_name for a in updated.attachments] == ["quote.pdf"]
    assert await _count(db_session, TaskAttachment) == 1
    assert updated.updated_at.replace(tzinfo=None) >= before


@pytest.mark.asyncio
async def test_update_rejects_unknown_fields(db_session, submitter_user, make_task):
    created = await make_task(submitter_user)

    with pytest.raises(ValidationError):
        await task_store.update_task(db_session, created.id, fields={"id": created.id})

    assert await task_store.update_task(db_session, created.assigner_id, fields={"title": "x"}) is None


@pytest.mark.asyncio
async def test_out_of_set_enum_values_are_never_written(db_session, submitter_user, make_task):
    created = await make_task(submitter_user)

    with pytest.raises(ValidationError) as exc_info:
        await task_store.update_task(db_session, created.id, fields={"status": "Archived"})
    assert exc_info.value.status_code == 422

    with pytest.raises(ValidationError):
        await task_store.update_task(db_session, created.id, fields={"priority": "Critical"})
    with pytest.raises(ValidationError):
        await task_store.create_task(
            db_session, fields={"title": "Bad", "assigner_id": submitter_user.id, "suggested_priority": "Whenever"}
        )

    reloaded = await task_store.get_task_or_404(db_session, created.id)
    assert reloaded.status == TaskStatus.PENDING_APPROVAL
    assert reloaded.priority == TaskPriority.MEDIUM
    assert await _count(db_session, Task) == 1


@pytest.mark.asyncio
async def test_enum_values_given_as_strings_are_stored_as_members(db_session, submitter_user, make_task):
    created = await make_task(submitter_user)

    updated = await task_store.update_task(db_session, created.id, fields={"status": "To Do", "priority": "High"})

    assert updated.status is TaskStatus.TO_DO
    assert updated.priority is TaskPriority.HIGH


@pytest.mark.asyncio
async def test_soft_delete_hides_task_and_tombstones_children(db_session, submitter_user):
    created = await task_store.create_task(
        db_session,
        fields={"title": "Temporary", "assigner_id": submitter_user.id},
        comments=[{"author_id": submitter_user.id, "content": "first"}],
    )

    assert await task_store.delete_task(db_session, created.id) is True

    assert await task_store.get_task_by_id(db_session, created.id) is None
    assert (await task_store.list_tasks(db_session)).total == 0
    assert await task_store.delete_task(db_session, created.id) is False
    comment = (await db_session.execute(select(TaskComment))).scalar_one()
    assert comment.soft_deleted_at is not None
    assert await _count(db_session, Task) == 1


@pytest.mark.asyncio
async def test_hard_delete_removes_rows(db_session, submitter_user):
    created = await task_store.create_task(
        db_session,
        fields={"title": "Temporary", "assigner_id": submitter_user.id},
        comments=[{"author_id": submitter_user.id, "content": "first"}],
    )

    assert await task_store.delete_task(db_session, created.id, hard=True) is True

    assert await _count(db_session, Task) == 0
    assert await _count(db_session, TaskComment) == 0


@pytest.mark.asyncio
async def test_statistics(db_session, submitter_user, assignee_user, make_task, past_deadline):
    await make_task(submitter_user)
    await make_task(submitter_user, status=TaskStatus.TO_DO, assigned_user_id=assignee_user.id, deadline=past_deadline)
    await make_task(submitter_user, status=TaskStatus.OVERDUE, assigned_user_id=assignee_user.id)

    stats = await task_store.get_statistics(db_session, now=datetime.utcnow())

    assert stats["total"] == 3
    assert stats["by_status"]["Pending Approval"] == 1
    assert stats["by_status"]["Completed"] == 0
    assert stats["overdue"] == 2
