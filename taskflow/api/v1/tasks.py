"""Tasks API endpoints."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.config import settings
from taskflow.core.security import Permission
from taskflow.core.statuses import TaskPriority, TaskStatus
from taskflow.database import get_db
from taskflow.dependencies import get_current_actor, require_permission
from taskflow.schemas.common import PaginationMeta
from taskflow.schemas.task import (
    BulkActionRequest,
    BulkActionResponse,
    SweepResult,
    TaskApprove,
    TaskCreateAssigned,
    TaskListResponse,
    TaskProgressUpdate,
    TaskRequestRevisions,
    TaskResponse,
    TaskResubmit,
    TaskStatistics,
    TaskStatusChange,
    TaskSubmit,
)
from taskflow.services.workflow_service import workflow_service
from taskflow.utils.permissions import Actor

router = APIRouter()


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    status_filter: Optional[TaskStatus] = Query(default=None, alias="status"),
    priority: Optional[TaskPriority] = None,
    assigned_user_id: Optional[UUID] = None,
    assigner_id: Optional[UUID] = None,
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
    sort_by: str = "created_at",
    sort_order: str = "desc",
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """List live tasks with filters, sorting and pagination."""
    result = await workflow_service.list_tasks(
        db,
        actor,
        filters={
            "status": status_filter,
            "priority": priority,
            "assigned_user_id": assigned_user_id,
            "assigner_id": assigner_id,
        },
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    page_size = limit or settings.DEFAULT_PAGE_SIZE
    return TaskListResponse(
        tasks=[TaskResponse.model_validate(item) for item in result.items],
        pagination=PaginationMeta.build(page=page, limit=page_size, total=result.total),
    )


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def submit_task(
    payload: TaskSubmit,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Submit a task proposal for approval."""
    return await workflow_service.submit_task(
        db,
        actor,
        title=payload.title,
        description=payload.description,
        suggested_priority=payload.suggested_priority,
        suggested_deadline=payload.suggested_deadline,
        attachments=payload.attachments,
    )


@router.post("/assigned", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_assigned_task(
    payload: TaskCreateAssigned,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission(Permission.TASK_CREATE_ASSIGNED)),
):
    """Create a task already assigned (admin only)."""
    return await workflow_service.create_assigned_task(
        db,
        actor,
        title=payload.title,
        description=payload.description,
        priority=payload.priority,
        deadline=payload.deadline,
        assignee_id=payload.assignee_id,
        timer_duration=payload.timer_duration,
        attachments=payload.attachments,
    )


@router.get("/statistics", response_model=TaskStatistics)
async def task_statistics(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission(Permission.TASK_STATISTICS_VIEW)),
):
    """Task counts per status for the admin dashboard."""
    return await workflow_service.get_statistics(db, actor)


@router.post("/bulk", response_model=BulkActionResponse)
async def bulk_action(
    payload: BulkActionRequest,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Reject, delete or mark overdue several tasks at once."""
    return await workflow_service.bulk_action(db, actor, action=payload.action, task_ids=payload.task_ids)


@router.post("/overdue/sweep", response_model=SweepResult)
async def sweep_overdue(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission(Permission.TASK_SWEEP_OVERDUE)),
):
    """Run the overdue sweep now."""
    return await workflow_service.sweep_overdue(db, actor=actor)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Get a task with its attachments and comments."""
    return await workflow_service.get_task(db, actor, task_id)


@router.post("/{task_id}/approve", response_model=TaskResponse)
async def approve_task(
    task_id: UUID,
    payload: TaskApprove,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Approve a pending task and assign it."""
    return await workflow_service.approve_and_assign(
        db,
        actor,
        task_id,
        assignee_id=payload.assignee_id,
        priority=payload.priority,
        deadline=payload.deadline,
        timer_duration=payload.timer_duration,
    )


@router.post("/{task_id}/request-revisions", response_model=TaskResponse)
async def request_revisions(
    task_id: UUID,
    payload: TaskRequestRevisions,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return await workflow_service.request_revisions(db, actor, task_id, comment=payload.comment)


@router.post("/{task_id}/reject", response_model=TaskResponse)
async def reject_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return await workflow_service.reject_task(db, actor, task_id)


@router.post("/{task_id}/resubmit", response_model=TaskResponse)
async def resubmit_task(
    task_id: UUID,
    payload: TaskResubmit,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Resubmit a task after requested changes (submitter only)."""
    return await workflow_service.resubmit_task(
        db,
        actor,
        task_id,
        title=payload.title,
        description=payload.description,
    )


@router.patch("/{task_id}/status", response_model=TaskResponse)
async def change_task_status(
    task_id: UUID,
    payload: TaskStatusChange,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Move a task to another board column."""
    return await workflow_service.change_status(db, actor, task_id, payload.status, comment=payload.comment)


@router.patch("/{task_id}/progress", response_model=TaskResponse)
async def update_task_progress(
    task_id: UUID,
    payload: TaskProgressUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return await workflow_service.update_progress(
        db, actor, task_id, progress_percentage=payload.progress_percentage
    )


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Soft-delete a task (admin only)."""
    await workflow_service.delete_task(db, actor, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
