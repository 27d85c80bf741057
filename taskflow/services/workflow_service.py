"""Approval workflow: submission, review, execution and the overdue sweep."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from fastapi import HTTPException
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.config import settings
from taskflow.core.exceptions import DatabaseError, IllegalTransitionError, NotFoundError, ValidationError
from taskflow.core.security import TaskAction
from taskflow.core.statuses import TaskPriority, TaskStatus
from taskflow.core.transitions import TRANSITIONS
from taskflow.crud.task import task
from taskflow.crud.user import user as user_crud
from taskflow.integrations.notifier import OverdueNotice, OverdueNotifier, overdue_notifier
from taskflow.localization.helpers import get_translation
from taskflow.middleware.metrics import overdue_notifications_total, task_transitions_total
from taskflow.models.task import Task
from taskflow.schemas.task import BulkActionResponse, BulkItemResult, SweepFailure, SweepResult
from taskflow.utils.dates import to_naive_utc, utcnow
from taskflow.utils.permissions import Actor, ensure_authorized

logger = logging.getLogger(__name__)


class ApprovalWorkflowService:
    """Business operations over tasks. Every status change goes through the transition table."""

    @staticmethod
    async def _ensure_assignee(db: AsyncSession, assignee_id: UUID, locale: str = "en") -> None:
        if await user_crud.get_active(db, id=assignee_id) is None:
            raise NotFoundError(get_translation("errors.user_not_found", locale, user_id=assignee_id))

    @staticmethod
    async def _transition(
        db: AsyncSession,
        task_obj: Task,
        target: TaskStatus,
        actor: Optional[Actor],
        fields: Optional[Dict[str, Any]] = None,
        new_comments: Iterable[Dict[str, Any]] = (),
    ) -> Task:
        """Validate and persist one status change with its field delta."""
        current = TaskStatus(task_obj.status)
        locale = actor.locale if actor else "en"
        TRANSITIONS.ensure_transition(current, target, locale)

        updated = await task.update_task(
            db,
            task_obj.id,
            fields={**(fields or {}), "status": target},
            new_comments=new_comments,
        )
        if updated is None:
            raise NotFoundError(get_translation("errors.task_not_found", locale, task_id=task_obj.id))

        task_transitions_total.labels(current.value, target.value).inc()
        logger.info(
            "Task %s moved %s -> %s by %s",
            task_obj.id,
            current.value,
            target.value,
            actor.id if actor else "system",
        )
        return updated

    @staticmethod
    async def get_task(db: AsyncSession, actor: Actor, task_id: UUID) -> Task:
        ensure_authorized(actor, TaskAction.VIEW)
        return await task.get_task_or_404(db, task_id, actor.locale)

    @staticmethod
    async def list_tasks(db: AsyncSession, actor: Actor, **query: Any):
        ensure_authorized(actor, TaskAction.VIEW)
        return await task.list_tasks(db, locale=actor.locale, **query)

    @staticmethod
    async def submit_task(
        db: AsyncSession,
        submitter: Actor,
        *,
        title: str,
        description: Optional[str] = None,
        suggested_priority: Optional[TaskPriority] = None,
        suggested_deadline: Optional[datetime] = None,
        attachments: Iterable[Any] = (),
    ) -> Task:
        """Record a proposal in Pending Approval with no assignee."""
        ensure_authorized(submitter, TaskAction.SUBMIT)
        suggested_deadline = to_naive_utc(suggested_deadline)

        created = await task.create_task(
            db,
            fields={
                "title": title,
                "description": description,
                "status": TaskStatus.PENDING_APPROVAL,
                "priority": suggested_priority or TaskPriority.MEDIUM,
                "deadline": suggested_deadline,
                "suggested_priority": suggested_priority,
                "suggested_deadline": suggested_deadline,
                "assigner_id": submitter.id,
                "assigned_user_id": None,
            },
            attachments=attachments,
        )
        logger.info("Task %s submitted by %s", created.id, submitter.id)
        return created

    @staticmethod
    async def create_assigned_task(
        db: AsyncSession,
        admin: Actor,
        *,
        title: str,
        assignee_id: UUID,
        description: Optional[str] = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        deadline: Optional[datetime] = None,
        timer_duration: int = 0,
        attachments: Iterable[Any] = (),
    ) -> Task:
        """Create a task directly in To Do with its assignee set."""
        ensure_authorized(admin, TaskAction.CREATE_ASSIGNED)
        await ApprovalWorkflowService._ensure_assignee(db, assignee_id, admin.locale)

        created = await task.create_task(
            db,
            fields={
                "title": title,
                "description": description,
                "status": TaskStatus.TO_DO,
                "priority": priority,
                "deadline": to_naive_utc(deadline),
                "assigner_id": admin.id,
                "assigned_user_id": assignee_id,
                "timer_duration": timer_duration,
            },
            attachments=attachments,
        )
        logger.info("Task %s created by %s and assigned to %s", created.id, admin.id, assignee_id)
        return created

    @staticmethod
    async def approve_and_assign(
        db: AsyncSession,
        admin: Actor,
        task_id: UUID,
        *,
        assignee_id: UUID,
        priority: TaskPriority = TaskPriority.MEDIUM,
        deadline: Optional[datetime] = None,
        timer_duration: int = 0,
    ) -> Task:
        """Approve a pending proposal; it becomes To Do and the suggestions are cleared."""
        task_obj = await task.get_task_or_404(db, task_id, admin.locale)
        ensure_authorized(admin, TaskAction.APPROVE, task_obj)
        TRANSITIONS.ensure_transition(task_obj.status, TaskStatus.TO_DO, admin.locale)
        await ApprovalWorkflowService._ensure_assignee(db, assignee_id, admin.locale)

        return await ApprovalWorkflowService._transition(
            db,
            task_obj,
            TaskStatus.TO_DO,
            admin,
            fields={
                "assigned_user_id": assignee_id,
                "priority": priority,
                "deadline": to_naive_utc(deadline),
                "timer_duration": timer_duration,
                "suggested_priority": None,
                "suggested_deadline": None,
            },
        )

    @staticmethod
    async def request_revisions(db: AsyncSession, admin: Actor, task_id: UUID, *, comment: str) -> Task:
        """Send a pending proposal back to its submitter with a comment."""
        task_obj = await task.get_task_or_404(db, task_id, admin.locale)
        ensure_authorized(admin, TaskAction.REQUEST_REVISIONS, task_obj)
        # In Progress -> Needs Changes is a separate operation
        if task_obj.status != TaskStatus.PENDING_APPROVAL:
            raise IllegalTransitionError(task_obj.status, TaskStatus.NEEDS_CHANGES, admin.locale)
        if not comment or not comment.strip():
            raise ValidationError(get_translation("errors.revision_comment_required", admin.locale))

        return await ApprovalWorkflowService._transition(
            db,
            task_obj,
            TaskStatus.NEEDS_CHANGES,
            admin,
            new_comments=[{"author_id": admin.id, "content": comment.strip()}],
        )

    @staticmethod
    async def reject_task(db: AsyncSession, admin: Actor, task_id: UUID) -> Task:
        task_obj = await task.get_task_or_404(db, task_id, admin.locale)
        ensure_authorized(admin, TaskAction.REJECT, task_obj)
        return await ApprovalWorkflowService._transition(db, task_obj, TaskStatus.REJECTED, admin)

    @staticmethod
    async def resubmit_task(
        db: AsyncSession,
        submitter: Actor,
        task_id: UUID,
        *,
        title: str,
        description: Optional[str] = None,
    ) -> Task:
        """Submitter revises a Needs Changes task and sends it back for approval."""
        task_obj = await task.get_task_or_404(db, task_id, submitter.locale)
        ensure_authorized(submitter, TaskAction.RESUBMIT, task_obj)
        return await ApprovalWorkflowService._transition(
            db,
            task_obj,
            TaskStatus.PENDING_APPROVAL,
            submitter,
            fields={"title": title, "description": description},
        )

    @staticmethod
    async def start_task(db: AsyncSession, assignee: Actor, task_id: UUID) -> Task:
        task_obj = await task.get_task_or_404(db, task_id, assignee.locale)
        ensure_authorized(assignee, TaskAction.START, task_obj)
        return await ApprovalWorkflowService._transition(db, task_obj, TaskStatus.IN_PROGRESS, assignee)

    @staticmethod
    async def complete_task(db: AsyncSession, assignee: Actor, task_id: UUID) -> Task:
        task_obj = await task.get_task_or_404(db, task_id, assignee.locale)
        ensure_authorized(assignee, TaskAction.COMPLETE, task_obj)
        return await ApprovalWorkflowService._transition(
            db,
            task_obj,
            TaskStatus.COMPLETED,
            assignee,
            fields={"completed_at": utcnow(), "progress_percentage": 100},
        )

    @staticmethod
    async def update_progress(db: AsyncSession, assignee: Actor, task_id: UUID, *, progress_percentage: int) -> Task:
        """Record the assignee's progress on a task being worked."""
        task_obj = await task.get_task_or_404(db, task_id, assignee.locale)
        ensure_authorized(assignee, TaskAction.UPDATE_PROGRESS, task_obj)
        if task_obj.status not in (TaskStatus.IN_PROGRESS, TaskStatus.OVERDUE):
            raise IllegalTransitionError(task_obj.status, TaskStatus.IN_PROGRESS, assignee.locale)
        if not 0 <= progress_percentage <= 100:
            raise ValidationError(get_translation("errors.progress_out_of_range", assignee.locale))

        updated = await task.update_task(db, task_id, fields={"progress_percentage": progress_percentage})
        if updated is None:
            raise NotFoundError(get_translation("errors.task_not_found", assignee.locale, task_id=task_id))
        return updated

    @staticmethod
    async def return_for_changes(
        db: AsyncSession,
        admin: Actor,
        task_id: UUID,
        *,
        comment: Optional[str] = None,
    ) -> Task:
        """Send work in progress back to Needs Changes, optionally explaining why."""
        task_obj = await task.get_task_or_404(db, task_id, admin.locale)
        ensure_authorized(admin, TaskAction.RETURN_FOR_CHANGES, task_obj)
        if task_obj.status != TaskStatus.IN_PROGRESS:
            raise IllegalTransitionError(task_obj.status, TaskStatus.NEEDS_CHANGES, admin.locale)

        new_comments = []
        if comment and comment.strip():
            new_comments.append({"author_id": admin.id, "content": comment.strip()})
        return await ApprovalWorkflowService._transition(
            db, task_obj, TaskStatus.NEEDS_CHANGES, admin, new_comments=new_comments
        )

    @staticmethod
    async def mark_overdue(db: AsyncSession, admin: Actor, task_id: UUID) -> Task:
        task_obj = await task.get_task_or_404(db, task_id, admin.locale)
        ensure_authorized(admin, TaskAction.MARK_OVERDUE, task_obj)
        return await ApprovalWorkflowService._transition(db, task_obj, TaskStatus.OVERDUE, admin)

    @staticmethod
    async def change_status(
        db: AsyncSession,
        actor: Actor,
        task_id: UUID,
        target: TaskStatus,
        *,
        comment: Optional[str] = None,
    ) -> Task:
        """Board move: route a target column to the matching workflow operation.

        Each operation authorizes the actor before it checks the transition.
        """
        task_obj = await task.get_task_or_404(db, task_id, actor.locale)
        target = TaskStatus(target)

        if target == TaskStatus.TO_DO:
            ensure_authorized(actor, TaskAction.APPROVE, task_obj)
            TRANSITIONS.ensure_transition(task_obj.status, target, actor.locale)
            raise ValidationError(get_translation("errors.approval_needs_assignee", actor.locale))
        if target == TaskStatus.IN_PROGRESS:
            return await ApprovalWorkflowService.start_task(db, actor, task_id)
        if target == TaskStatus.COMPLETED:
            return await ApprovalWorkflowService.complete_task(db, actor, task_id)
        if target == TaskStatus.OVERDUE:
            return await ApprovalWorkflowService.mark_overdue(db, actor, task_id)
        if target == TaskStatus.REJECTED:
            return await ApprovalWorkflowService.reject_task(db, actor, task_id)
        if target == TaskStatus.NEEDS_CHANGES:
            if task_obj.status == TaskStatus.PENDING_APPROVAL:
                return await ApprovalWorkflowService.request_revisions(db, actor, task_id, comment=comment or "")
            return await ApprovalWorkflowService.return_for_changes(db, actor, task_id, comment=comment)
        # Needs Changes -> Pending Approval keeps the current wording
        return await ApprovalWorkflowService.resubmit_task(
            db, actor, task_id, title=task_obj.title, description=task_obj.description
        )

    @staticmethod
    async def delete_task(db: AsyncSession, admin: Actor, task_id: UUID) -> None:
        """Soft-delete a task and its attachments and comments."""
        ensure_authorized(admin, TaskAction.DELETE)
        if not await task.delete_task(db, task_id):
            raise NotFoundError(get_translation("errors.task_not_found", admin.locale, task_id=task_id))
        logger.info("Task %s deleted by %s", task_id, admin.id)

    @staticmethod
    async def bulk_action(db: AsyncSession, admin: Actor, *, action: str, task_ids: List[UUID]) -> BulkActionResponse:
        """Apply reject / delete / mark_overdue to each task, collecting per-item outcomes."""
        handlers = {
            "reject": (TaskAction.REJECT, ApprovalWorkflowService.reject_task),
            "delete": (TaskAction.DELETE, ApprovalWorkflowService.delete_task),
            "mark_overdue": (TaskAction.MARK_OVERDUE, ApprovalWorkflowService.mark_overdue),
        }
        if action not in handlers:
            raise ValidationError(get_translation("errors.bulk_unknown_action", admin.locale, action=action))
        task_action, handler = handlers[action]
        ensure_authorized(admin, task_action)
        if len(task_ids) > settings.BULK_MAX_ITEMS:
            raise ValidationError(get_translation("errors.bulk_too_many", admin.locale, limit=settings.BULK_MAX_ITEMS))

        results: List[BulkItemResult] = []
        for task_id in dict.fromkeys(task_ids):
            try:
                await handler(db, admin, task_id)
            except HTTPException as exc:
                results.append(BulkItemResult(task_id=task_id, success=False, error=str(exc.detail)))
            else:
                results.append(BulkItemResult(task_id=task_id, success=True))

        failed = sum(1 for item in results if not item.success)
        logger.info("Bulk %s by %s: %d processed, %d failed", action, admin.id, len(results) - failed, failed)
        return BulkActionResponse(
            action=action,
            processed_count=len(results) - failed,
            failed_count=failed,
            results=results,
        )

    @staticmethod
    async def sweep_overdue(
        db: AsyncSession,
        *,
        now: Optional[datetime] = None,
        notifier: Optional[OverdueNotifier] = None,
        actor: Optional[Actor] = None,
    ) -> SweepResult:
        """Move active tasks past their deadline to Overdue and notify their managers.

        One task's failure never aborts the batch: it is recorded in
        ``failed`` and the sweep moves on. Running it twice is harmless since
        Overdue tasks no longer match the selection.
        """
        if actor is not None:
            ensure_authorized(actor, TaskAction.SWEEP_OVERDUE)
        now = to_naive_utc(now) or utcnow()
        notifier = notifier or overdue_notifier

        result = SweepResult()
        # A rollback expires loaded instances, so each task is re-read by id
        candidate_ids = [candidate.id for candidate in await task.list_overdue_candidates(db, now=now)]
        for task_id in candidate_ids:
            try:
                candidate = await task.get_task_or_404(db, task_id)
                updated = await ApprovalWorkflowService._transition(db, candidate, TaskStatus.OVERDUE, actor)
            except HTTPException as exc:
                logger.error("Overdue sweep could not update task %s: %s", task_id, exc)
                reason = exc.message if isinstance(exc, DatabaseError) else str(exc.detail)
                result.failed.append(SweepFailure(task_id=task_id, reason=reason))
                continue
            result.transitioned.append(updated.id)

            manager_email = updated.assigner.email if updated.assigner else None
            if not manager_email:
                reason = get_translation("errors.manager_email_missing", assigner_id=updated.assigner_id)
                logger.warning("Overdue notice for task %s skipped: %s", updated.id, reason)
                overdue_notifications_total.labels("skipped").inc()
                result.failed.append(SweepFailure(task_id=updated.id, reason=reason))
                continue

            notice = OverdueNotice(
                task_id=updated.id,
                task_title=updated.title,
                deadline=updated.deadline,
                manager_email=manager_email,
                ceo_email=settings.CEO_EMAIL,
            )
            try:
                await run_in_threadpool(notifier.notify_overdue, notice)
            except Exception as exc:
                logger.warning("Overdue notice for task %s failed: %s", updated.id, exc)
                overdue_notifications_total.labels("failed").inc()
                result.failed.append(SweepFailure(task_id=updated.id, reason=f"Notification failed: {exc}"))
                continue
            overdue_notifications_total.labels("sent").inc()
            result.notified.append(updated.id)

        logger.info(
            "Overdue sweep: %d transitioned, %d notified, %d failed",
            len(result.transitioned),
            len(result.notified),
            len(result.failed),
        )
        return result

    @staticmethod
    async def get_statistics(db: AsyncSession, admin: Actor, *, now: Optional[datetime] = None) -> Dict[str, Any]:
        ensure_authorized(admin, TaskAction.VIEW_STATISTICS)
        return await task.get_statistics(db, now=to_naive_utc(now) or utcnow())


workflow_service = ApprovalWorkflowService()
