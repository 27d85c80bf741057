"""Task store: transactional persistence for tasks with their attachments and comments.

Every write runs in one transaction on the request-scoped session. Driver
errors are rolled back and surfaced as ``DatabaseError``; callers never see a
half-written task.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Iterable, List, NamedTuple, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.config import settings
from taskflow.core.exceptions import DatabaseError, NotFoundError, ValidationError
from taskflow.core.statuses import ACTIVE_STATUSES, TaskPriority, TaskStatus
from taskflow.crud.base import CRUDBase, as_dict
from taskflow.localization.helpers import get_translation
from taskflow.models.task import Task, TaskAttachment, TaskComment

logger = logging.getLogger(__name__)

CREATABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "status",
        "priority",
        "deadline",
        "suggested_priority",
        "suggested_deadline",
        "assigner_id",
        "assigned_user_id",
        "progress_percentage",
        "timer_duration",
    }
)

UPDATABLE_FIELDS = CREATABLE_FIELDS | {"completed_at"}

FILTERABLE_FIELDS = {
    "status": Task.status,
    "priority": Task.priority,
    "assigned_user_id": Task.assigned_user_id,
    "assigner_id": Task.assigner_id,
}

# Only these columns may appear in ORDER BY
SORTABLE_COLUMNS = {
    "created_at": Task.created_at,
    "updated_at": Task.updated_at,
    "deadline": Task.deadline,
    "priority": Task.priority,
    "status": Task.status,
    "title": Task.title,
}

ENUM_FIELDS = {
    "status": TaskStatus,
    "priority": TaskPriority,
    "suggested_priority": TaskPriority,
}

ATTACHMENT_FIELDS = ("file_name", "file_url", "file_type", "file_size", "uploader_id")
COMMENT_FIELDS = ("author_id", "content", "created_at")


class TaskPage(NamedTuple):
    """One page of a filtered listing and the size of the whole filtered set."""

    items: List[Task]
    total: int


def _reject_unknown(fields: Dict[str, Any], allowed: Iterable[str], locale: str = "en") -> None:
    unknown = sorted(set(fields) - set(allowed))
    if unknown:
        raise ValidationError(get_translation("errors.unknown_update_field", locale, fields=", ".join(unknown)))


def _coerce_enums(fields: Dict[str, Any], locale: str = "en") -> Dict[str, Any]:
    """Return ``fields`` with enum columns converted to members; unknown values are rejected."""
    coerced = dict(fields)
    for name, enum_cls in ENUM_FIELDS.items():
        value = coerced.get(name)
        if value is None:
            continue
        try:
            coerced[name] = enum_cls(value)
        except ValueError:
            raise ValidationError(get_translation("errors.invalid_enum_value", locale, field=name, value=value))
    return coerced


def _build_attachment(data: Any, default_uploader: Optional[UUID]) -> TaskAttachment:
    values = {key: value for key, value in as_dict(data).items() if key in ATTACHMENT_FIELDS}
    values.setdefault("uploader_id", default_uploader)
    if values["uploader_id"] is None:
        values["uploader_id"] = default_uploader
    return TaskAttachment(**values)


def _build_comment(data: Any) -> TaskComment:
    values = {key: value for key, value in as_dict(data).items() if key in COMMENT_FIELDS}
    if values.get("created_at") is None:
        values["created_at"] = datetime.utcnow()
    return TaskComment(**values)


class CRUDTask(CRUDBase[Task, dict, dict]):
    """Repository for Task aggregates."""

    @asynccontextmanager
    async def _transaction(self, db: AsyncSession, message: str):
        """Commit on success; roll back on any error and wrap driver errors."""
        try:
            yield
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error(f"{message}; transaction rolled back", exc_info=True)
            raise DatabaseError(message, original_error=exc) from exc
        except Exception:
            await db.rollback()
            raise

    async def _load(self, db: AsyncSession, task_id: UUID) -> Optional[Task]:
        result = await db.execute(
            select(Task)
            .where(Task.id == task_id, Task.soft_deleted_at.is_(None))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_task_by_id(self, db: AsyncSession, task_id: UUID) -> Optional[Task]:
        """Get a live task with attachments, comments and user display data."""
        try:
            return await self._load(db, task_id)
        except SQLAlchemyError as exc:
            raise DatabaseError("Failed to fetch task", original_error=exc) from exc

    async def get_task_or_404(self, db: AsyncSession, task_id: UUID, locale: str = "en") -> Task:
        task_obj = await self.get_task_by_id(db, task_id)
        if task_obj is None:
            raise NotFoundError(get_translation("errors.task_not_found", locale, task_id=task_id))
        return task_obj

    async def create_task(
        self,
        db: AsyncSession,
        *,
        fields: Dict[str, Any],
        attachments: Iterable[Any] = (),
        comments: Iterable[Any] = (),
    ) -> Task:
        """Insert a task together with its attachments and comments atomically."""
        _reject_unknown(fields, CREATABLE_FIELDS)
        fields = _coerce_enums(fields)

        task_obj = Task(**fields)
        async with self._transaction(db, "Failed to create task"):
            task_obj.attachments = [_build_attachment(item, fields.get("assigner_id")) for item in attachments]
            task_obj.comments = [_build_comment(item) for item in comments]
            db.add(task_obj)
            await db.flush()
            task_id = task_obj.id

        return await self.get_task_or_404(db, task_id)

    async def list_tasks(
        self,
        db: AsyncSession,
        *,
        filters: Optional[Dict[str, Any]] = None,
        page: int = 1,
        limit: Optional[int] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        locale: str = "en",
    ) -> TaskPage:
        """Filtered, sorted, offset-paginated listing of live tasks."""
        limit = settings.DEFAULT_PAGE_SIZE if limit is None else limit
        if page < 1 or limit < 1 or limit > settings.MAX_PAGE_SIZE:
            raise ValidationError(get_translation("errors.invalid_page", locale, limit=settings.MAX_PAGE_SIZE))

        sort_column = SORTABLE_COLUMNS.get(sort_by)
        if sort_column is None:
            raise ValidationError(
                get_translation(
                    "errors.unsortable_field",
                    locale,
                    field=sort_by,
                    allowed=", ".join(sorted(SORTABLE_COLUMNS)),
                )
            )
        if sort_order.lower() not in ("asc", "desc"):
            raise ValidationError(get_translation("errors.invalid_sort_order", locale))

        filters = {key: value for key, value in (filters or {}).items() if value is not None}
        _reject_unknown(filters, FILTERABLE_FIELDS, locale)
        filters = _coerce_enums(filters, locale)
        conditions = [Task.soft_deleted_at.is_(None)]
        conditions.extend(FILTERABLE_FIELDS[key] == value for key, value in filters.items())

        ordering = sort_column.asc() if sort_order.lower() == "asc" else sort_column.desc()
        try:
            total = (await db.execute(select(func.count()).select_from(Task).where(*conditions))).scalar_one()
            result = await db.execute(
                select(Task)
                .where(*conditions)
                .order_by(ordering, Task.id)
                .offset((page - 1) * limit)
                .limit(limit)
            )
        except SQLAlchemyError as exc:
            raise DatabaseError("Failed to fetch tasks", original_error=exc) from exc

        return TaskPage(items=list(result.scalars().all()), total=total)

    async def update_task(
        self,
        db: AsyncSession,
        task_id: UUID,
        *,
        fields: Dict[str, Any],
        attachments: Optional[Iterable[Any]] = None,
        comments: Optional[Iterable[Any]] = None,
        new_comments: Iterable[Any] = (),
    ) -> Optional[Task]:
        """Apply whitelisted fields and stamp ``updated_at``.

        ``attachments``/``comments`` replace the existing sets when given;
        ``new_comments`` are appended. Everything commits as one unit.
        Returns None when no live task matches.
        """
        _reject_unknown(fields, UPDATABLE_FIELDS)
        fields = _coerce_enums(fields)

        async with self._transaction(db, "Failed to update task"):
            task_obj = await self._load(db, task_id)
            if task_obj is None:
                return None

            for field, value in fields.items():
                setattr(task_obj, field, value)
            task_obj.updated_at = datetime.utcnow()

            if attachments is not None:
                task_obj.attachments = [_build_attachment(item, task_obj.assigner_id) for item in attachments]
            if comments is not None:
                task_obj.comments = [_build_comment(item) for item in comments]
            for item in new_comments:
                task_obj.comments.append(_build_comment(item))

            db.add(task_obj)

        return await self.get_task_by_id(db, task_id)

    async def delete_task(self, db: AsyncSession, task_id: UUID, *, hard: bool = False) -> bool:
        """Soft-delete a task and tombstone its children (or remove the rows when ``hard``)."""
        async with self._transaction(db, "Failed to delete task"):
            task_obj = await self._load(db, task_id)
            if task_obj is None:
                return False

            if hard:
                await db.delete(task_obj)
            else:
                now = datetime.utcnow()
                task_obj.soft_deleted_at = now
                for attachment in task_obj.attachments:
                    attachment.soft_deleted_at = now
                for comment in task_obj.comments:
                    comment.soft_deleted_at = now
                db.add(task_obj)

        return True

    async def list_overdue_candidates(self, db: AsyncSession, *, now: datetime) -> List[Task]:
        """Live tasks past their deadline that are still To Do or In Progress."""
        try:
            result = await db.execute(
                select(Task)
                .where(
                    Task.soft_deleted_at.is_(None),
                    Task.deadline.is_not(None),
                    Task.deadline < now,
                    Task.status.in_(ACTIVE_STATUSES),
                )
                .order_by(Task.deadline)
            )
        except SQLAlchemyError as exc:
            raise DatabaseError("Failed to fetch overdue tasks", original_error=exc) from exc
        return list(result.scalars().all())

    async def get_statistics(self, db: AsyncSession, *, now: datetime) -> Dict[str, Any]:
        """Counts per status, plus tasks that are overdue or past deadline while active."""
        live = Task.soft_deleted_at.is_(None)
        try:
            rows = (
                await db.execute(select(Task.status, func.count()).where(live).group_by(Task.status))
            ).all()
            past_deadline = (
                await db.execute(
                    select(func.count())
                    .select_from(Task)
                    .where(
                        live,
                        Task.deadline.is_not(None),
                        Task.deadline < now,
                        Task.status.in_(ACTIVE_STATUSES),
                    )
                )
            ).scalar_one()
        except SQLAlchemyError as exc:
            raise DatabaseError("Failed to fetch task statistics", original_error=exc) from exc

        by_status = {status.value: 0 for status in TaskStatus}
        for status, count in rows:
            by_status[TaskStatus(status).value] = count
        return {
            "total": sum(by_status.values()),
            "overdue": by_status[TaskStatus.OVERDUE.value] + past_deadline,
            "by_status": by_status,
        }


task = CRUDTask(Task)
