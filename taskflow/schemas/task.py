"""Task schemas."""
from typing import Dict, List, Literal, Optional
from uuid import UUID
from pydantic import BaseModel, Field
from datetime import datetime

from taskflow.core.statuses import TaskPriority, TaskStatus
from taskflow.schemas.common import PaginationMeta


class AttachmentCreate(BaseModel):
    """Attachment supplied with a task write."""

    file_name: str = Field(min_length=1, max_length=255)
    file_url: str = Field(min_length=1)
    file_type: Optional[str] = None
    file_size: Optional[int] = Field(default=None, ge=0)
    uploader_id: Optional[UUID] = None


class AttachmentResponse(BaseModel):
    """Attachment response schema."""

    id: UUID
    task_id: UUID
    uploader_id: Optional[UUID] = None
    file_name: str
    file_url: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CommentResponse(BaseModel):
    """Comment response schema."""

    id: UUID
    task_id: UUID
    author_id: Optional[UUID] = None
    author_name: Optional[str] = None
    content: str
    created_at: datetime

    class Config:
        from_attributes = True


class TaskResponse(BaseModel):
    """Task response schema with joined display data."""

    id: UUID
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    deadline: Optional[datetime] = None
    suggested_priority: Optional[TaskPriority] = None
    suggested_deadline: Optional[datetime] = None
    assigner_id: UUID
    assigner_name: Optional[str] = None
    assigned_user_id: Optional[UUID] = None
    assignee_name: Optional[str] = None
    progress_percentage: int
    timer_duration: int
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    attachments: List[AttachmentResponse] = []
    comments: List[CommentResponse] = []

    class Config:
        from_attributes = True


class TaskListResponse(BaseModel):
    """Paginated task listing."""

    tasks: List[TaskResponse]
    pagination: PaginationMeta


class TaskSubmit(BaseModel):
    """Submitter's proposal; lands in Pending Approval."""

    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    suggested_priority: Optional[TaskPriority] = None
    suggested_deadline: Optional[datetime] = None
    attachments: List[AttachmentCreate] = []


class TaskCreateAssigned(BaseModel):
    """Admin-created task, assigned immediately."""

    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    deadline: Optional[datetime] = None
    assignee_id: UUID
    timer_duration: int = Field(default=0, ge=0)
    attachments: List[AttachmentCreate] = []


class TaskApprove(BaseModel):
    """Approval payload."""

    assignee_id: UUID
    priority: TaskPriority = TaskPriority.MEDIUM
    deadline: Optional[datetime] = None
    timer_duration: int = Field(default=0, ge=0)


class TaskRequestRevisions(BaseModel):
    """Revision request payload."""

    comment: str = Field(min_length=1)


class TaskResubmit(BaseModel):
    """Resubmission payload."""

    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None


class TaskStatusChange(BaseModel):
    """Board move payload."""

    status: TaskStatus
    comment: Optional[str] = None


class TaskProgressUpdate(BaseModel):
    """Assignee progress report."""

    progress_percentage: int = Field(ge=0, le=100)


BulkActionName = Literal["reject", "delete", "mark_overdue"]


class BulkActionRequest(BaseModel):
    """Admin bulk operation over several tasks."""

    action: BulkActionName
    task_ids: List[UUID] = Field(min_length=1)


class BulkItemResult(BaseModel):
    """Outcome for one task of a bulk operation."""

    task_id: UUID
    success: bool
    error: Optional[str] = None


class BulkActionResponse(BaseModel):
    """Bulk operation summary."""

    action: str
    processed_count: int
    failed_count: int
    results: List[BulkItemResult]


class SweepFailure(BaseModel):
    """One task the overdue sweep could not fully process."""

    task_id: UUID
    reason: str


class SweepResult(BaseModel):
    """Aggregated outcome of an overdue sweep."""

    transitioned: List[UUID] = []
    notified: List[UUID] = []
    failed: List[SweepFailure] = []


class TaskStatistics(BaseModel):
    """Counts per status for the admin dashboard."""

    total: int
    overdue: int
    by_status: Dict[str, int]
