"""Schema modules."""
from taskflow.schemas.common import PaginationMeta
from taskflow.schemas.task import (
    AttachmentCreate,
    AttachmentResponse,
    BulkActionRequest,
    BulkActionResponse,
    BulkItemResult,
    CommentResponse,
    SweepFailure,
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
