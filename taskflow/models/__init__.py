"""Model modules."""
from taskflow.models.user import User
from taskflow.models.task import Task, TaskAttachment, TaskComment

__all__ = [
    "User",
    "Task",
    "TaskAttachment",
    "TaskComment",
]
