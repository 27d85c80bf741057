"""Status, priority and role enumerations shared by server and client."""
from enum import Enum


class TaskStatus(str, Enum):
    """Task lifecycle status."""

    PENDING_APPROVAL = "Pending Approval"
    NEEDS_CHANGES = "Needs Changes"
    TO_DO = "To Do"
    IN_PROGRESS = "In Progress"
    OVERDUE = "Overdue"
    COMPLETED = "Completed"
    REJECTED = "Rejected"


class TaskPriority(str, Enum):
    """Task priority."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class UserRole(str, Enum):
    """Actor role."""

    ADMIN = "admin"
    USER = "user"


# Statuses the overdue sweep picks up
ACTIVE_STATUSES = frozenset({TaskStatus.TO_DO, TaskStatus.IN_PROGRESS})
