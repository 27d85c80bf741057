"""Security constants and permissions."""
from enum import Enum

from taskflow.core.statuses import UserRole


class Permission(str, Enum):
    """Permission constants for RBAC."""

    # Task permissions
    TASK_VIEW = "task.view"
    TASK_SUBMIT = "task.submit"
    TASK_CREATE_ASSIGNED = "task.create_assigned"
    TASK_APPROVE = "task.approve"
    TASK_REQUEST_REVISIONS = "task.request_revisions"
    TASK_REJECT = "task.reject"
    TASK_RETURN_FOR_CHANGES = "task.return_for_changes"
    TASK_MARK_OVERDUE = "task.mark_overdue"
    TASK_DELETE = "task.delete"

    # Maintenance
    TASK_SWEEP_OVERDUE = "task.sweep_overdue"
    TASK_STATISTICS_VIEW = "task.statistics.view"


class TaskAction(str, Enum):
    """Business operations an actor may attempt on a task."""

    VIEW = "view"
    SUBMIT = "submit"
    CREATE_ASSIGNED = "create"
    APPROVE = "approve"
    REQUEST_REVISIONS = "request revisions for"
    REJECT = "reject"
    RESUBMIT = "resubmit"
    START = "start"
    COMPLETE = "complete"
    UPDATE_PROGRESS = "update progress on"
    RETURN_FOR_CHANGES = "return"
    MARK_OVERDUE = "mark overdue"
    DELETE = "delete"
    SWEEP_OVERDUE = "sweep overdue"
    VIEW_STATISTICS = "view statistics for"


# Actions decided by role alone
ACTION_PERMISSIONS = {
    TaskAction.VIEW: Permission.TASK_VIEW,
    TaskAction.SUBMIT: Permission.TASK_SUBMIT,
    TaskAction.CREATE_ASSIGNED: Permission.TASK_CREATE_ASSIGNED,
    TaskAction.APPROVE: Permission.TASK_APPROVE,
    TaskAction.REQUEST_REVISIONS: Permission.TASK_REQUEST_REVISIONS,
    TaskAction.REJECT: Permission.TASK_REJECT,
    TaskAction.RETURN_FOR_CHANGES: Permission.TASK_RETURN_FOR_CHANGES,
    TaskAction.MARK_OVERDUE: Permission.TASK_MARK_OVERDUE,
    TaskAction.DELETE: Permission.TASK_DELETE,
    TaskAction.SWEEP_OVERDUE: Permission.TASK_SWEEP_OVERDUE,
    TaskAction.VIEW_STATISTICS: Permission.TASK_STATISTICS_VIEW,
}

# Actions decided by ownership of the task: action -> task attribute holding the owner id
ACTION_OWNERSHIP = {
    TaskAction.RESUBMIT: "assigner_id",
    TaskAction.START: "assigned_user_id",
    TaskAction.COMPLETE: "assigned_user_id",
    TaskAction.UPDATE_PROGRESS: "assigned_user_id",
}


# Role definitions with permissions
ROLE_PERMISSIONS = {
    UserRole.ADMIN: [
        Permission.TASK_VIEW,
        Permission.TASK_SUBMIT,
        Permission.TASK_CREATE_ASSIGNED,
        Permission.TASK_APPROVE,
        Permission.TASK_REQUEST_REVISIONS,
        Permission.TASK_REJECT,
        Permission.TASK_RETURN_FOR_CHANGES,
        Permission.TASK_MARK_OVERDUE,
        Permission.TASK_DELETE,
        Permission.TASK_SWEEP_OVERDUE,
        Permission.TASK_STATISTICS_VIEW,
    ],
    UserRole.USER: [
        Permission.TASK_VIEW,
        Permission.TASK_SUBMIT,
    ],
}
