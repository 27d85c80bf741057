"""Authorization helpers: who may perform which action on which task."""
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from taskflow.core.exceptions import AuthorizationError
from taskflow.core.security import ACTION_OWNERSHIP, ACTION_PERMISSIONS, ROLE_PERMISSIONS, Permission, TaskAction
from taskflow.core.statuses import UserRole
from taskflow.localization.helpers import get_translation


@dataclass(frozen=True)
class Actor:
    """Identity supplied by the session collaborator for one call."""

    id: UUID
    role: UserRole
    is_active: bool = True
    locale: str = "en"

    @classmethod
    def from_user(cls, user, locale: str = "en") -> "Actor":
        return cls(id=user.id, role=UserRole(user.role), is_active=user.is_active, locale=locale)


def get_actor_permissions(actor: Actor) -> List[str]:
    """Get all permissions granted to the actor's role."""
    return [perm.value for perm in ROLE_PERMISSIONS.get(actor.role, [])]


def has_permission(actor: Actor, permission: Permission) -> bool:
    """Check if actor has a specific permission."""
    if not actor.is_active:
        return False
    return permission in ROLE_PERMISSIONS.get(actor.role, [])


def authorize(actor: Actor, action: TaskAction, task=None) -> bool:
    """Return True if ``actor`` may perform ``action`` on ``task``.

    Role-scoped actions check the role's permissions; ownership-scoped actions
    compare the actor with the submitter or assignee recorded on the task.
    """
    if not actor.is_active:
        return False

    owner_attr = ACTION_OWNERSHIP.get(action)
    if owner_attr is not None:
        if task is None:
            return False
        owner_id = getattr(task, owner_attr, None)
        return owner_id is not None and owner_id == actor.id

    permission = ACTION_PERMISSIONS.get(action)
    if permission is None:
        return False
    return has_permission(actor, permission)


def ensure_authorized(actor: Actor, action: TaskAction, task=None, locale: Optional[str] = None) -> None:
    """Raise ``AuthorizationError`` with a specific message if ``authorize`` denies.

    The message is in ``locale``, or in the actor's own locale when not given.
    """
    if authorize(actor, action, task):
        return

    owner_attr: Optional[str] = ACTION_OWNERSHIP.get(action)
    if owner_attr == "assigner_id":
        key = "errors.requires_assigner"
    elif owner_attr == "assigned_user_id":
        key = "errors.requires_assignee"
    elif ACTION_PERMISSIONS.get(action) in ROLE_PERMISSIONS[UserRole.USER]:
        key = "errors.permission_denied"
    else:
        key = "errors.requires_admin"
    raise AuthorizationError(get_translation(key, locale or actor.locale, action=action.value))
