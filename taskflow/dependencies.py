"""FastAPI dependencies for resolving the acting user."""
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.core.exceptions import AuthorizationError, UnauthorizedError
from taskflow.core.security import Permission
from taskflow.crud.user import user as user_crud
from taskflow.database import get_db
from taskflow.localization.helpers import get_locale_from_request, get_translation
from taskflow.utils.permissions import Actor, has_permission


async def get_current_actor(
    request: Request,
    x_actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
    db: AsyncSession = Depends(get_db),
) -> Actor:
    """Resolve the actor from the identity header set by the upstream gateway."""
    locale = get_locale_from_request(request)
    if not x_actor_id:
        raise UnauthorizedError(get_translation("errors.actor_missing", locale))

    try:
        actor_id = UUID(x_actor_id)
    except ValueError:
        raise UnauthorizedError(get_translation("errors.actor_unknown", locale))

    user = await user_crud.get_active(db, id=actor_id)
    if user is None:
        raise UnauthorizedError(get_translation("errors.actor_unknown", locale))

    return Actor.from_user(user, locale=locale)


def require_permission(permission: Permission):
    """Dependency factory for requiring a specific permission."""

    async def permission_checker(
        actor: Actor = Depends(get_current_actor),
    ) -> Actor:
        if not has_permission(actor, permission):
            raise AuthorizationError(locale=actor.locale)
        return actor

    return permission_checker
