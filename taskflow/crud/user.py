"""User CRUD operations."""
from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from taskflow.crud.base import CRUDBase
from taskflow.models.user import User


class CRUDUser(CRUDBase[User, dict, dict]):
    """CRUD operations for User."""

    async def get_active(self, db: AsyncSession, *, id: UUID) -> Optional[User]:
        """Get an active user by id."""
        result = await db.execute(select(User).where(User.id == id, User.is_active.is_(True)))
        return result.scalar_one_or_none()

    async def get_by_email(self, db: AsyncSession, *, email: str) -> Optional[User]:
        """Get user by email."""
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()


user = CRUDUser(User)
