"""Generic CRUD helpers shared by the model-specific repositories."""
from typing import Any, Dict, Generic, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.database import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType")
UpdateSchemaType = TypeVar("UpdateSchemaType")


def as_dict(obj_in: Any, *, exclude_unset: bool = False) -> Dict[str, Any]:
    """Return a plain dict from a pydantic model or mapping."""
    if isinstance(obj_in, BaseModel):
        return obj_in.model_dump(exclude_unset=exclude_unset, mode="python")
    return dict(obj_in)


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """Basic create/update for one model."""

    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def create(self, db: AsyncSession, *, obj_in: CreateSchemaType) -> ModelType:
        db_obj = self.model(**as_dict(obj_in))
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: UpdateSchemaType,
    ) -> ModelType:
        for field, value in as_dict(obj_in, exclude_unset=True).items():
            setattr(db_obj, field, value)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

