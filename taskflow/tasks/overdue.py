"""Celery tasks for the overdue sweep."""
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from taskflow.config import settings
from taskflow.services.workflow_service import workflow_service
from taskflow.tasks.celery_app import celery_app

# Create async engine for Celery tasks
engine = create_async_engine(settings.DATABASE_URL, echo=False)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@celery_app.task(name="taskflow.tasks.overdue.sweep_overdue_tasks")
def sweep_overdue_tasks():
    """Mark past-deadline tasks Overdue and notify managers (called by Celery Beat)."""
    async def _sweep():
        async with AsyncSessionLocal() as db:
            result = await workflow_service.sweep_overdue(db)
        # Pooled connections are bound to this event loop
        await engine.dispose()
        return result.model_dump(mode="json")

    import asyncio
    return asyncio.run(_sweep())
