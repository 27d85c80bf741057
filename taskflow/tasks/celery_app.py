"""Celery application for background jobs."""
from celery import Celery

from taskflow.config import settings

celery_app = Celery(
    "taskflow",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["taskflow.tasks.overdue"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "sweep-overdue-tasks": {
            "task": "taskflow.tasks.overdue.sweep_overdue_tasks",
            "schedule": float(settings.OVERDUE_SWEEP_INTERVAL_SECONDS),
        },
    },
)
