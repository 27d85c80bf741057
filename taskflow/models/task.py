"""Task, attachment and comment models."""
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, String, Integer, DateTime, ForeignKey, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from taskflow.database import Base
from taskflow.db.types import GUID
from taskflow.core.statuses import TaskPriority, TaskStatus


def _enum_values(enum):
    return [member.value for member in enum]


class Task(Base):
    """Work item moving through the approval workflow."""

    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint("progress_percentage >= 0 AND progress_percentage <= 100", name="ck_tasks_progress_range"),
    )

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        SQLEnum(TaskStatus, name="task_status", values_callable=_enum_values, validate_strings=True),
        nullable=False,
        default=TaskStatus.PENDING_APPROVAL,
        index=True,
    )
    priority = Column(
        SQLEnum(TaskPriority, name="task_priority", values_callable=_enum_values, validate_strings=True),
        nullable=False,
        default=TaskPriority.MEDIUM,
        index=True,
    )
    deadline = Column(DateTime(timezone=True), nullable=True, index=True)
    suggested_priority = Column(
        SQLEnum(TaskPriority, name="task_priority", values_callable=_enum_values, validate_strings=True),
        nullable=True,
    )
    suggested_deadline = Column(DateTime(timezone=True), nullable=True)
    assigner_id = Column(GUID(), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    assigned_user_id = Column(GUID(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    progress_percentage = Column(Integer, nullable=False, default=0)
    timer_duration = Column(Integer, nullable=False, default=0)  # Estimate in minutes
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    soft_deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    # Relationships
    assigner = relationship("User", foreign_keys=[assigner_id], lazy="selectin")
    assignee = relationship("User", foreign_keys=[assigned_user_id], lazy="selectin")
    attachments = relationship(
        "TaskAttachment",
        back_populates="task",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="TaskAttachment.created_at",
    )
    comments = relationship(
        "TaskComment",
        back_populates="task",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="TaskComment.created_at",
    )

    @property
    def assignee_name(self):
        return self.assignee.full_name if self.assignee else None

    @property
    def assigner_name(self):
        return self.assigner.full_name if self.assigner else None


class TaskAttachment(Base):
    """File attached to a task."""

    __tablename__ = "task_attachments"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    task_id = Column(GUID(), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    uploader_id = Column(GUID(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    file_name = Column(String(255), nullable=False)
    file_url = Column(Text, nullable=False)
    file_type = Column(String(100), nullable=True)
    file_size = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    soft_deleted_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    task = relationship("Task", back_populates="attachments")


class TaskComment(Base):
    """Append-only task comment."""

    __tablename__ = "task_comments"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    task_id = Column(GUID(), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(GUID(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False, index=True)
    soft_deleted_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    task = relationship("Task", back_populates="comments")
    author = relationship("User", lazy="selectin")

    @property
    def author_name(self):
        return self.author.full_name if self.author else None
