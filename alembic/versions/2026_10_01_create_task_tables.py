"""Create users, tasks, task attachments and task comments.

Revision ID: create_task_tables_20261001
Revises:
Create Date: 2026-10-01 00:00:00.000000
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy import inspect
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "create_task_tables_20261001"
down_revision = None
branch_labels = None
depends_on = None

TASK_STATUSES = (
    "Pending Approval",
    "Needs Changes",
    "To Do",
    "In Progress",
    "Overdue",
    "Completed",
    "Rejected",
)
TASK_PRIORITIES = ("Low", "Medium", "High", "Urgent")


def upgrade() -> None:
    """Create the task workflow schema."""
    bind = op.get_bind()
    inspector = inspect(bind)
    tables = inspector.get_table_names()

    task_status = postgresql.ENUM(*TASK_STATUSES, name="task_status", create_type=False)
    task_priority = postgresql.ENUM(*TASK_PRIORITIES, name="task_priority", create_type=False)
    user_role = postgresql.ENUM("admin", "user", name="user_role", create_type=False)
    # task_priority backs two columns, so types are created once up front
    for enum_type in (task_status, task_priority, user_role):
        enum_type.create(bind, checkfirst=True)

    if "users" not in tables:
        op.create_table(
            "users",
            sa.Column("id", sa.UUID(), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=True),
            sa.Column("full_name", sa.String(length=255), nullable=False),
            sa.Column("role", user_role, nullable=False, server_default="user"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)
        op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    if "tasks" not in tables:
        op.create_table(
            "tasks",
            sa.Column("id", sa.UUID(), nullable=False),
            sa.Column("title", sa.String(length=255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("status", task_status, nullable=False, server_default="Pending Approval"),
            sa.Column("priority", task_priority, nullable=False, server_default="Medium"),
            sa.Column("deadline", sa.DateTime(timezone=True), nullable=True),
            sa.Column("suggested_priority", task_priority, nullable=True),
            sa.Column("suggested_deadline", sa.DateTime(timezone=True), nullable=True),
            sa.Column("assigner_id", sa.UUID(), nullable=False),
            sa.Column("assigned_user_id", sa.UUID(), nullable=True),
            sa.Column("progress_percentage", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("timer_duration", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
            sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("soft_deleted_at", sa.DateTime(timezone=True), nullable=True),
            sa.CheckConstraint(
                "progress_percentage >= 0 AND progress_percentage <= 100",
                name="ck_tasks_progress_range",
            ),
            sa.ForeignKeyConstraint(["assigner_id"], ["users.id"], ondelete="RESTRICT"),
            sa.ForeignKeyConstraint(["assigned_user_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_tasks_id"), "tasks", ["id"], unique=False)
        op.create_index(op.f("ix_tasks_status"), "tasks", ["status"], unique=False)
        op.create_index(op.f("ix_tasks_priority"), "tasks", ["priority"], unique=False)
        op.create_index(op.f("ix_tasks_deadline"), "tasks", ["deadline"], unique=False)
        op.create_index(op.f("ix_tasks_assigner_id"), "tasks", ["assigner_id"], unique=False)
        op.create_index(op.f("ix_tasks_assigned_user_id"), "tasks", ["assigned_user_id"], unique=False)
        op.create_index(op.f("ix_tasks_created_at"), "tasks", ["created_at"], unique=False)
        op.create_index(op.f("ix_tasks_soft_deleted_at"), "tasks", ["soft_deleted_at"], unique=False)

    if "task_attachments" not in tables:
        op.create_table(
            "task_attachments",
            sa.Column("id", sa.UUID(), nullable=False),
            sa.Column("task_id", sa.UUID(), nullable=False),
            sa.Column("uploader_id", sa.UUID(), nullable=True),
            sa.Column("file_name", sa.String(length=255), nullable=False),
            sa.Column("file_url", sa.Text(), nullable=False),
            sa.Column("file_type", sa.String(length=100), nullable=True),
            sa.Column("file_size", sa.Integer(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
            sa.Column("soft_deleted_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["task_id"], ["tasks.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["uploader_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_task_attachments_id"), "task_attachments", ["id"], unique=False)
        op.create_index(op.f("ix_task_attachments_task_id"), "task_attachments", ["task_id"], unique=False)

    if "task_comments" not in tables:
        op.create_table(
            "task_comments",
            sa.Column("id", sa.UUID(), nullable=False),
            sa.Column("task_id", sa.UUID(), nullable=False),
            sa.Column("author_id", sa.UUID(), nullable=True),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
            sa.Column("soft_deleted_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["task_id"], ["tasks.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["author_id"], ["users.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_task_comments_id"), "task_comments", ["id"], unique=False)
        op.create_index(op.f("ix_task_comments_task_id"), "task_comments", ["task_id"], unique=False)
        op.create_index(op.f("ix_task_comments_created_at"), "task_comments", ["created_at"], unique=False)


def downgrade() -> None:
    """Drop the task workflow schema."""
    op.drop_table("task_comments")
    op.drop_table("task_attachments")
    op.drop_table("tasks")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_name in ("task_status", "task_priority", "user_role"):
        postgresql.ENUM(name=enum_name).drop(bind, checkfirst=True)
