"""User model."""
from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum
from sqlalchemy.sql import func
import uuid
from taskflow.database import Base
from taskflow.db.types import GUID
from taskflow.core.statuses import UserRole


class User(Base):
    """User model. Identities are managed upstream; the core only references them."""

    __tablename__ = "users"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    email = Column(String(255), unique=True, nullable=True, index=True)  # Manager address for overdue notices
    full_name = Column(String(255), nullable=False)
    role = Column(
        SQLEnum(UserRole, name="user_role", values_callable=lambda enum: [m.value for m in enum]),
        nullable=False,
        default=UserRole.USER,
    )
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
