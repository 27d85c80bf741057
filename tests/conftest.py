"""Pytest configuration and fixtures."""
import os
import uuid
from datetime import datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

TEST_DB_PATH = Path("test_taskflow.db")
if TEST_DB_PATH.exists():
    TEST_DB_PATH.unlink()

TEST_DATABASE_URL = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("NOTIFIER_MODE", "stub")
os.environ.setdefault("LOG_FORMAT", "text")

from taskflow.main import app  # noqa: E402
from taskflow.database import Base, get_db  # noqa: E402
from taskflow.core.statuses import TaskPriority, TaskStatus, UserRole  # noqa: E402
from taskflow.crud.task import task as task_store  # noqa: E402
from taskflow.models.user import User  # noqa: E402
from taskflow.utils.permissions import Actor  # noqa: E402


# Create test engine
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@pytest_asyncio.fixture(scope="function")
async def db_session():
    """Create a test database session."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(scope="function")
def client(db_session: AsyncSession):
    """Create a test client overriding database dependency."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


async def _create_user(db: AsyncSession, *, full_name: str, email, role: UserRole) -> User:
    user = User(id=uuid.uuid4(), email=email, full_name=full_name, role=role, is_active=True)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, full_name="Alice Admin", email="admin@example.com", role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def submitter_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, full_name="Sam Submitter", email="sam@example.com", role=UserRole.USER)


@pytest_asyncio.fixture
async def assignee_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, full_name="Ann Assignee", email="ann@example.com", role=UserRole.USER)


@pytest_asyncio.fixture
async def no_email_user(db_session: AsyncSession) -> User:
    """A manager whose email cannot be resolved."""
    return await _create_user(db_session, full_name="Nora Noemail", email=None, role=UserRole.ADMIN)


@pytest.fixture
def admin(admin_user: User) -> Actor:
    return Actor.from_user(admin_user)


@pytest.fixture
def submitter(submitter_user: User) -> Actor:
    return Actor.from_user(submitter_user)


@pytest.fixture
def assignee(assignee_user: User) -> Actor:
    return Actor.from_user(assignee_user)


@pytest.fixture
def actor_headers():
    """Build the identity header the gateway would set."""

    def _headers(user: User):
        return {"X-Actor-Id": str(user.id)}

    return _headers


@pytest.fixture
def make_task(db_session: AsyncSession):
    """Insert a task directly through the store."""

    async def _make(assigner: User, *, status: TaskStatus = TaskStatus.PENDING_APPROVAL, **fields):
        values = {
            "title": "Prepare quarterly report",
            "description": "Numbers for Q3",
            "status": status,
            "priority": TaskPriority.MEDIUM,
            "assigner_id": assigner.id,
        }
        values.update(fields)
        return await task_store.create_task(db_session, fields=values)

    return _make


@pytest.fixture
def past_deadline() -> datetime:
    return datetime.utcnow() - timedelta(days=1)


@pytest.fixture
def future_deadline() -> datetime:
    return datetime.utcnow() + timedelta(days=7)
