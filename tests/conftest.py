import os
import uuid
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# ------------------------------------------------------------------
# FORCE TESTING MODE
# This must be done BEFORE importing app.main so the engine in
# app.core.database is built against the throwaway SQLite file.
# ------------------------------------------------------------------
TEST_DB_PATH = "test_portal.db"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///./{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["NOTIFY_BY_EMAIL"] = "false"

from sqlmodel import SQLModel

from app.main import app
from app.core.database import AsyncSessionLocal, engine, init_db
from app.models.enums import ActorRole
from app.schemas.application import ApplicationCreate
from app.schemas.workflow import Actor
from app.services.application_service import submit_application

DEPARTMENT_ID = uuid.UUID("00000000-0000-0000-0000-0000000000d1")


@pytest.fixture(scope="session", autouse=True)
def remove_test_database():
    yield
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)


@pytest_asyncio.fixture
async def db():
    """Fresh tables for every test."""
    await init_db()
    yield
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)


@pytest_asyncio.fixture
async def session(db):
    async with AsyncSessionLocal() as s:
        yield s


@pytest_asyncio.fixture
async def client(db):
    """
    Correct fixture for httpx >= 0.27
    Uses ASGITransport() instead of app=...
    """
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


# ------------------------------------------------------------------
# ACTORS
# ------------------------------------------------------------------
@pytest.fixture
def student(mentor):
    return Actor(
        id=uuid.uuid4(),
        role=ActorRole.STUDENT,
        department_id=DEPARTMENT_ID,
        email="student@test.com",
        mentor_id=mentor.id,
    )


@pytest.fixture
def mentor():
    return Actor(id=uuid.uuid4(), role=ActorRole.FACULTY, department_id=DEPARTMENT_ID)


@pytest.fixture
def hod():
    return Actor(id=uuid.uuid4(), role=ActorRole.HOD, department_id=DEPARTMENT_ID)


@pytest.fixture
def dean():
    return Actor(id=uuid.uuid4(), role=ActorRole.DEAN)


@pytest.fixture
def admin():
    return Actor(id=uuid.uuid4(), role=ActorRole.ADMIN)


@pytest_asyncio.fixture
async def submitted(session, student, mentor):
    """A fresh PENDING application; `mentor` comes from the student profile."""
    payload = ApplicationCreate(
        title="Medical leave",
        type="LEAVE",
        description="Three days of medical leave",
    )
    return await submit_application(session, student, payload)
