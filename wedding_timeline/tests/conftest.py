"""
Test fixtures - in-memory SQLite database + HTTP client bound to the app
"""
from datetime import date, timedelta

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from wedding_timeline.database import Base, get_db
from wedding_timeline.main import app
from wedding_timeline.models.task import TimelineTask, TaskStatus, TaskCategory, TaskPhase, TaskPriority
from wedding_timeline.models.wedding import Wedding, PartyMember


@pytest_asyncio.fixture()
async def db_session():
    """Create a fresh in-memory SQLite database for each test"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture()
async def seed_data(db_session):
    """Insert baseline test data: one wedding 120 days out with two members"""
    wedding = Wedding(
        name="Smith / Jones",
        wedding_date=date.today() + timedelta(days=120),
        coordinator_email="coordinator@example.com",
    )
    db_session.add(wedding)
    await db_session.flush()

    groom = PartyMember(
        wedding_id=wedding.id, first_name="Sam", last_name="Smith",
        email="sam@example.com", role="groom",
    )
    best_man = PartyMember(
        wedding_id=wedding.id, first_name="Alex", last_name="Jones",
        email=None, role="best_man",
    )
    db_session.add_all([groom, best_man])
    await db_session.commit()
    await db_session.refresh(wedding)
    await db_session.refresh(groom)
    await db_session.refresh(best_man)

    return {"wedding": wedding, "groom": groom, "best_man": best_man}


@pytest_asyncio.fixture()
async def client(db_session, seed_data):
    """httpx AsyncClient bound to the FastAPI app"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
def make_task():
    """Build detached task records for the pure engine functions"""

    def _make(task_id, **fields):
        fields.setdefault("wedding_id", 1)
        fields.setdefault("task_name", f"Task {task_id}")
        fields.setdefault("category", TaskCategory.OTHER)
        fields.setdefault("phase", TaskPhase.PLANNING)
        fields.setdefault("priority", TaskPriority.MEDIUM)
        fields.setdefault("status", TaskStatus.PENDING)
        fields.setdefault("prerequisite_task_ids", [])
        fields.setdefault("triggers_tasks", [])
        return TimelineTask(id=task_id, **fields)

    return _make
