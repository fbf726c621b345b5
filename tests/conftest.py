"""Test fixtures with a throwaway file-backed SQLite database per test.

A file (not :memory:) lets concurrent sessions hold separate connections,
which is what the claim serialization relies on.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func
from sqlmodel import SQLModel, select

from taskforperks.cache import task_views
from taskforperks.database import get_db_session, make_engine, make_session_factory
from taskforperks.db_models import Claim, ClaimStatus, Task, TaskStatus
from taskforperks.main import app
from taskforperks.rate_limit import limiter

JSON = {"Accept": "application/json"}


@pytest.fixture
async def engine(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine):
    factory = make_session_factory(engine)

    async def override_get_db_session():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session
    limiter.reset()
    task_views.clear()

    yield factory

    app.dependency_overrides.clear()
    task_views.clear()


@pytest.fixture
async def client(db):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def claim_body(client_version: int = 0, fee: float = 20.0, helper_id: str | None = None, **extra):
    """Helper: a valid claim payload in wire (camelCase) form."""
    return {
        "helperId": helper_id or str(uuid.uuid4()),
        "fee": fee,
        "clientVersion": client_version,
        **extra,
    }


async def make_task(
    factory,
    *,
    max_claims: int = 1,
    version: int = 0,
    status: TaskStatus = TaskStatus.OPEN,
    title: str = "Walk the dog",
) -> str:
    """Helper: insert a task directly, return its id."""
    async with factory() as session:
        task = Task(
            requester_id=str(uuid.uuid4()),
            title=title,
            max_claims=max_claims,
            version=version,
            status=status,
        )
        session.add(task)
        await session.commit()
        return task.id


async def add_claims(
    factory,
    task_id: str,
    count: int,
    *,
    status: ClaimStatus = ClaimStatus.PENDING,
    expires_in: timedelta = timedelta(hours=24),
) -> list[str]:
    """Helper: insert claims directly (bypassing the claim protocol)."""
    now = datetime.now(UTC)
    async with factory() as session:
        claims = [
            Claim(
                task_id=task_id,
                helper_id=str(uuid.uuid4()),
                fee=10.0 + i,
                status=status,
                created_at=now,
                expires_at=now + expires_in,
            )
            for i in range(count)
        ]
        session.add_all(claims)
        await session.commit()
        return [c.id for c in claims]


async def count_claims(factory, task_id: str, status: ClaimStatus | None = None) -> int:
    async with factory() as session:
        query = select(func.count()).select_from(Claim).where(Claim.task_id == task_id)
        if status is not None:
            query = query.where(Claim.status == status)
        result = await session.execute(query)
        return result.scalar_one()


async def task_version(factory, task_id: str) -> int:
    async with factory() as session:
        result = await session.execute(select(Task.version).where(Task.id == task_id))
        return result.scalar_one()
