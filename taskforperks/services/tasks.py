"""Task read model: detail views and claim summaries."""

from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from taskforperks.db_models import Claim, ClaimStatus, Task, TaskStatus

logger = logging.getLogger("taskforperks.tasks")


def pending_count_subquery():
    """Live count of a task's PENDING claims, correlated to the outer Task row."""
    return (
        select(func.count())
        .select_from(Claim)
        .where(Claim.task_id == Task.id, Claim.status == ClaimStatus.PENDING)
        .scalar_subquery()
    )


async def create_task(
    session: AsyncSession,
    requester_id: str,
    title: str,
    max_claims: int = 1,
    description: str | None = None,
    status: TaskStatus = TaskStatus.OPEN,
) -> Task:
    """Insert a task. Task creation proper belongs to the posting flow; this
    exists for seeding and tests."""
    if max_claims < 1:
        raise ValueError("max_claims must be positive")
    task = Task(
        requester_id=requester_id,
        title=title,
        description=description,
        max_claims=max_claims,
        status=status,
    )
    session.add(task)
    await session.commit()
    logger.info("Created task %s (max_claims=%d)", task.id, max_claims)
    return task


async def get_task_view(session: AsyncSession, tid: str) -> dict | None:
    result = await session.execute(
        select(Task, pending_count_subquery().label("pending_claims"))
        .where(Task.id == tid)
        .execution_options(populate_existing=True)
    )
    row = result.one_or_none()
    if row is None:
        return None
    task, pending = row
    return {
        "task_id": task.id,
        "title": task.title,
        "description": task.description,
        "status": TaskStatus(task.status).value,
        "version": task.version,
        "max_claims": task.max_claims,
        "pending_claims": pending,
        "created_at": task.created_at.isoformat() if task.created_at else None,
    }


async def get_claim_summary(session: AsyncSession, tid: str) -> dict | None:
    """Pending-claim count and the cheapest pending offer for a task."""
    task = await session.get(Task, tid)
    if task is None:
        return None

    count_result = await session.execute(
        select(func.count())
        .select_from(Claim)
        .where(Claim.task_id == tid, Claim.status == ClaimStatus.PENDING)
    )
    count = count_result.scalar_one()

    best_result = await session.execute(
        select(Claim.fee, Claim.helper_id)
        .where(Claim.task_id == tid, Claim.status == ClaimStatus.PENDING)
        .order_by(Claim.fee.asc(), Claim.created_at.asc())
        .limit(1)
    )
    best = best_result.first()

    return {
        "count_pending": count,
        "best_offer": {"fee": best[0], "helper_id": best[1]} if best else None,
    }
