"""Claim submission: the serialized read-validate-write protocol on a task.

All checks and writes for one claim run in a single transaction. The task
row's version doubles as a compare-and-swap token: the bump only lands if
the version is still the one the caller presented, so two helpers racing on
the same snapshot cannot both get in. The pending-claim count is always
derived live inside that same transaction.
"""

from __future__ import annotations

import contextlib
import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from taskforperks.cache import invalidate_task_view
from taskforperks.config import settings
from taskforperks.database import begin_write
from taskforperks.db_models import Claim, ClaimStatus, Task, TaskStatus
from taskforperks.errors import ClaimError, ClaimErrorCode
from taskforperks.events import Event, enqueue_event
from taskforperks.services.tasks import pending_count_subquery

logger = logging.getLogger("taskforperks.claims")

TASK_CLAIMED = "task_claimed"


async def submit_claim(
    session: AsyncSession,
    tid: str,
    helper_id: str,
    fee: float,
    client_version: int,
    notes: str | None = None,
) -> str:
    """Record a PENDING claim on a task and return its id.

    Raises ClaimError for every rejection; nothing is persisted, published or
    invalidated unless the whole transaction commits.
    """
    try:
        claim_id = await _claim_in_transaction(
            session, tid, helper_id, fee, client_version, notes
        )
    except ClaimError as exc:
        await _rollback(session)
        logger.info("Claim on task %s rejected: %s", tid, exc.code.value)
        raise
    except Exception as exc:
        await _rollback(session)
        logger.exception("Claim on task %s failed", tid)
        raise ClaimError(ClaimErrorCode.UNKNOWN_ERROR) from exc

    invalidate_task_view(tid)
    logger.info(
        "Accepted claim %s on task %s (helper=%s, version %d -> %d)",
        claim_id,
        tid,
        helper_id,
        client_version,
        client_version + 1,
    )
    return claim_id


async def _claim_in_transaction(
    session: AsyncSession,
    tid: str,
    helper_id: str,
    fee: float,
    client_version: int,
    notes: str | None,
) -> str:
    await begin_write(session)
    result = await session.execute(
        select(
            Task.status,
            Task.version,
            Task.max_claims,
            pending_count_subquery().label("pending_claims"),
        ).where(Task.id == tid)
    )
    row = result.one_or_none()

    if row is None:
        raise ClaimError(ClaimErrorCode.TASK_NOT_FOUND)
    if row.status != TaskStatus.OPEN:
        raise ClaimError(ClaimErrorCode.TASK_CLOSED)
    # Staleness wins over capacity: a stale client's view of capacity is stale too
    if row.version != client_version:
        raise ClaimError(ClaimErrorCode.VERSION_MISMATCH)
    if row.pending_claims >= row.max_claims:
        raise ClaimError(ClaimErrorCode.MAX_CLAIMS_REACHED)

    bump_result = await session.execute(
        text("UPDATE tasks SET version = version + 1 WHERE id = :id AND version = :version"),
        {"id": tid, "version": client_version},
    )
    if bump_result.rowcount == 0:
        # A concurrent writer bumped the version between our read and write
        raise ClaimError(ClaimErrorCode.VERSION_MISMATCH)

    now = datetime.now(UTC)
    claim = Claim(
        task_id=tid,
        helper_id=helper_id,
        fee=fee,
        notes=notes,
        status=ClaimStatus.PENDING,
        created_at=now,
        expires_at=now + timedelta(hours=settings.claim_expire_hours),
    )
    session.add(claim)
    await session.flush()

    await enqueue_event(
        session,
        Event(type=TASK_CLAIMED, task_id=tid, data={"version": client_version + 1}),
    )
    await session.commit()
    return claim.id


async def _rollback(session: AsyncSession) -> None:
    # Keep the error being handled if the rollback itself fails
    with contextlib.suppress(SQLAlchemyError):
        await session.rollback()
