"""Background tasks: expire stale pending claims."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlmodel import select

from taskforperks.cache import invalidate_task_view
from taskforperks.config import settings
from taskforperks.database import begin_write
from taskforperks.db_models import Claim, ClaimStatus
from taskforperks.events import Event, enqueue_event

logger = logging.getLogger("taskforperks.background")

CLAIMS_EXPIRED = "claims_expired"


async def expire_claims(session: AsyncSession) -> int:
    """Mark PENDING claims past their expiry as EXPIRED.

    Task version and status are left alone; only the pending count drops.
    """
    await begin_write(session)
    now = datetime.now(UTC)
    result = await session.execute(
        select(Claim).where(Claim.status == ClaimStatus.PENDING, Claim.expires_at < now)
    )
    claims = result.scalars().all()

    expired_by_task: dict[str, list[str]] = {}
    for claim in claims:
        claim.status = ClaimStatus.EXPIRED
        session.add(claim)
        expired_by_task.setdefault(claim.task_id, []).append(claim.id)

    for tid, claim_ids in expired_by_task.items():
        await enqueue_event(
            session, Event(type=CLAIMS_EXPIRED, task_id=tid, data={"claim_ids": claim_ids})
        )
        logger.info("Expired %d claim(s) on task %s", len(claim_ids), tid)

    if claims:
        await session.commit()
        for tid in expired_by_task:
            invalidate_task_view(tid)
    return len(claims)


async def background_loop(session_factory: sessionmaker) -> None:
    """Sweep expired claims every claim_sweep_interval_seconds."""
    while True:
        try:
            async with session_factory() as session:
                expired = await expire_claims(session)
                if expired:
                    logger.info("BG: expired=%d", expired)
        except Exception:
            logger.exception("Background task error")
        await asyncio.sleep(settings.claim_sweep_interval_seconds)
