"""Seed the database with demo tasks and a few claims against them.

Usage:
    uv run python scripts/seed.py                      # uses TASKFORPERKS_DATABASE_URL
    uv run python scripts/seed.py data/demo.db         # explicit SQLite file
"""

from __future__ import annotations

import asyncio
import random
import sys
import uuid

from taskforperks.config import settings
from taskforperks.database import close_db, get_session_factory, init_db, resolve_db_url
from taskforperks.errors import ClaimError
from taskforperks.services.claims import submit_claim
from taskforperks.services.tasks import create_task, get_task_view

DB = sys.argv[1] if len(sys.argv) > 1 else settings.database_url

TASKS: list[dict] = [
    {"title": "Last-minute airport pickup from Gatwick", "max_claims": 3},
    {"title": "Urgent prescription delivery to care home", "max_claims": 2},
    {"title": "Assemble a flat-pack wardrobe", "max_claims": 4},
    {"title": "Walk two dogs for a week", "max_claims": 2},
    {"title": "Proofread a 20-page dissertation chapter", "max_claims": 5},
    {"title": "Help move a sofa up three flights", "max_claims": 1},
]

HELPERS = [str(uuid.uuid4()) for _ in range(8)]


async def main():
    await init_db(resolve_db_url(DB))
    factory = get_session_factory()
    requester = str(uuid.uuid4())

    print(f"\n--- Posting {len(TASKS)} tasks ---\n")
    task_ids: list[str] = []
    for entry in TASKS:
        async with factory() as session:
            task = await create_task(session, requester, entry["title"], entry["max_claims"])
        task_ids.append(task.id)
        print(f"  posted {task.id}  max_claims={entry['max_claims']}  {entry['title']}")

    print("\n--- Simulating claims ---\n")
    for tid in task_ids:
        for helper in random.sample(HELPERS, k=random.randint(1, 5)):
            async with factory() as session:
                view = await get_task_view(session, tid)
            assert view is not None
            fee = float(random.choice([15, 20, 25, 30, 45, 60]))
            async with factory() as session:
                try:
                    claim_id = await submit_claim(
                        session, tid, helper, fee, client_version=view["version"]
                    )
                except ClaimError as exc:
                    print(f"  {helper[:8]} on {tid}: {exc.code.value}")
                    continue
            print(f"  {helper[:8]} claimed {tid} for {fee:.0f}  → {claim_id}")

    await close_db()
    print("\nDone.")


if __name__ == "__main__":
    asyncio.run(main())
