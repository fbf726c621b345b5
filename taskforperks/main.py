"""TaskForPerks: claim service for the task-for-perks marketplace."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import re
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from taskforperks.api.router import api_router
from taskforperks.background import background_loop
from taskforperks.config import settings
from taskforperks.content import render_response
from taskforperks.database import close_db, get_session_factory, init_db, resolve_db_url
from taskforperks.events import event_bus
from taskforperks.rate_limit import limiter

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger("taskforperks")


@asynccontextmanager
async def lifespan(app: FastAPI):
    db_url = resolve_db_url(settings.database_url)
    await init_db(db_url)
    safe_url = re.sub(r"://[^:]+:[^@]+@", "://***:***@", db_url)
    logger.info("Database connected: %s", safe_url)

    bg_task = None
    if not settings.disable_background:
        bg_task = asyncio.create_task(background_loop(get_session_factory()))

    yield

    if bg_task is not None:
        bg_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await bg_task
    event_bus.close()
    await close_db()
    logger.info("Database closed")


app = FastAPI(
    title="TaskForPerks",
    description="Claim service for the task-for-perks marketplace",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(api_router)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return render_response(
        request,
        {"error": exc.detail},
        status_code=exc.status_code,
    )


@app.get("/health")
async def health():
    return {"status": "ok"}


def main():
    import uvicorn

    uvicorn.run(
        "taskforperks.main:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    main()
