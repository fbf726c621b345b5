"""Mount all API routes."""

from fastapi import APIRouter

from taskforperks.api.claims import router as claims_router
from taskforperks.api.events import router as events_router
from taskforperks.api.tasks import router as tasks_router

api_router = APIRouter()
api_router.include_router(claims_router, tags=["claims"])
api_router.include_router(tasks_router, tags=["tasks"])
api_router.include_router(events_router, tags=["events"])
