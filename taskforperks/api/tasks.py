"""Task read routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from taskforperks.cache import task_views
from taskforperks.config import settings
from taskforperks.content import error_response, render_response
from taskforperks.database import get_db_session
from taskforperks.errors import ClaimErrorCode
from taskforperks.models import ClaimSummaryResponse, ErrorResponse, TaskResponse
from taskforperks.rate_limit import limiter
from taskforperks.services.tasks import get_claim_summary, get_task_view

router = APIRouter()


@router.get(
    "/v1/tasks/{task_id}",
    response_model=TaskResponse,
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit_read)
async def task_detail(request: Request, task_id: str, session=Depends(get_db_session)):
    """Current task state, including the version to present when claiming."""
    view = task_views.get(task_id)
    if view is None:
        view = await get_task_view(session, task_id)
        if view is None:
            return error_response(request, ClaimErrorCode.TASK_NOT_FOUND)
        task_views.set(task_id, view)

    return render_response(
        request,
        TaskResponse(**view),
        headers={"X-Task-Version": str(view["version"])},
    )


@router.get(
    "/v1/tasks/{task_id}/summary",
    response_model=ClaimSummaryResponse,
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit_read)
async def claim_summary(request: Request, task_id: str, session=Depends(get_db_session)):
    """Pending-claim count and the cheapest pending offer."""
    summary = await get_claim_summary(session, task_id)
    if summary is None:
        return error_response(request, ClaimErrorCode.TASK_NOT_FOUND)
    return render_response(request, ClaimSummaryResponse(**summary))
